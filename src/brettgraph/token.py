"""
The bearer credential handed out by the Azure AD v1 token endpoint.
https://learn.microsoft.com/en-us/entra/identity-platform/v2-oauth2-client-creds-grant-flow#get-a-token
The v1 endpoint returns the numeric fields as strings, e.g.
{"token_type": "Bearer", "expires_in": "3599", "expires_on": "1700003599", ...}
"""
from dataclasses import dataclass, field
import datetime
from typing import Self

from .errors import DecodeError

# refresh this long before the hard expiry
REFRESH_MARGIN = datetime.timedelta(minutes=5)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _as_int(name: str, value) -> int|None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DecodeError(f"Token field {name} is not an integer: {value!r}") from exc


@dataclass
class Token():
    token_type: str = field(default="Bearer")
    access_token: str = field(default="", repr=False)
    expires_in: int|None = field(default=None)
    ext_expires_in: int|None = field(default=None)
    expires_on: int|None = field(default=None)
    not_before: int|None = field(default=None)
    resource: str|None = field(default=None)

    def __bool__(self) -> bool:
        return bool(self.access_token) and self.expires_on is not None

    def __str__(self) -> str:
        if self:
            return f"{self.token_type}<expires {self.expires_at.isoformat()}>"
        return "<unset>"

    @classmethod
    def from_response(cls, response: dict, now: datetime.datetime|None = None) -> Self:
        """
        Decode a token endpoint response.  When expires_on is missing (v2 endpoint)
        work it out from expires_in relative to now.
        """
        if not isinstance(response, dict):
            raise DecodeError(f"Token response is not a JSON object: {type(response).__name__}")
        access_token = response.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise DecodeError("Token response has no access_token")
        expires_in = _as_int("expires_in", response.get("expires_in"))
        expires_on = _as_int("expires_on", response.get("expires_on"))
        if expires_on is None:
            if expires_in is None:
                raise DecodeError("Token response has neither expires_on nor expires_in")
            issued = now if now is not None else _utcnow()
            expires_on = int(issued.timestamp()) + expires_in
        return cls(token_type=str(response.get("token_type") or "Bearer"),
                   access_token=access_token,
                   expires_in=expires_in,
                   ext_expires_in=_as_int("ext_expires_in", response.get("ext_expires_in")),
                   expires_on=expires_on,
                   not_before=_as_int("not_before", response.get("not_before")),
                   resource=response.get("resource"))

    @property
    def expires_at(self) -> datetime.datetime|None:
        if self.expires_on is None:
            return None
        return datetime.datetime.fromtimestamp(self.expires_on, datetime.timezone.utc)

    @property
    def valid_from(self) -> datetime.datetime|None:
        if self.not_before is None:
            return None
        return datetime.datetime.fromtimestamp(self.not_before, datetime.timezone.utc)

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"{self.token_type} {self.access_token}"

    def has_expired(self, now: datetime.datetime|None = None) -> bool:
        if not self:
            return True
        return (now or _utcnow()) >= self.expires_at

    def is_valid(self, now: datetime.datetime|None = None) -> bool:
        if not self:
            return False
        n = now or _utcnow()
        if self.valid_from is not None and n < self.valid_from:
            return False
        return n < self.expires_at

    def wants_to_be_refreshed(self, margin: datetime.timedelta = REFRESH_MARGIN,
                              now: datetime.datetime|None = None) -> bool:
        """
        True if unset, expired, or inside the margin before expiry.
        """
        if not self:
            return True
        return (now or _utcnow()) >= self.expires_at - margin
