"""
Authenticated access to Microsoft Graph with app-only (client credentials) auth.
See https://learn.microsoft.com/en-us/graph/auth-v2-service for registering an
application and granting it the directory, calendar and mail permissions.

All API calls on a client go through one lock.  The lock is held across the
token check, a token refresh if one is due, the HTTP round trip and decoding
the response.  So no call ever sees a half replaced token and two refreshes
never overlap, at the cost of calls on the same client running one at a time.
"""
from functools import wraps
from urllib.parse import quote
import datetime
import threading

import httpx
import structlog

from .config import GraphClientConfig
from .errors import ConfigurationError, NetworkError, RemoteError, DecodeError, GraphError
from .token import Token
from .directory import User, Users, Group, Groups
from .calendar import Calendar, Calendars, CalendarEvent, CalendarEvents
from .mail import Mail

logger = structlog.get_logger(__name__)

# Graph caps $top at 999 for most collections.  No paging is done so
# anything past this is silently dropped.
MAX_PAGE_SIZE = 999

USER_ODATA_TYPE = "#microsoft.graph.user"


def synchronized(f):
    """
    Run the decorated client method while holding the client's API call lock.
    The lock is not reentrant, a synchronized method must not call another one.
    """
    @wraps(f)
    def wrapped(self, *args, **kwargs):
        with self._api_call:
            return f(self, *args, **kwargs)
    return wrapped


class GraphClient():
    """
    A Graph API connection.  Creating one grabs a token straight away and
    raises if that fails:

        client = GraphClient(tenant_id, application_id, client_secret)
        for u in client.list_users():
            print(u.full_name)

    Or from a config record, which is decoded first and connected second:

        config = GraphClientConfig.from_file("graph.json")
        client = GraphClient.from_config(config)

    transport is handed to httpx, tests use it to plug in an httpx.MockTransport.
    """

    def __init__(self, tenant_id: str = "", application_id: str = "", client_secret: str = "", *,
                 config: GraphClientConfig|None = None,
                 transport: httpx.BaseTransport|None = None,
                 connect: bool = True) -> None:
        if config is None:
            config = GraphClientConfig(tenant_id=tenant_id, application_id=application_id,
                                       client_secret=client_secret)
        self._config = config.validate()
        self._api_call = threading.Lock()
        self._token = Token()
        self._http = httpx.Client(timeout=self._config.timeout, transport=transport)
        if connect:
            try:
                self.connect()
            except GraphError:
                self.close()
                raise

    @classmethod
    def from_config(cls, config: GraphClientConfig|dict,
                    transport: httpx.BaseTransport|None = None) -> "GraphClient":
        """
        Two steps: build the client from the decoded config without any I/O,
        then connect, which raises if no token can be had.
        """
        c = config if isinstance(config, GraphClientConfig) else GraphClientConfig.from_dict(config)
        client = cls(config=c, transport=transport, connect=False)
        try:
            client.connect()
        except GraphError:
            client.close()
            raise
        return client

    def __bool__(self) -> bool:
        # no lock, this may be rendered while a call holds it
        return self._token.is_valid()

    def __str__(self) -> str:
        state = "Connected" if self._token.is_valid() else "Disconnected"
        return f"{state}:{str(self._config)}"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def __enter__(self) -> "GraphClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    @property
    def config(self) -> GraphClientConfig:
        return self._config

    @property
    def token(self) -> Token:
        """Copy of the current token"""
        with self._api_call:
            return Token(**vars(self._token))

    @property
    def connected(self) -> bool:
        with self._api_call:
            return self._token.is_valid()

    @synchronized
    def connect(self) -> bool:
        """Grab a fresh token regardless of the state of the current one."""
        self._refresh_token()
        return self._token.is_valid()

    @synchronized
    def refresh_token(self) -> None:
        self._refresh_token()

    def _refresh_token(self) -> None:
        """
        Client credentials grant against the v1 token endpoint.
        Caller must hold the lock.  On failure the old token stays in place.
        """
        if not self._config.tenant_id:
            raise ConfigurationError("Tenant ID is empty")
        url = f"{self._config.login_base_url.rstrip('/')}/{quote(self._config.tenant_id)}/oauth2/token"
        data = {
            "grant_type": "client_credentials",
            "client_id": self._config.application_id,
            "client_secret": self._config.client_secret,
            "resource": self._config.base_url,
        }
        try:
            response = self._perform("POST", url, data=data)
            token = Token.from_response(response)
        except GraphError as exc:
            logger.warning("graph.token_refresh_failed", tenant_id=self._config.tenant_id,
                           error_type=type(exc).__name__)
            raise
        self._token = token
        logger.info("graph.token_refreshed", tenant_id=self._config.tenant_id,
                    expires_at=token.expires_at.isoformat())

    def _perform(self, method: str, url: str, **kwargs) -> dict:
        """
        Send a request and decode the JSON body.  Any non-2xx is an error
        carrying the body, as that is where Graph explains what went wrong.
        """
        try:
            response = self._http.request(method, url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(f"HTTP request error: {exc} of request: {method} {url}") from exc
        if not response.is_success:
            logger.warning("graph.remote_error", method=method, url=str(response.request.url),
                           status_code=response.status_code)
            raise RemoteError(response.status_code, response.text, str(response.request.url))
        if not response.content.strip():
            # sendMail and friends answer 202 with nothing, a GET must have a body
            if method.upper() == "GET":
                raise DecodeError(f"Empty response body of {method} {url}")
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Unable to decode response of {method} {url}: {exc}") from exc

    @synchronized
    def execute(self, method: str, path: str, params: dict|None = None, json: dict|None = None) -> dict:
        """
        Make an API call.  path is relative to the API version and needs the
        leading slash, e.g. '/users'.  GETs always ask for MAX_PAGE_SIZE results.
        """
        if self._token.wants_to_be_refreshed(self._config.refresh_margin):
            self._refresh_token()
        url = f"{self._config.base_url.rstrip('/')}/{self._config.api_version}{path}"
        headers = {
            "Authorization": self._token.authorization,
            "Content-Type": "application/json",
        }
        query = dict(params or {})
        if method.upper() == "GET":
            query["$top"] = str(MAX_PAGE_SIZE)
        logger.debug("graph.api_call", method=method, path=path)
        return self._perform(method, url, params=query, headers=headers, json=json)

    def _get_values(self, path: str, params: dict|None = None) -> list:
        response = self.execute("GET", path, params)
        values = response.get("value", []) if isinstance(response, dict) else None
        if not isinstance(values, list) or not all(isinstance(v, dict) for v in values):
            raise DecodeError(f"Expected a list in 'value' of {path}, got {type(values).__name__}")
        return values

    @staticmethod
    def _decode(resource_cls, base):
        try:
            return resource_cls.from_base(base)
        except (TypeError, ValueError, AttributeError) as exc:
            raise DecodeError(f"Unable to decode {resource_cls.__name__}: {exc}") from exc

    def _bind(self, resource):
        resource.set_graph_client(self)
        return resource

    # ========== Directory ==========

    def list_users(self) -> Users:
        """
        https://learn.microsoft.com/en-us/graph/api/user-list
        """
        return Users(self._bind(self._decode(User, u)) for u in self._get_values("/users"))

    def get_user(self, identifier: str) -> User:
        """
        https://learn.microsoft.com/en-us/graph/api/user-get
        identifier is either the user ID or the userPrincipalName
        """
        response = self.execute("GET", f"/users/{quote(str(identifier), safe='@')}")
        if not isinstance(response, dict) or not response:
            raise DecodeError(f"Expected a user object for {identifier}, got {response!r}")
        return self._bind(self._decode(User, response))

    def list_groups(self) -> Groups:
        """
        https://learn.microsoft.com/en-us/graph/api/group-list
        """
        return Groups(self._bind(self._decode(Group, g)) for g in self._get_values("/groups"))

    def list_members_of_group(self, group_id: str) -> Users:
        """
        https://learn.microsoft.com/en-us/graph/api/group-list-members
        Members can also be groups, devices etc. which are skipped.
        """
        members = self._get_values(f"/groups/{quote(str(group_id))}/members")
        return Users(self._bind(self._decode(User, m)) for m in members
                     if m.get("@odata.type", USER_ODATA_TYPE) == USER_ODATA_TYPE)

    # ========== Calendar ==========

    def list_user_calendars(self, identifier: str) -> Calendars:
        """
        https://learn.microsoft.com/en-us/graph/api/user-list-calendars
        """
        path = f"/users/{quote(str(identifier), safe='@')}/calendars"
        return Calendars(self._decode(Calendar, c) for c in self._get_values(path))

    def list_calendar_view(self, identifier: str, start: datetime.date, end: datetime.date) -> CalendarEvents:
        """
        https://learn.microsoft.com/en-us/graph/api/calendar-list-calendarview
        Events of the user's default calendar between start and end.  Only the
        date part counts, both bounds are taken at midnight.
        """
        path = f"/users/{quote(str(identifier), safe='@')}/calendar/calendarview"
        params = {
            "startdatetime": start.strftime("%Y-%m-%dT00:00:00"),
            "enddatetime": end.strftime("%Y-%m-%dT00:00:00"),
        }
        return CalendarEvents(self._decode(CalendarEvent, e) for e in self._get_values(path, params))

    # ========== Mail ==========

    def send_mail(self, mail: Mail, user: str|None = None) -> None:
        """
        https://learn.microsoft.com/en-us/graph/api/user-sendmail
        Sends as user, defaulting to the mail's from address.  App-only auth
        has no /me so one of the two is needed.
        """
        sender = user or mail.message.sender.emailAddress.address
        if not sender:
            raise ValueError("GraphClient::send_mail needs a user or a from address on the mail")
        if not mail:
            raise ValueError("GraphClient::send_mail needs at least one recipient")
        self.execute("POST", f"/users/{quote(str(sender), safe='@')}/sendMail", json=mail.to_base())
        logger.info("graph.mail_sent", sender=sender,
                    recipients=len(mail.message.toRecipients) + len(mail.message.ccRecipients)
                    + len(mail.message.bccRecipients))
