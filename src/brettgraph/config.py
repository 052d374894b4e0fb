"""
Configuration record for a GraphClient.
Decoding a config never touches the network, connecting is a separate
step done by GraphClient.from_config().
See https://learn.microsoft.com/en-us/entra/identity-platform/quickstart-register-app
for where the tenant ID, application (client) ID and client secret come from.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Self
import datetime
import json
import os

from .errors import ConfigurationError
from .token import REFRESH_MARGIN

LOGIN_BASE_URL = "https://login.microsoftonline.com"
BASE_URL = "https://graph.microsoft.com"
API_VERSION = "v1.0"
# httpx applies this to each phase (connect, read, write, pool acquire),
# not as one deadline for the whole call.
DEFAULT_TIMEOUT = 10.0

# accepted spellings for each field, the CamelCase ones match the
# record layout older configs were written with
_KEYS = {
    "tenant_id": ("tenant_id", "TenantID", "tenantId"),
    "application_id": ("application_id", "ApplicationID", "applicationId", "client_id"),
    "client_secret": ("client_secret", "ClientSecret", "clientSecret"),
    "login_base_url": ("login_base_url", "LoginBaseURL"),
    "base_url": ("base_url", "BaseURL"),
    "api_version": ("api_version", "APIVersion"),
    "timeout": ("timeout", "Timeout"),
}


@dataclass
class GraphClientConfig():
    tenant_id: str = field(default="")
    application_id: str = field(default="")
    client_secret: str = field(default="", repr=False)
    login_base_url: str = field(default=LOGIN_BASE_URL)
    base_url: str = field(default=BASE_URL)
    api_version: str = field(default=API_VERSION)
    timeout: float = field(default=DEFAULT_TIMEOUT)
    refresh_margin: datetime.timedelta = field(default=REFRESH_MARGIN)

    def __bool__(self) -> bool:
        return bool(self.tenant_id) and bool(self.application_id) and bool(self.client_secret)

    def __str__(self) -> str:
        return f"{self.tenant_id}:{self.application_id}@{self.base_url}/{self.api_version}"

    def validate(self) -> Self:
        """Raise ConfigurationError for the first required field that is empty."""
        if not self.tenant_id:
            raise ConfigurationError("TenantID is empty")
        if not self.application_id:
            raise ConfigurationError("ApplicationID is empty")
        if not self.client_secret:
            raise ConfigurationError("ClientSecret is empty")
        return self

    def to_base(self) -> dict:
        """
        Dict suitable for dumping into a json config file.
        The secret is included, treat the output accordingly.
        """
        b = asdict(self)
        b["refresh_margin"] = self.refresh_margin.total_seconds()
        return b

    @classmethod
    def from_dict(cls, config: dict) -> Self:
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config must be a mapping, got {type(config).__name__}")
        kwargs = {}
        for name, keys in _KEYS.items():
            for k in keys:
                v = config.get(k, None)
                if v is not None:
                    kwargs[name] = v
                    break
        for name in ("tenant_id", "application_id", "client_secret",
                     "login_base_url", "base_url", "api_version"):
            if name in kwargs:
                kwargs[name] = str(kwargs[name])
        try:
            if "timeout" in kwargs:
                kwargs["timeout"] = float(kwargs["timeout"])
            margin = config.get("refresh_margin", None)
            if margin is not None:
                kwargs["refresh_margin"] = (margin if isinstance(margin, datetime.timedelta)
                                            else datetime.timedelta(seconds=float(margin)))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid numeric config value: {exc}") from exc
        return cls(**kwargs)

    @classmethod
    def from_json(cls, data: str|bytes) -> Self:
        try:
            j = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Config is not valid JSON: {exc}") from exc
        return cls.from_dict(j)

    @classmethod
    def from_file(cls, path: Path|str) -> Self:
        p = path if isinstance(path, Path) else Path(str(path))
        try:
            with open(p.resolve(), 'r', encoding='utf-8') as f:
                data = f.read()
        except OSError as exc:
            raise ConfigurationError(f"Unable to read config file {p}: {exc}") from exc
        return cls.from_json(data)

    @classmethod
    def from_env(cls, prefix: str = "MSGraph", environ: dict|None = None) -> Self:
        """
        Read {prefix}TenantID, {prefix}ApplicationID and {prefix}ClientSecret.
        """
        env = os.environ if environ is None else environ
        return cls(tenant_id=env.get(f"{prefix}TenantID", ""),
                   application_id=env.get(f"{prefix}ApplicationID", ""),
                   client_secret=env.get(f"{prefix}ClientSecret", ""))
