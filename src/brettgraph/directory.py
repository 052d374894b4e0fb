from dataclasses import dataclass, field
from typing import List
import datetime

from .resources import GraphResourceBase, GraphClientBound, parse_graph_datetime


@dataclass
class User(GraphResourceBase, GraphClientBound):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/user
    Only the default property set returned by /users is modelled.
    """
    id: str|None = field(default=None)
    businessPhones: List[str] = field(default_factory=list)
    displayName: str|None = field(default=None)
    givenName: str|None = field(default=None)
    jobTitle: str|None = field(default=None)
    mail: str|None = field(default=None)
    mobilePhone: str|None = field(default=None)
    officeLocation: str|None = field(default=None)
    preferredLanguage: str|None = field(default=None)
    surname: str|None = field(default=None)
    userPrincipalName: str|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.displayName}<{self.userPrincipalName}>"
        return "<empty>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def fixup(self) -> None:
        if self.businessPhones is None:
            self.businessPhones = []

    @property
    def short_name(self) -> str:
        """userPrincipalName without the domain part"""
        upn = self.userPrincipalName or ""
        return upn.split("@", 1)[0]

    @property
    def full_name(self) -> str:
        return " ".join(n for n in [self.givenName, self.surname] if n)

    @property
    def active_phone(self) -> str:
        """Mobile if there is one, otherwise the first business phone."""
        if self.mobilePhone:
            return self.mobilePhone
        return self.businessPhones[0] if self.businessPhones else ""

    def _identifier(self) -> str:
        i = self.id or self.userPrincipalName
        if not i:
            raise ValueError("User needs an id or userPrincipalName for this call")
        return str(i)

    def list_calendars(self):
        """Calendars of this user, see GraphClient.list_user_calendars"""
        i = self._identifier()
        return self.graph_client.list_user_calendars(i)

    def list_calendar_view(self, start: datetime.date, end: datetime.date):
        """Events of this user's default calendar, see GraphClient.list_calendar_view"""
        i = self._identifier()
        return self.graph_client.list_calendar_view(i, start, end)


class Users(List[User]):

    def by_mail(self, mail: str) -> User|None:
        m = str(mail).lower()
        for u in self:
            if u.mail and u.mail.lower() == m:
                return u
        return None

    def by_short_name(self, short_name: str) -> User|None:
        s = str(short_name).lower()
        for u in self:
            if u.short_name.lower() == s:
                return u
        return None

    def by_id(self, id: str) -> User|None:
        for u in self:
            if u.id == id:
                return u
        return None


@dataclass
class Group(GraphResourceBase, GraphClientBound):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/group
    """
    id: str|None = field(default=None)
    createdDateTime: datetime.datetime|str|None = field(default=None)
    description: str|None = field(default=None)
    displayName: str|None = field(default=None)
    groupTypes: List[str] = field(default_factory=list)
    mail: str|None = field(default=None)
    mailEnabled: bool|None = field(default=None)
    mailNickname: str|None = field(default=None)
    onPremisesLastSyncDateTime: datetime.datetime|str|None = field(default=None)
    onPremisesSecurityIdentifier: str|None = field(default=None)
    onPremisesSyncEnabled: bool|None = field(default=None)
    proxyAddresses: List[str] = field(default_factory=list)
    securityEnabled: bool|None = field(default=None)
    visibility: str|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.displayName}<{self.id}>"
        return "<empty>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def fixup(self) -> None:
        self.createdDateTime = parse_graph_datetime(self.createdDateTime)
        self.onPremisesLastSyncDateTime = parse_graph_datetime(self.onPremisesLastSyncDateTime)
        if self.groupTypes is None:
            self.groupTypes = []
        if self.proxyAddresses is None:
            self.proxyAddresses = []

    def to_base(self) -> dict:
        b = super().to_base()
        for k in ["createdDateTime", "onPremisesLastSyncDateTime"]:
            if b[k] is not None:
                b[k] = b[k].isoformat()
        return b

    @property
    def unified(self) -> bool:
        """Microsoft 365 group as opposed to a plain security group"""
        return "Unified" in self.groupTypes

    def list_members(self) -> Users:
        """
        https://learn.microsoft.com/en-us/graph/api/group-list-members
        """
        if not self.id:
            raise ValueError("Group::list_members must have a valid ID field")
        return self.graph_client.list_members_of_group(self.id)


class Groups(List[Group]):

    def by_display_name(self, name: str) -> Group|None:
        for g in self:
            if g.displayName == name:
                return g
        return None

    def by_mail(self, mail: str) -> Group|None:
        m = str(mail).lower()
        for g in self:
            if g.mail and g.mail.lower() == m:
                return g
        return None
