from dataclasses import dataclass, field, asdict
from typing import List, Tuple
import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .resources import GraphResourceBase, parse_graph_datetime, format_graph_datetime
from .mail import EmailAddress, Recipient


@dataclass
class Calendar(GraphResourceBase):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/calendar
    """
    id: str|None = field(default=None)
    name: str|None = field(default=None)
    color: str|None = field(default=None)
    changeKey: str|None = field(default=None)
    canEdit: bool|None = field(default=None)
    canShare: bool|None = field(default=None)
    canViewPrivateItems: bool|None = field(default=None)
    isDefaultCalendar: bool|None = field(default=None)
    owner: EmailAddress|dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        if self:
            return f"{self.name}<{self.id}>"
        return "<empty>"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def fixup(self) -> None:
        if self.owner is not None and not isinstance(self.owner, EmailAddress):
            self.owner = EmailAddress.from_base(self.owner)

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['owner'] = self.owner.to_base() if self.owner is not None else None
        return b


class Calendars(List[Calendar]):

    def by_name(self, name: str) -> Calendar|None:
        for c in self:
            if c.name == name:
                return c
        return None

    def default(self) -> Calendar|None:
        for c in self:
            if c.isDefaultCalendar:
                return c
        return None


@dataclass
class EventDateTime(GraphResourceBase):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/datetimetimezone
    Graph gives a naive local dateTime plus a separate timeZone name.
    The name may be IANA or a Windows one ("Pacific Standard Time"), only
    the former can be resolved into a ZoneInfo so keep the raw string.
    """
    dateTime: datetime.datetime|str|None = field(default=None)
    timeZone: str|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return self.dateTime is not None

    def __str__(self) -> str:
        s = "<empty>"
        if self.dateTime:
            s = str(self.dateTime)
        if self.timeZone:
            s = f'{s}:{self.timeZone}'
        return s

    def fixup(self) -> None:
        if self.dateTime is not None and not isinstance(self.dateTime, datetime.datetime):
            self.dateTime = parse_graph_datetime(self.dateTime)

    @property
    def zone(self) -> ZoneInfo|None:
        if not self.timeZone:
            return None
        try:
            return ZoneInfo(self.timeZone)
        except (ZoneInfoNotFoundError, ValueError):
            return None

    def value(self) -> datetime.datetime|None:
        """
        The dateTime made timezone aware where the zone can be resolved,
        otherwise left naive.
        """
        if self.dateTime is None:
            return None
        z = self.zone
        if z is not None and self.dateTime.tzinfo is None:
            return self.dateTime.replace(tzinfo=z)
        return self.dateTime

    def to_base(self) -> dict|None:
        self.fixup()
        if self.dateTime is None:
            return None
        base = {'dateTime': self.dateTime.replace(tzinfo=None).isoformat()}
        if self.timeZone:
            base['timeZone'] = self.timeZone
        return base


@dataclass
class Attendee(GraphResourceBase):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/attendee
    """
    type: str|None = field(default=None)
    status: dict|None = field(default=None)
    emailAddress: EmailAddress|dict|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __str__(self) -> str:
        return f"{str(self.emailAddress)}:{self.response}"

    def fixup(self) -> None:
        if self.emailAddress is not None and not isinstance(self.emailAddress, EmailAddress):
            self.emailAddress = EmailAddress.from_base(self.emailAddress)

    @property
    def response(self) -> str:
        """none, organizer, tentativelyAccepted, accepted, declined or notResponded"""
        return (self.status or {}).get("response", "none")

    def to_base(self) -> dict:
        self.fixup()
        b = asdict(self)
        b['emailAddress'] = self.emailAddress.to_base() if self.emailAddress is not None else None
        return b


@dataclass
class CalendarEvent(GraphResourceBase):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/event
    """
    id: str|None = field(default=None)
    createdDateTime: datetime.datetime|str|None = field(default=None)
    lastModifiedDateTime: datetime.datetime|str|None = field(default=None)
    changeKey: str|None = field(default=None)
    categories: List[str]|None = field(default=None)
    originalStartTimeZone: str|None = field(default=None)
    originalEndTimeZone: str|None = field(default=None)
    responseStatus: dict|None = field(default=None)
    iCalUId: str|None = field(default=None)
    reminderMinutesBeforeStart: int|None = field(default=None)
    isReminderOn: bool|None = field(default=None)
    hasAttachments: bool|None = field(default=None)
    subject: str|None = field(default=None)
    bodyPreview: str|None = field(default=None)
    importance: str|None = field(default=None)
    sensitivity: str|None = field(default=None)
    start: EventDateTime|dict|None = field(default=None)
    end: EventDateTime|dict|None = field(default=None)
    location: dict|None = field(default=None)
    isAllDay: bool|None = field(default=None)
    isCancelled: bool|None = field(default=None)
    isOrganizer: bool|None = field(default=None)
    seriesMasterId: str|None = field(default=None)
    showAs: str|None = field(default=None)
    type: str|None = field(default=None)
    attendees: List[Attendee|dict]|None = field(default=None)
    organizer: Recipient|dict|None = field(default=None)
    webLink: str|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.id)

    def __str__(self) -> str:
        ret = "<empty>"
        if self:
            start, end = self.duration()
            ret = f"{self.subject}<{self.id}>"
            if start:
                ret += f"({str(start)}-->{str(end)})"
        return ret

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    def fixup(self) -> None:
        self.createdDateTime = parse_graph_datetime(self.createdDateTime)
        self.lastModifiedDateTime = parse_graph_datetime(self.lastModifiedDateTime)
        if self.start is not None and not isinstance(self.start, EventDateTime):
            self.start = EventDateTime.from_base(self.start)
        if self.end is not None and not isinstance(self.end, EventDateTime):
            self.end = EventDateTime.from_base(self.end)
        if self.organizer is not None and not isinstance(self.organizer, Recipient):
            self.organizer = Recipient.from_base(self.organizer)
        if self.attendees is not None:
            self.attendees = [a if isinstance(a, Attendee) else Attendee.from_base(a) for a in self.attendees]

    @property
    def location_name(self) -> str:
        return (self.location or {}).get("displayName", "")

    def duration(self) -> Tuple[datetime.datetime|None, datetime.datetime|None]:
        """
        Start and end, timezone aware where Graph gave a resolvable zone.
        """
        start = self.start.value() if self.start else None
        end = self.end.value() if self.end else None
        return (start, end)

    def attendee(self, address: str) -> Attendee|None:
        a = str(address).lower()
        for att in self.attendees or []:
            if att.emailAddress and att.emailAddress.address.lower() == a:
                return att
        return None

    def to_base(self) -> dict:
        """
        Put the datetimes back into the string form Graph uses.
        """
        self.fixup()
        b = asdict(self)
        b['createdDateTime'] = format_graph_datetime(self.createdDateTime)
        b['lastModifiedDateTime'] = format_graph_datetime(self.lastModifiedDateTime)
        b['start'] = self.start.to_base() if self.start else None
        b['end'] = self.end.to_base() if self.end else None
        b['organizer'] = self.organizer.to_base() if self.organizer is not None else None
        if self.attendees is not None:
            b['attendees'] = [a.to_base() for a in self.attendees]
        return b


class CalendarEvents(List[CalendarEvent]):

    def between(self, start: datetime.datetime, end: datetime.datetime) -> "CalendarEvents":
        """
        Events starting within [start, end).  Naive bounds only compare
        against naive event times and aware against aware.
        """
        ret = CalendarEvents()
        for e in self:
            s, _ = e.duration()
            if s is None or (s.tzinfo is None) != (start.tzinfo is None):
                continue
            if start <= s < end:
                ret.append(e)
        return ret

    def by_subject(self, subject: str) -> "CalendarEvents":
        return CalendarEvents(e for e in self if e.subject == subject)
