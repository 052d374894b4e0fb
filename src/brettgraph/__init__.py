"""
A small client for the Microsoft Graph API covering the directory (users, groups),
calendars and sending mail.
The goal is to hide the app-only token handling and give typed structures for
the JSON requests/responses.

Python dataclasses are used for the resource structs and most of the logic is
translating between those and the raw dicts.  Field names follow Graph's own
camelCase so the JSON maps across without renaming.

Every call on a GraphClient is serialised through one lock that also covers
refreshing the token, so a client can be shared between threads.
"""
from .errors import (GraphError, ConfigurationError, NetworkError, RemoteError,
                     DecodeError, ArgumentCountError)
from .token import Token, REFRESH_MARGIN
from .config import GraphClientConfig
from .directory import User, Users, Group, Groups
from .calendar import Calendar, Calendars, EventDateTime, Attendee, CalendarEvent, CalendarEvents
from .mail import EmailAddress, Recipient, MessageBody, Attachment, Message, Mail
from .access import GraphClient, MAX_PAGE_SIZE
