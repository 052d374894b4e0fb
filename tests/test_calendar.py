import datetime
from zoneinfo import ZoneInfo

from brettgraph import Calendar, Calendars, CalendarEvent, CalendarEvents, EventDateTime
from brettgraph.resources import parse_graph_datetime

CALENDARS = {"value": [
    {"id": "c1", "name": "Calendar", "color": "auto", "changeKey": "nfZyf7VcrEKLNoU37KWlkQAAA0x0+w==",
     "canShare": True, "canViewPrivateItems": True, "canEdit": True, "isDefaultCalendar": True,
     "owner": {"name": "Adele Vance", "address": "AdeleV@contoso.com"}},
    {"id": "c2", "name": "Birthdays", "canEdit": False, "isDefaultCalendar": False},
]}

EVENT = {
    "@odata.etag": "W/\"ZlnW4RIAV06KYYwlrfNZvQAALfZeRQ==\"",
    "id": "e1",
    "createdDateTime": "2017-04-15T03:00:50.7579581Z",
    "lastModifiedDateTime": "2017-04-15T03:00:51.245372Z",
    "subject": "Let's go for lunch",
    "bodyPreview": "Does late morning work for you?",
    "importance": "normal",
    "isAllDay": False,
    "isCancelled": False,
    "isOrganizer": True,
    "showAs": "busy",
    "type": "singleInstance",
    "responseStatus": {"response": "organizer", "time": "0001-01-01T00:00:00Z"},
    "start": {"dateTime": "2017-04-15T12:00:00.0000000", "timeZone": "Pacific/Auckland"},
    "end": {"dateTime": "2017-04-15T14:00:00.0000000", "timeZone": "Pacific Standard Time"},
    "location": {"displayName": "Harry's Bar"},
    "attendees": [{"type": "required", "status": {"response": "accepted", "time": "0001-01-01T00:00:00Z"},
                   "emailAddress": {"name": "Samantha Booth", "address": "samanthab@contoso.onmicrosoft.com"}}],
    "organizer": {"emailAddress": {"name": "Dana Swope", "address": "danas@contoso.onmicrosoft.com"}},
}


def test_parse_graph_datetime():
    assert(parse_graph_datetime("2017-04-15T12:00:00.0000000") == datetime.datetime(2017, 4, 15, 12))
    assert(parse_graph_datetime("2017-04-15T03:00:50.7579581Z") ==
           datetime.datetime(2017, 4, 15, 3, 0, 50, tzinfo=datetime.timezone.utc))
    assert(parse_graph_datetime(None) is None)


def test_calendars():
    cals = Calendars(Calendar.from_base(c) for c in CALENDARS["value"])
    assert(cals.default().id == "c1")
    assert(cals.by_name("Birthdays").canEdit is False)
    assert(cals[0].owner.address == "AdeleV@contoso.com")
    assert(cals[0].to_base()["owner"] == {"address": "AdeleV@contoso.com", "name": "Adele Vance"})
    assert(cals.by_name("nope") is None)


def test_event():
    e = CalendarEvent.from_base(EVENT)
    assert(e)
    assert(e.createdDateTime.tzinfo is not None)
    start, end = e.duration()
    # IANA zone resolves, Windows zone name is left naive
    assert(start == datetime.datetime(2017, 4, 15, 12, tzinfo=ZoneInfo("Pacific/Auckland")))
    assert(end == datetime.datetime(2017, 4, 15, 14))
    assert(e.end.timeZone == "Pacific Standard Time")
    assert(e.location_name == "Harry's Bar")
    assert(e.organizer.emailAddress.name == "Dana Swope")
    a = e.attendee("SamanthaB@contoso.onmicrosoft.com")
    assert(a.response == "accepted")
    assert(e.attendee("nobody@x.com") is None)


def test_event_to_base():
    b = CalendarEvent.from_base(EVENT).to_base()
    assert(b["start"] == {"dateTime": "2017-04-15T12:00:00", "timeZone": "Pacific/Auckland"})
    assert(b["createdDateTime"] == "2017-04-15T03:00:50Z")
    assert(b["organizer"] == {"emailAddress": {"address": "danas@contoso.onmicrosoft.com", "name": "Dana Swope"}})
    assert(b["attendees"][0]["emailAddress"]["address"] == "samanthab@contoso.onmicrosoft.com")
    again = CalendarEvent.from_base(b)
    assert(again == CalendarEvent.from_base(EVENT))


def test_event_date_time():
    edt = EventDateTime(dateTime="2024-01-02T09:30:00", timeZone="UTC")
    assert(edt.value() == datetime.datetime(2024, 1, 2, 9, 30, tzinfo=ZoneInfo("UTC")))
    assert(not EventDateTime())
    assert(EventDateTime().to_base() is None)
    assert(str(EventDateTime()) == "<empty>")


def test_events_between():
    events = CalendarEvents([
        CalendarEvent(id="a", subject="x", start={"dateTime": "2024-01-01T09:00:00"}),
        CalendarEvent(id="b", subject="y", start={"dateTime": "2024-01-02T09:00:00"}),
        CalendarEvent(id="c", subject="x"),
    ])
    hits = events.between(datetime.datetime(2024, 1, 1), datetime.datetime(2024, 1, 2))
    assert([e.id for e in hits] == ["a"])
    assert([e.id for e in events.by_subject("x")] == ["a", "c"])


def test_list_calendars_and_view(client, graph):
    graph.route("GET", "/users/AdeleV@contoso.com", body={"id": "u1", "userPrincipalName": "AdeleV@contoso.com"})
    graph.route("GET", "/users/u1/calendars", body=CALENDARS)
    graph.route("GET", "/users/u1/calendar/calendarview", body={"value": [EVENT]})
    user = client.get_user("AdeleV@contoso.com")
    cals = user.list_calendars()
    assert(len(cals) == 2)
    events = user.list_calendar_view(datetime.datetime(2017, 4, 15, 8, 30), datetime.date(2017, 4, 16))
    assert(len(events) == 1)
    assert(events[0].subject == "Let's go for lunch")
    req = graph.api_requests()[-1]
    assert(req.url.params["startdatetime"] == "2017-04-15T00:00:00")
    assert(req.url.params["enddatetime"] == "2017-04-16T00:00:00")
    assert(req.url.params["$top"] == "999")
    assert(graph.token_calls == 1)
