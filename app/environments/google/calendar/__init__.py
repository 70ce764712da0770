"""
Google Calendar Module - read and write events on the user's calendar.

Usage:
    from app.environments.google.calendar import GoogleCalendarClient

    client = GoogleCalendarClient(access_token="ya29.xxx")
    events = await client.list_events(time_min, time_max)
"""

from app.environments.google.calendar.client import GoogleCalendarClient
from app.environments.google.calendar.schemas import (
    CalendarEventRef,
    CalendarEventsResponse,
    CalendarWindow,
    EventAttendee,
    EventListing,
    EventTime,
)

__all__ = [
    "GoogleCalendarClient",
    "CalendarEventRef",
    "CalendarEventsResponse",
    "CalendarWindow",
    "EventAttendee",
    "EventListing",
    "EventTime",
]
