"""
Google Calendar Schemas - Data structures for calendar operations.

These Pydantic models represent Google Calendar API responses in the
minimal projection the assistant works with. Start/end values are kept as
the raw strings Google returns, because action targets are matched
against them verbatim.

Reference: https://developers.google.com/calendar/api/v3/reference
"""

from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class EventTime(BaseModel):
    """
    Event start or end time.

    Google Calendar API returns times in one of two formats:
    - dateTime: For timed events (e.g., "2024-01-15T10:00:00-05:00")
    - date: For all-day events (e.g., "2024-01-15")
    """
    model_config = ConfigDict(populate_by_name=True)

    date_time: Optional[str] = Field(None, alias="dateTime")
    date: Optional[str] = Field(None)  # YYYY-MM-DD format for all-day events
    time_zone: Optional[str] = Field(None, alias="timeZone")

    def is_all_day(self) -> bool:
        """Check if this is an all-day event (date only, no time)."""
        return self.date is not None and self.date_time is None

    def key(self) -> Optional[str]:
        """``dateTime`` if present, else ``date`` - the value targets match on."""
        return self.date_time or self.date

    def get_datetime(self) -> Optional[datetime]:
        """Get the datetime, parsing date string if needed."""
        if self.date_time:
            return datetime.fromisoformat(self.date_time.replace("Z", "+00:00"))
        if self.date:
            return datetime.strptime(self.date, "%Y-%m-%d")
        return None


class EventAttendee(BaseModel):
    """A person invited to a calendar event."""
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(None, description="Attendee's email address")
    display_name: Optional[str] = Field(None, alias="displayName")
    response_status: Optional[str] = Field(None, alias="responseStatus")


class CalendarEventRef(BaseModel):
    """
    A Google Calendar event, reduced to what action resolution needs.

    Reference: https://developers.google.com/calendar/api/v3/reference/events
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., description="Unique event identifier")
    recurring_event_id: Optional[str] = Field(None, alias="recurringEventId")
    summary: Optional[str] = Field(None, description="Event title")
    description: Optional[str] = Field(None, description="Event description")
    location: Optional[str] = Field(None, description="Event location")

    start: Optional[EventTime] = Field(None, description="Event start time")
    end: Optional[EventTime] = Field(None, description="Event end time")

    attendees: Optional[List[EventAttendee]] = Field(None)
    organizer: Optional[Dict[str, Any]] = Field(None)

    def is_all_day(self) -> bool:
        """Check if this is an all-day event."""
        if self.start:
            return self.start.is_all_day()
        return False

    def start_key(self) -> Optional[str]:
        return self.start.key() if self.start else None

    def get_display_title(self) -> str:
        """Get a display-friendly title (with fallback)."""
        return self.summary or "(No title)"

    def to_prompt_dict(self) -> Dict[str, Any]:
        """Compact JSON-ready form embedded in the assistant prompt."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CalendarEventsResponse(BaseModel):
    """
    Response from the events.list API endpoint.

    Reference: https://developers.google.com/calendar/api/v3/reference/events/list
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    kind: str = Field(default="calendar#events")
    summary: Optional[str] = Field(None, description="Calendar name")
    time_zone: Optional[str] = Field(None, alias="timeZone")
    next_page_token: Optional[str] = Field(None, alias="nextPageToken")
    items: List[CalendarEventRef] = Field(default_factory=list)


class CalendarWindow(BaseModel):
    """The time window an event listing covered."""
    start: datetime
    end: datetime


class EventListing(BaseModel):
    """Events for one window, as returned by the listing endpoint."""
    window: CalendarWindow
    count: int
    events: List[CalendarEventRef]
