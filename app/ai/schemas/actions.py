"""
Calendar Action Schemas - typed shapes of the actions the assistant emits.

The model embeds calendar mutations in its reply as JSON. Three kinds exist,
discriminated by the ``action`` field:

```json
{"action": "create_event", "event": {...}, "scope": "instance"}
{"action": "update_event", "target": {...}, "updates": {...}}
{"action": "delete_event", "target": {"summary": "Daily Standup"}, "scope": "series"}
```

The extractor forwards the payloads untouched to the client; these models
are used where an action is about to be executed, so that a payload which
does not fit the schema is rejected before any calendar call is made.

Usage:
======
```python
from app.ai.schemas.actions import parse_action

action = parse_action({"action": "delete_event", "target": {"id": "abc"}})
if action is None:
    ...  # schema-violating payload, skip it
```
"""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)


logger = logging.getLogger("calendar_assistant.ai.actions")

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Google accepts at most a handful of RRULE/EXDATE lines per event
MAX_RECURRENCE_RULES = 4


class ActionType(str, Enum):
    """Kinds of calendar mutation the assistant can request."""
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"


# ---------------------------------------------------------------------------
# EVENT DRAFT
# ---------------------------------------------------------------------------

class EventDateTime(BaseModel):
    """
    Start or end of an event draft.

    Either ``date`` (all-day, YYYY-MM-DD) or ``dateTime`` (RFC3339, zoned
    or with an explicit ``timeZone``) must be present.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: Optional[str] = None
    date_time: Optional[str] = Field(None, alias="dateTime")
    time_zone: Optional[str] = Field(None, alias="timeZone")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not _DATE_RE.match(v):
            raise ValueError("date must be YYYY-MM-DD")
        datetime.strptime(v, "%Y-%m-%d")
        return v

    @field_validator("date_time")
    @classmethod
    def validate_date_time(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v

    @model_validator(mode="after")
    def require_one_form(self) -> "EventDateTime":
        if not self.date and not self.date_time:
            raise ValueError("either date or dateTime is required")
        return self

    def is_all_day(self) -> bool:
        return self.date is not None and self.date_time is None

    def key(self) -> str:
        """Value used when matching against an existing event's start."""
        return self.date_time or self.date or ""


class Attendee(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str


class EventUpdates(BaseModel):
    """Partial event draft - only the fields being changed."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    summary: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventDateTime] = None
    end: Optional[EventDateTime] = None
    attendees: Optional[List[Attendee]] = None
    recurrence: Optional[List[str]] = Field(None, max_length=MAX_RECURRENCE_RULES)

    def has_changes(self) -> bool:
        return bool(self.to_api_body())

    def to_api_body(self) -> Dict[str, Any]:
        """Serialize to the Google Calendar API field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EventDraft(EventUpdates):
    """A complete event to create."""

    summary: str = Field(..., min_length=1)
    start: EventDateTime
    end: EventDateTime

    @model_validator(mode="after")
    def same_shape_family(self) -> "EventDraft":
        if self.start.is_all_day() != self.end.is_all_day():
            raise ValueError("start and end must both be dates or both be dateTimes")
        return self


class EventTarget(BaseModel):
    """
    Identifies an existing event.

    ``id`` is preferred; ``summary`` (+ optional ``start``) is a best-effort
    match key against the events the client currently holds.
    """
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    summary: Optional[str] = None
    start: Optional[str] = None

    @field_validator("start", mode="before")
    @classmethod
    def flatten_start(cls, v: Any) -> Any:
        # Models sometimes echo the {"dateTime": ...} object instead of a string
        if isinstance(v, dict):
            return v.get("dateTime") or v.get("date")
        return v

    @model_validator(mode="after")
    def require_key(self) -> "EventTarget":
        if not self.id and not self.summary:
            raise ValueError("target needs an id or a summary")
        return self


# ---------------------------------------------------------------------------
# ACTION UNION
# ---------------------------------------------------------------------------

Scope = Literal["instance", "series"]


class CreateEventAction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["create_event"] = "create_event"
    event: EventDraft
    scope: Optional[Scope] = None


class UpdateEventAction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["update_event"] = "update_event"
    target: EventTarget
    updates: EventUpdates
    scope: Optional[Scope] = None


class DeleteEventAction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    action: Literal["delete_event"] = "delete_event"
    target: EventTarget
    scope: Optional[Scope] = None


CalendarAction = Annotated[
    Union[CreateEventAction, UpdateEventAction, DeleteEventAction],
    Field(discriminator="action"),
]

_action_adapter = TypeAdapter(CalendarAction)


def action_name(payload: Dict[str, Any]) -> Optional[str]:
    """The action tag of a raw payload (``action`` wins over ``type``)."""
    name = payload.get("action") or payload.get("type")
    return name if isinstance(name, str) else None


def parse_action(payload: Dict[str, Any]) -> Optional[Union[CreateEventAction, UpdateEventAction, DeleteEventAction]]:
    """
    Validate a raw action payload against the typed union.

    Args:
        payload: Action dict as extracted from the model reply

    Returns:
        The typed action, or None if the payload does not fit the schema
    """
    if not isinstance(payload, dict):
        return None

    name = action_name(payload)
    if name not in {t.value for t in ActionType}:
        logger.debug(f"Unknown action kind: {name!r}")
        return None

    try:
        return _action_adapter.validate_python({**payload, "action": name})
    except ValidationError as e:
        logger.debug(f"Action failed validation: {e.error_count()} errors")
        return None
