"""
AI Schemas - Structured shapes of model output.

- actions: calendar mutations embedded in the assistant reply
"""

from app.ai.schemas.actions import (
    ActionType,
    Attendee,
    CalendarAction,
    CreateEventAction,
    DeleteEventAction,
    EventDateTime,
    EventDraft,
    EventTarget,
    EventUpdates,
    UpdateEventAction,
    action_name,
    parse_action,
)

__all__ = [
    "ActionType",
    "Attendee",
    "CalendarAction",
    "CreateEventAction",
    "DeleteEventAction",
    "EventDateTime",
    "EventDraft",
    "EventTarget",
    "EventUpdates",
    "UpdateEventAction",
    "action_name",
    "parse_action",
]
