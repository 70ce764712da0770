"""
Assistant schemas - Pydantic models for the assistant endpoints.
These define the request/response formats for range inference, the
streamed chat reply and action execution.
"""

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from app.environments.google.calendar.schemas import CalendarEventRef


# ---------------------------------------------------------------------------
# CONVERSATION
# ---------------------------------------------------------------------------

class ConversationMessage(BaseModel):
    """
    One message of the chat transcript.

    The client holds the transcript and re-sends it every turn; nothing is
    persisted server-side.
    """
    role: Literal["user", "assistant"]
    content: str


# ---------------------------------------------------------------------------
# REQUEST SCHEMAS (what the client sends)
# ---------------------------------------------------------------------------

class RangeRequest(BaseModel):
    """
    Schema for the range inference endpoint.

    Example request body:
    {
        "query": "What do I have in June and September?",
        "today": "2025-01-10",
        "context": [{"role": "user", "content": "hi"}]
    }
    """
    query: str = Field(..., description="User's question")
    today: Optional[date] = Field(None, description="Reference date; defaults to today in the user's timezone")
    timezone: Optional[str] = Field(None, description="IANA timezone of the user")
    context: List[ConversationMessage] = Field(default_factory=list, description="Conversation so far")


class StreamRequest(BaseModel):
    """
    Schema for the streamed chat reply.

    Example request body:
    {
        "query": "Add lunch with Sam on July 1st",
        "events": [...],
        "context": [...]
    }
    """
    query: str = Field(..., min_length=1, description="User's message")
    events: List[CalendarEventRef] = Field(default_factory=list, description="Events of the fetched window")
    context: List[ConversationMessage] = Field(default_factory=list, description="Conversation so far")
    timezone: Optional[str] = Field(None, description="IANA timezone of the user")


class ExecuteRequest(BaseModel):
    """
    Schema for executing the actions of one reply.

    ``events`` is the snapshot the client fetched for this turn; update and
    delete targets without an id are resolved against it.
    """
    actions: List[Dict[str, Any]] = Field(default_factory=list)
    events: List[CalendarEventRef] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# RESPONSE SCHEMAS (what the API returns)
# ---------------------------------------------------------------------------

class ExecutionEntryResponse(BaseModel):
    """Outcome of one action."""
    action: str
    status: str
    event_id: Optional[str] = None
    summary: Optional[str] = None
    message: Optional[str] = None
    batched: bool = False
    note: str


class ExecutionLogResponse(BaseModel):
    """Outcome of all actions of one reply."""
    entries: List[ExecutionEntryResponse]
    refreshed: bool
