"""
Base classes and interfaces for calendar backends.

This module defines the abstract contract the assistant relies on to read
and write calendar events. The Google Calendar client implements it; tests
substitute a mock.

Design Pattern: Strategy Pattern
================================
- CalendarBackend: Abstract base for calendar APIs (create/update/delete/list)
- The Action Executor only sees this interface, never HTTP details
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional, List, Dict, Any

if TYPE_CHECKING:
    from app.ai.schemas.actions import EventDraft, EventUpdates
    from app.environments.google.calendar.schemas import CalendarEventRef


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------
# Specific exceptions for backend operations.
# Using custom exceptions allows for precise error handling in routes.


class EnvironmentError(Exception):
    """Base exception for all environment-related errors."""
    pass


class AuthenticationError(EnvironmentError):
    """Raised when the caller's access token is missing or rejected."""
    pass


class TokenExpiredError(EnvironmentError):
    """Raised when an OAuth token has expired."""
    pass


class APIError(EnvironmentError):
    """Raised when an API call to the provider fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


# ---------------------------------------------------------------------------
# DATA STRUCTURES
# ---------------------------------------------------------------------------


@dataclass
class BatchItemResult:
    """
    Outcome of one item inside a batched call.

    Batches are best-effort: each item succeeds or fails on its own.
    """
    key: str
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# ABSTRACT BASE CLASSES
# ---------------------------------------------------------------------------


class CalendarBackend(ABC):
    """
    Abstract base class for calendar backends.

    Single-item calls raise APIError on failure. Batch calls never raise
    for item failures; they report them per item instead.
    """

    @abstractmethod
    async def create_event(self, draft: "EventDraft") -> Dict[str, Any]:
        """Create one event and return the created resource."""
        pass

    @abstractmethod
    async def create_events_batch(self, drafts: List["EventDraft"]) -> List[BatchItemResult]:
        """Create several events in one call, one result per draft (same order)."""
        pass

    @abstractmethod
    async def update_event(self, event_id: str, updates: "EventUpdates") -> Dict[str, Any]:
        """Patch an event with the given partial draft."""
        pass

    @abstractmethod
    async def delete_event(self, event_id: str) -> bool:
        """Delete one event."""
        pass

    @abstractmethod
    async def delete_events_batch(self, event_ids: List[str]) -> List[BatchItemResult]:
        """Delete several events in one call, one result per id (same order)."""
        pass

    @abstractmethod
    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: int = 500,
    ) -> List["CalendarEventRef"]:
        """List single event instances in [time_min, time_max), ordered by start."""
        pass
