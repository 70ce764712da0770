"""
Action Executor - apply the actions of one reply to the calendar.

Takes the action payloads from the actions frame and the events snapshot
fetched for the turn, and turns them into backend calls.

Resolution:
===========
update_event / delete_event targets are resolved in this order:
1. ``target.id`` when given
2. first snapshot event whose summary equals ``target.summary`` and, when
   ``target.start`` is given, whose start (dateTime or date) matches it
   With ``scope: "series"`` a matched recurring instance resolves to its
   series id (``recurringEventId``).
No match means the action is reported as unresolved and not attempted.

Dispatch:
=========
- 2+ create_event actions -> one create_events_batch call
- 2+ resolved delete_event actions -> one delete_events_batch call
- everything else -> one call per action, in array order
Batches run first. Every action succeeds or fails on its own; nothing is
rolled back. After the whole list is processed the calendar view is asked
to refresh, because the Calendar API (not local state) is the truth.

Usage:
======
    executor = ActionExecutor(GoogleCalendarClient(token), on_refresh=reload)
    log = await executor.execute(actions, known_events)
    for note in log.notes():
        print(note)
"""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from app.ai.schemas.actions import (
    CreateEventAction,
    DeleteEventAction,
    EventTarget,
    UpdateEventAction,
    action_name,
    parse_action,
)
from app.environments.base import BatchItemResult, CalendarBackend
from app.environments.google.calendar.schemas import CalendarEventRef


logger = logging.getLogger("calendar_assistant.services.executor")

RefreshCallback = Callable[[], Union[None, Awaitable[None]]]


class ExecutionStatus(str, Enum):
    """Outcome of one action."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    UNRESOLVED = "unresolved"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass
class ExecutionEntry:
    """What happened to one action, with the note shown in the chat."""
    action: str
    status: ExecutionStatus
    event_id: Optional[str] = None
    summary: Optional[str] = None
    message: Optional[str] = None
    batched: bool = False

    @property
    def note(self) -> str:
        if self.status == ExecutionStatus.CREATED:
            return f"✅ Created event: {self.summary or self.event_id}"
        if self.status == ExecutionStatus.UPDATED:
            return f"🛠 Updated event {self.event_id}"
        if self.status == ExecutionStatus.DELETED:
            return f"🗑 Deleted event {self.event_id}"
        if self.status == ExecutionStatus.UNRESOLVED:
            return "⚠ Could not resolve event to update/delete."
        if self.status == ExecutionStatus.INVALID:
            return f"⚠ Skipped invalid action ({self.action})."
        return f"❌ Action failed ({self.action}): {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "status": self.status.value,
            "event_id": self.event_id,
            "summary": self.summary,
            "message": self.message,
            "batched": self.batched,
            "note": self.note,
        }


@dataclass
class ExecutionLog:
    """
    Outcome of all actions of one reply, in action order.

    ``refreshed`` is True once the calendar view was told to reload.
    """
    entries: List[ExecutionEntry] = field(default_factory=list)
    refreshed: bool = False

    def notes(self) -> List[str]:
        return [entry.note for entry in self.entries]

    def with_status(self, status: ExecutionStatus) -> List[ExecutionEntry]:
        return [entry for entry in self.entries if entry.status == status]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "refreshed": self.refreshed,
        }


# ---------------------------------------------------------------------------
# TARGET RESOLUTION
# ---------------------------------------------------------------------------

def _parse_instant(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo is not None else None


def _pad_results(results: Sequence[BatchItemResult], keys: List[str]) -> List[BatchItemResult]:
    """One result per key; items the backend did not report on count as failed."""
    padded = list(results)
    if len(padded) < len(keys):
        logger.warning(f"Batch call returned {len(padded)} results for {len(keys)} items")
        padded.extend(
            BatchItemResult(key=key, success=False, error="No result returned by batch call")
            for key in keys[len(padded):]
        )
    return padded


def start_matches(target_start: str, event: CalendarEventRef) -> bool:
    """
    Whether a target start refers to the event's start.

    Exact string match on ``dateTime || date``; zoned datetimes written
    with different offsets for the same instant also match.
    """
    event_start = event.start_key()
    if not event_start:
        return False
    if target_start == event_start:
        return True
    left, right = _parse_instant(target_start), _parse_instant(event_start)
    return left is not None and right is not None and left == right


def resolve_target(
    target: EventTarget,
    known_events: Sequence[CalendarEventRef],
    scope: Optional[str] = None,
) -> Optional[str]:
    """
    Find the event id an update/delete target refers to.

    Returns:
        The event id (series id for a "series"-scoped recurring match),
        or None when nothing in the snapshot matches
    """
    if target.id:
        return target.id

    for event in known_events:
        if event.summary != target.summary:
            continue
        if target.start and not start_matches(target.start, event):
            continue
        if scope == "series" and event.recurring_event_id:
            return event.recurring_event_id
        return event.id
    return None


# ---------------------------------------------------------------------------
# EXECUTOR
# ---------------------------------------------------------------------------

class ActionExecutor:
    """
    Applies typed actions to a CalendarBackend.

    Args:
        backend: Calendar backend the calls go to
        on_refresh: Called (sync or async) after the action list was
            processed; without one, ``refreshed`` tells the caller to reload
    """

    def __init__(self, backend: CalendarBackend, on_refresh: Optional[RefreshCallback] = None):
        self.backend = backend
        self.on_refresh = on_refresh

    async def execute(
        self,
        actions: Sequence[Dict[str, Any]],
        known_events: Sequence[Union[CalendarEventRef, Dict[str, Any]]],
    ) -> ExecutionLog:
        """
        Execute the actions of one reply.

        Args:
            actions: Action payloads as extracted from the reply
            known_events: Snapshot fetched for this turn (read-only)

        Returns:
            ExecutionLog with one entry per action, in action order
        """
        snapshot = [
            event if isinstance(event, CalendarEventRef) else CalendarEventRef.model_validate(event)
            for event in known_events
        ]
        entries: List[Optional[ExecutionEntry]] = [None] * len(actions)

        creates: List[tuple] = []
        deletes: List[tuple] = []
        singles: List[tuple] = []

        for index, payload in enumerate(actions):
            typed = parse_action(payload)
            if typed is None:
                name = action_name(payload) if isinstance(payload, dict) else None
                entries[index] = ExecutionEntry(
                    action=name or "unknown",
                    status=ExecutionStatus.INVALID,
                    message="Action does not match the schema",
                )
                continue

            if isinstance(typed, CreateEventAction):
                creates.append((index, typed))
                continue

            event_id = resolve_target(typed.target, snapshot, typed.scope)
            if event_id is None:
                logger.info(f"Unresolved {typed.action} target: {typed.target.summary!r}")
                entries[index] = ExecutionEntry(
                    action=typed.action,
                    status=ExecutionStatus.UNRESOLVED,
                    summary=typed.target.summary,
                )
            elif isinstance(typed, DeleteEventAction):
                deletes.append((index, typed, event_id))
            else:
                singles.append((index, typed, event_id))

        if len(creates) >= 2:
            await self._create_batch(creates, entries)
        else:
            singles.extend((index, typed, None) for index, typed in creates)

        if len(deletes) >= 2:
            await self._delete_batch(deletes, entries)
        else:
            singles.extend(deletes)

        for index, typed, event_id in sorted(singles, key=lambda item: item[0]):
            entries[index] = await self._execute_single(typed, event_id)

        log = ExecutionLog(entries=[entry for entry in entries if entry is not None])
        if actions:
            log.refreshed = await self._refresh()

        logger.info(
            "Executed assistant actions",
            extra={"statuses": [entry.status.value for entry in log.entries]},
        )
        return log

    async def _execute_single(
        self,
        typed: Union[CreateEventAction, UpdateEventAction, DeleteEventAction],
        event_id: Optional[str],
    ) -> ExecutionEntry:
        try:
            if isinstance(typed, CreateEventAction):
                created = await self.backend.create_event(typed.event)
                return ExecutionEntry(
                    action=typed.action,
                    status=ExecutionStatus.CREATED,
                    event_id=(created or {}).get("id"),
                    summary=typed.event.summary,
                )
            if isinstance(typed, UpdateEventAction):
                await self.backend.update_event(event_id, typed.updates)
                return ExecutionEntry(
                    action=typed.action,
                    status=ExecutionStatus.UPDATED,
                    event_id=event_id,
                    summary=typed.updates.summary or typed.target.summary,
                )
            await self.backend.delete_event(event_id)
            return ExecutionEntry(
                action=typed.action,
                status=ExecutionStatus.DELETED,
                event_id=event_id,
                summary=typed.target.summary,
            )
        except Exception as e:
            logger.warning(f"Action {typed.action} failed: {e}")
            return ExecutionEntry(
                action=typed.action,
                status=ExecutionStatus.FAILED,
                event_id=event_id,
                message=str(e),
            )

    async def _create_batch(self, creates: List[tuple], entries: List[Optional[ExecutionEntry]]) -> None:
        drafts = [typed.event for _, typed in creates]
        try:
            results = await self.backend.create_events_batch(drafts)
        except Exception as e:
            logger.warning(f"Batched create failed: {e}")
            results = [BatchItemResult(key=d.summary, success=False, error=str(e)) for d in drafts]
        results = _pad_results(results, [d.summary for d in drafts])

        for (index, typed), result in zip(creates, results):
            if result.success:
                entries[index] = ExecutionEntry(
                    action=typed.action,
                    status=ExecutionStatus.CREATED,
                    event_id=(result.data or {}).get("id"),
                    summary=typed.event.summary,
                    batched=True,
                )
            else:
                entries[index] = ExecutionEntry(
                    action=typed.action,
                    status=ExecutionStatus.FAILED,
                    summary=typed.event.summary,
                    message=result.error,
                    batched=True,
                )

    async def _delete_batch(self, deletes: List[tuple], entries: List[Optional[ExecutionEntry]]) -> None:
        event_ids = [event_id for _, _, event_id in deletes]
        try:
            results = await self.backend.delete_events_batch(event_ids)
        except Exception as e:
            logger.warning(f"Batched delete failed: {e}")
            results = [BatchItemResult(key=i, success=False, error=str(e)) for i in event_ids]
        results = _pad_results(results, event_ids)

        for (index, typed, event_id), result in zip(deletes, results):
            entries[index] = ExecutionEntry(
                action=typed.action,
                status=ExecutionStatus.DELETED if result.success else ExecutionStatus.FAILED,
                event_id=event_id,
                summary=typed.target.summary,
                message=None if result.success else result.error,
                batched=True,
            )

    async def _refresh(self) -> bool:
        if self.on_refresh is None:
            return True
        try:
            outcome = self.on_refresh()
            if inspect.isawaitable(outcome):
                await outcome
            return True
        except Exception as e:
            logger.warning(f"Calendar refresh failed: {e}")
            return False
