"""
Chat Session - drive one conversation end to end.

A session owns what a chat client holds between turns: the transcript, the
windows of calendar data already loaded for the calendar view, and the
events snapshot of the current turn. One turn is:

    query
      -> range_service.infer_range        which dates are needed?
      -> backend.list_events(union)       fresh snapshot for this turn
      -> assistant_stream_service         prose deltas + actions frame
      -> ActionExecutor.execute           apply actions to the snapshot
      -> transcript += user + assistant   (prose + outcome notes)

The calendar view is served by load_view(), which only fetches the parts
of a window that were never loaded. Executed actions invalidate what was
loaded, so the next view reload goes back to the backend.

Usage:
======
    session = ChatSession(GoogleCalendarClient(token), timezone="Europe/Paris")
    turn = await session.run_turn("Move my dentist appointment to Friday")
    print(turn.message)
"""

import inspect
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional

from app.core.config import settings
from app.ai.ranges import RangeResult
from app.environments.base import CalendarBackend
from app.environments.google.calendar.schemas import CalendarEventRef, EventTime
from app.schemas.assistant import ConversationMessage
from app.services.action_executor import ActionExecutor, ExecutionLog, RefreshCallback
from app.services.assistant_stream_service import AssistantStreamService, assistant_stream_service
from app.services.range_service import RangeService, range_service, resolve_zone, today_in_timezone
from app.services.window_cache import FetchedWindowCache


logger = logging.getLogger("calendar_assistant.services.chat_session")


@dataclass
class TurnResult:
    """Everything one turn produced."""
    message: str
    prose: str = ""
    actions: List[Dict[str, Any]] = field(default_factory=list)
    range_result: Optional[RangeResult] = None
    execution: Optional[ExecutionLog] = None
    error: Optional[str] = None


class ChatSession:
    """
    Conversation state plus the per-turn pipeline.

    Services are injectable so tests can substitute mocks. An unknown
    ``timezone`` falls back to DEFAULT_TIMEZONE.
    """

    def __init__(
        self,
        backend: CalendarBackend,
        timezone: Optional[str] = None,
        ranges: Optional[RangeService] = None,
        stream: Optional[AssistantStreamService] = None,
        on_refresh: Optional[RefreshCallback] = None,
    ):
        self.backend = backend
        self.zone = resolve_zone(timezone)
        self.timezone = self.zone.key
        self.ranges = ranges or range_service
        self.stream = stream or assistant_stream_service
        self.on_refresh = on_refresh

        self.transcript: List[ConversationMessage] = []
        self.window_cache = FetchedWindowCache()
        self.view_events: Dict[str, CalendarEventRef] = {}
        self.snapshot: List[CalendarEventRef] = []

    # -------------------------------------------------------------------------
    # CALENDAR DATA
    # -------------------------------------------------------------------------

    def _window_bounds(self, start: date, end: date):
        return (
            datetime.combine(start, time.min, tzinfo=self.zone),
            datetime.combine(end + timedelta(days=1), time.min, tzinfo=self.zone),
        )

    async def _fetch(self, start: date, end: date) -> List[CalendarEventRef]:
        time_min, time_max = self._window_bounds(start, end)
        events = list(await self.backend.list_events(time_min, time_max, settings.CALENDAR_MAX_RESULTS))
        self._remember(events)
        self.window_cache.add(start, end)
        return events

    def _remember(self, events: Iterable[CalendarEventRef]) -> None:
        for event in events:
            self.view_events[event.id] = event

    def _event_day(self, moment: Optional[EventTime]) -> Optional[date]:
        if moment is None:
            return None
        if moment.date_time:
            parsed = moment.get_datetime()
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(self.zone)
            return parsed.date()
        if moment.date:
            return date.fromisoformat(moment.date)
        return None

    def _overlaps(self, event: CalendarEventRef, start: date, end: date) -> bool:
        first = self._event_day(event.start)
        if first is None:
            return False
        last = self._event_day(event.end) or first
        if event.is_all_day() and last > first:
            # all-day end dates are exclusive
            last -= timedelta(days=1)
        return first <= end and last >= start

    async def load_window(self, start: date, end: date) -> List[CalendarEventRef]:
        """Fetch the events of [start, end] and make them the turn snapshot."""
        self.snapshot = await self._fetch(start, end)
        return self.snapshot

    async def load_view(self, start: date, end: date) -> List[CalendarEventRef]:
        """
        Events for a calendar view of [start, end].

        Only the parts of the window that were never loaded are fetched;
        the rest comes from events already held by the session.

        Returns:
            Events overlapping the window, ordered by start
        """
        gaps = self.window_cache.missing(start, end)
        for gap_start, gap_end in gaps:
            await self._fetch(gap_start, gap_end)
        if not gaps:
            logger.debug(f"Window {start}..{end} already loaded")

        events = [e for e in self.view_events.values() if self._overlaps(e, start, end)]
        return sorted(events, key=lambda e: e.start_key() or "")

    def invalidate(self) -> None:
        """Forget loaded windows so the next view reload hits the backend."""
        self.window_cache.clear()
        self.view_events.clear()

    async def _refresh_after_actions(self) -> None:
        self.invalidate()
        if self.on_refresh is not None:
            outcome = self.on_refresh()
            if inspect.isawaitable(outcome):
                await outcome

    # -------------------------------------------------------------------------
    # TURN
    # -------------------------------------------------------------------------

    async def run_turn(self, query: str) -> TurnResult:
        """
        Run one chat turn.

        Args:
            query: The user's message

        Returns:
            TurnResult; ``message`` is what was appended to the transcript
            as the assistant's reply
        """
        history = list(self.transcript)
        today = today_in_timezone(self.timezone)

        range_result = await self.ranges.infer_range(
            query,
            today=today,
            conversation_tail=history,
            timezone=self.timezone,
        )

        try:
            await self.load_window(range_result.union.start, range_result.union.end)
        except Exception as e:
            logger.warning(f"Could not load calendar window: {e}")
            return self._finish(query, TurnResult(
                message=f"Error: {e}",
                range_result=range_result,
                error=str(e),
            ))

        deltas: List[str] = []
        actions: List[Dict[str, Any]] = []
        error: Optional[str] = None

        async for frame in self.stream.stream_frames(query, self.snapshot, history, self.timezone):
            if not isinstance(frame, dict):
                break
            if "delta" in frame:
                deltas.append(frame["delta"])
            elif frame.get("type") == "actions":
                actions = frame["actions"]
            elif "error" in frame:
                error = frame["error"]

        if error is not None:
            return self._finish(query, TurnResult(
                message=f"Error: {error}",
                range_result=range_result,
                error=error,
            ))

        prose = "".join(deltas)
        execution = None
        message = prose

        if actions:
            executor = ActionExecutor(self.backend, on_refresh=self._refresh_after_actions)
            execution = await executor.execute(actions, self.snapshot)
            notes = "\n".join(execution.notes())
            message = f"{prose}\n\n{notes}" if prose else notes

        return self._finish(query, TurnResult(
            message=message,
            prose=prose,
            actions=actions,
            range_result=range_result,
            execution=execution,
        ))

    def _finish(self, query: str, result: TurnResult) -> TurnResult:
        self.transcript.append(ConversationMessage(role="user", content=query))
        self.transcript.append(ConversationMessage(role="assistant", content=result.message))
        return result
