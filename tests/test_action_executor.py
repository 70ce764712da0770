"""
Tests for the Action Executor.

Tests for:
- target resolution (id, summary, summary + start, series scope)
- unresolved and invalid actions
- batching thresholds for creates and deletes
- per-action failure isolation
- refresh signalling
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.ai.schemas.actions import EventTarget
from app.environments.base import APIError, BatchItemResult
from app.services.action_executor import (
    ActionExecutor,
    ExecutionStatus,
    resolve_target,
    start_matches,
)


def create(summary: str, day: str = "2025-07-01") -> dict:
    return {
        "action": "create_event",
        "event": {"summary": summary, "start": {"date": day}, "end": {"date": day}},
    }


# ===========================================================================
# RESOLUTION
# ===========================================================================

class TestResolveTarget:
    """Finding the event a target refers to."""

    def test_id_wins(self, known_events):
        assert resolve_target(EventTarget(id="explicit", summary="Dentist"), known_events) == "explicit"

    def test_summary_match(self, known_events):
        assert resolve_target(EventTarget(summary="Dentist"), known_events) == "evt-dentist"

    def test_summary_and_start_match(self, known_events):
        target = EventTarget(summary="Dentist", start="2025-07-02T10:00:00+02:00")
        assert resolve_target(target, known_events) == "evt-dentist"

    def test_same_instant_other_offset_matches(self, known_events):
        target = EventTarget(summary="Dentist", start="2025-07-02T08:00:00Z")
        assert resolve_target(target, known_events) == "evt-dentist"

    def test_wrong_start_does_not_match(self, known_events):
        target = EventTarget(summary="Dentist", start="2025-07-03T10:00:00+02:00")
        assert resolve_target(target, known_events) is None

    def test_all_day_start(self, known_events):
        target = EventTarget(summary="Holiday", start={"date": "2025-07-04"})
        assert resolve_target(target, known_events) == "evt-holiday"

    def test_series_scope_uses_recurring_id(self, known_events):
        target = EventTarget(summary="Daily Standup")
        assert resolve_target(target, known_events, scope="series") == "evt-standup"
        assert resolve_target(target, known_events, scope="instance") == "evt-standup-0701"

    def test_start_matches_naive_values_need_exact_match(self, known_events):
        holiday = known_events[2]
        assert start_matches("2025-07-04", holiday) is True
        assert start_matches("2025-07-04T00:00:00", holiday) is False


# ===========================================================================
# EXECUTION
# ===========================================================================

class TestExecute:
    """Dispatching actions to the backend."""

    @pytest.mark.asyncio
    async def test_unresolvable_delete_is_not_attempted(self, mock_backend):
        executor = ActionExecutor(mock_backend)

        log = await executor.execute([{"action": "delete_event", "target": {"summary": "Nonexistent"}}], [])

        assert [e.status for e in log.entries] == [ExecutionStatus.UNRESOLVED]
        assert log.entries[0].note == "⚠ Could not resolve event to update/delete."
        mock_backend.delete_event.assert_not_called()
        mock_backend.delete_events_batch.assert_not_called()

    @pytest.mark.asyncio
    async def test_three_creates_use_one_batch_call(self, mock_backend):
        executor = ActionExecutor(mock_backend)

        log = await executor.execute([create("A"), create("B"), create("C")], [])

        mock_backend.create_events_batch.assert_awaited_once()
        assert len(mock_backend.create_events_batch.call_args.args[0]) == 3
        mock_backend.create_event.assert_not_called()
        assert [e.status for e in log.entries] == [ExecutionStatus.CREATED] * 3
        assert all(e.batched for e in log.entries)
        assert log.notes() == ["✅ Created event: A", "✅ Created event: B", "✅ Created event: C"]

    @pytest.mark.asyncio
    async def test_single_create_is_not_batched(self, mock_backend):
        log = await ActionExecutor(mock_backend).execute([create("Lunch")], [])

        mock_backend.create_event.assert_awaited_once()
        mock_backend.create_events_batch.assert_not_called()
        assert log.entries[0].event_id == "created-1"
        assert log.entries[0].batched is False

    @pytest.mark.asyncio
    async def test_two_resolved_deletes_use_one_batch_call(self, mock_backend, known_events):
        actions = [
            {"action": "delete_event", "target": {"summary": "Dentist"}},
            {"action": "delete_event", "target": {"id": "evt-holiday"}},
        ]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        mock_backend.delete_events_batch.assert_awaited_once_with(["evt-dentist", "evt-holiday"])
        mock_backend.delete_event.assert_not_called()
        assert log.notes() == ["🗑 Deleted event evt-dentist", "🗑 Deleted event evt-holiday"]

    @pytest.mark.asyncio
    async def test_one_resolved_delete_among_unresolved_is_single(self, mock_backend, known_events):
        actions = [
            {"action": "delete_event", "target": {"summary": "Dentist"}},
            {"action": "delete_event", "target": {"summary": "Ghost"}},
        ]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        mock_backend.delete_event.assert_awaited_once_with("evt-dentist")
        mock_backend.delete_events_batch.assert_not_called()
        assert [e.status for e in log.entries] == [ExecutionStatus.DELETED, ExecutionStatus.UNRESOLVED]

    @pytest.mark.asyncio
    async def test_update(self, mock_backend, known_events):
        action = {
            "action": "update_event",
            "target": {"summary": "Dentist"},
            "updates": {"location": "Main St 1"},
        }

        log = await ActionExecutor(mock_backend).execute([action], known_events)

        event_id, updates = mock_backend.update_event.call_args.args
        assert event_id == "evt-dentist"
        assert updates.to_api_body() == {"location": "Main St 1"}
        assert log.notes() == ["🛠 Updated event evt-dentist"]

    @pytest.mark.asyncio
    async def test_invalid_action_is_skipped(self, mock_backend):
        actions = [
            {"action": "create_event", "event": {"summary": "No dates"}},
            {"action": "teleport"},
            "not a dict",
        ]

        log = await ActionExecutor(mock_backend).execute(actions, [])

        assert [e.status for e in log.entries] == [ExecutionStatus.INVALID] * 3
        assert log.entries[0].action == "create_event"
        mock_backend.create_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_entries_follow_action_order(self, mock_backend, known_events):
        actions = [
            {"action": "update_event", "target": {"id": "evt-dentist"}, "updates": {"summary": "Dentist (moved)"}},
            create("A"),
            {"action": "delete_event", "target": {"summary": "Ghost"}},
            create("B"),
        ]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        assert [e.action for e in log.entries] == ["update_event", "create_event", "delete_event", "create_event"]


# ===========================================================================
# FAILURE ISOLATION
# ===========================================================================

class TestFailureIsolation:
    """One failure never blocks its siblings."""

    @pytest.mark.asyncio
    async def test_failed_update_does_not_block_create(self, mock_backend, known_events):
        mock_backend.update_event.side_effect = APIError("Event not found", status_code=404)
        actions = [
            {"action": "update_event", "target": {"id": "gone"}, "updates": {"summary": "x"}},
            create("Lunch"),
        ]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        assert [e.status for e in log.entries] == [ExecutionStatus.FAILED, ExecutionStatus.CREATED]
        assert log.entries[0].note == "❌ Action failed (update_event): Event not found"

    @pytest.mark.asyncio
    async def test_partial_batch_delete_failure(self, mock_backend, known_events):
        mock_backend.delete_events_batch.side_effect = None
        mock_backend.delete_events_batch.return_value = [
            BatchItemResult(key="evt-dentist", success=True),
            BatchItemResult(key="evt-holiday", success=False, error="Forbidden"),
        ]
        actions = [
            {"action": "delete_event", "target": {"id": "evt-dentist"}},
            {"action": "delete_event", "target": {"id": "evt-holiday"}},
        ]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        assert [e.status for e in log.entries] == [ExecutionStatus.DELETED, ExecutionStatus.FAILED]
        assert log.entries[1].message == "Forbidden"

    @pytest.mark.asyncio
    async def test_batch_call_raising_fails_only_its_items(self, mock_backend, known_events):
        mock_backend.create_events_batch.side_effect = APIError("Network error")
        actions = [create("A"), create("B"), {"action": "delete_event", "target": {"id": "evt-dentist"}}]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        assert [e.status for e in log.entries] == [
            ExecutionStatus.FAILED,
            ExecutionStatus.FAILED,
            ExecutionStatus.DELETED,
        ]

    @pytest.mark.asyncio
    async def test_short_batch_response_marks_missing_items_failed(self, mock_backend, known_events):
        mock_backend.create_events_batch.side_effect = None
        mock_backend.create_events_batch.return_value = [
            BatchItemResult(key="A", success=True, data={"id": "new-a"}),
        ]
        mock_backend.delete_events_batch.side_effect = None
        mock_backend.delete_events_batch.return_value = []
        actions = [
            create("A"),
            create("B"),
            {"action": "delete_event", "target": {"id": "evt-dentist"}},
            {"action": "delete_event", "target": {"id": "evt-holiday"}},
        ]

        log = await ActionExecutor(mock_backend).execute(actions, known_events)

        assert [e.status for e in log.entries] == [
            ExecutionStatus.CREATED,
            ExecutionStatus.FAILED,
            ExecutionStatus.FAILED,
            ExecutionStatus.FAILED,
        ]
        assert log.entries[1].message == "No result returned by batch call"
        assert log.entries[3].event_id == "evt-holiday"


# ===========================================================================
# REFRESH
# ===========================================================================

class TestRefresh:
    """The calendar view is told to reload after processing."""

    @pytest.mark.asyncio
    async def test_async_refresh_called_once(self, mock_backend):
        on_refresh = AsyncMock()
        mock_backend.update_event.side_effect = APIError("boom")
        actions = [{"action": "update_event", "target": {"id": "x"}, "updates": {"summary": "y"}}]

        log = await ActionExecutor(mock_backend, on_refresh=on_refresh).execute(actions, [])

        on_refresh.assert_awaited_once()
        assert log.refreshed is True

    @pytest.mark.asyncio
    async def test_sync_refresh(self, mock_backend):
        on_refresh = MagicMock(return_value=None)

        log = await ActionExecutor(mock_backend, on_refresh=on_refresh).execute([create("A")], [])

        on_refresh.assert_called_once()
        assert log.refreshed is True

    @pytest.mark.asyncio
    async def test_failing_refresh_is_reported(self, mock_backend):
        on_refresh = MagicMock(side_effect=RuntimeError("view closed"))

        log = await ActionExecutor(mock_backend, on_refresh=on_refresh).execute([create("A")], [])

        assert log.refreshed is False
        assert log.entries[0].status == ExecutionStatus.CREATED

    @pytest.mark.asyncio
    async def test_no_actions_no_refresh(self, mock_backend):
        on_refresh = MagicMock()

        log = await ActionExecutor(mock_backend, on_refresh=on_refresh).execute([], [])

        on_refresh.assert_not_called()
        assert log.entries == []
        assert log.refreshed is False
