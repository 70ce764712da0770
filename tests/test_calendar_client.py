"""
Tests for the Google Calendar client.

Tests for:
- list_events request parameters and parsing
- create / update / delete request bodies
- batch calls isolating per-item failures
- HTTP error mapping in _make_request

All API calls are mocked for fast, reliable tests.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.ai.schemas.actions import EventDraft, EventUpdates
from app.environments.base import APIError
from app.environments.google.calendar.client import GoogleCalendarClient


# ===========================================================================
# FIXTURES
# ===========================================================================

@pytest.fixture
def calendar_client():
    """Create a calendar client with mock token."""
    return GoogleCalendarClient(access_token="mock_access_token", default_timezone="Europe/Paris")


def timed_draft(summary: str = "Lunch") -> EventDraft:
    return EventDraft.model_validate({
        "summary": summary,
        "start": {"dateTime": "2025-07-01T12:00:00"},
        "end": {"dateTime": "2025-07-01T13:00:00"},
    })


def http_response(status_code: int, payload=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = "" if payload is None else str(payload)
    response.content = b"" if payload is None else b"{}"
    response.json.return_value = payload
    return response


# ===========================================================================
# LIST
# ===========================================================================

class TestListEvents:

    @pytest.mark.asyncio
    async def test_params_and_parsing(self, calendar_client):
        api_response = {
            "items": [
                {
                    "id": "1",
                    "summary": "Birthday Party",
                    "start": {"date": "2025-07-04"},
                    "end": {"date": "2025-07-05"},
                    "status": "confirmed",
                },
            ],
        }
        time_min = datetime(2025, 7, 1, tzinfo=timezone.utc)
        time_max = datetime(2025, 8, 1, tzinfo=timezone.utc)

        with patch.object(calendar_client, "_make_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = api_response
            events = await calendar_client.list_events(time_min, time_max, max_results=10000)

        params = mock_request.call_args.kwargs["params"]
        assert params["singleEvents"] == "true"
        assert params["orderBy"] == "startTime"
        assert params["maxResults"] == 2500
        assert params["timeMin"] == "2025-07-01T00:00:00+00:00"
        assert events[0].summary == "Birthday Party"
        assert events[0].is_all_day() is True


# ===========================================================================
# WRITE CALLS
# ===========================================================================

class TestWrites:

    @pytest.mark.asyncio
    async def test_create_adds_default_timezone(self, calendar_client):
        with patch.object(calendar_client, "_make_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"id": "new-1"}
            created = await calendar_client.create_event(timed_draft())

        body = mock_request.call_args.kwargs["json_body"]
        assert body["start"] == {"dateTime": "2025-07-01T12:00:00", "timeZone": "Europe/Paris"}
        assert body["summary"] == "Lunch"
        assert created == {"id": "new-1"}

    @pytest.mark.asyncio
    async def test_update_sends_only_changes(self, calendar_client):
        with patch.object(calendar_client, "_make_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"id": "evt"}
            await calendar_client.update_event("evt", EventUpdates(location="Cafe"))

        assert mock_request.call_args.kwargs["method"] == "PATCH"
        assert mock_request.call_args.kwargs["endpoint"].endswith("/events/evt")
        assert mock_request.call_args.kwargs["json_body"] == {"location": "Cafe"}

    @pytest.mark.asyncio
    async def test_update_without_changes_raises(self, calendar_client):
        with pytest.raises(ValueError):
            await calendar_client.update_event("evt", EventUpdates())

    @pytest.mark.asyncio
    async def test_delete(self, calendar_client):
        with patch.object(calendar_client, "_make_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = None
            assert await calendar_client.delete_event("evt") is True

        assert mock_request.call_args.kwargs["ok_statuses"] == (200, 204)


# ===========================================================================
# BATCHES
# ===========================================================================

class TestBatches:

    @pytest.mark.asyncio
    async def test_create_batch_isolates_failures(self, calendar_client):
        async def fake_create(draft):
            if draft.summary == "Bad":
                raise APIError("API request failed: invalid", status_code=400)
            return {"id": f"id-{draft.summary}"}

        with patch.object(calendar_client, "create_event", side_effect=fake_create):
            results = await calendar_client.create_events_batch([timed_draft("A"), timed_draft("Bad"), timed_draft("C")])

        assert [r.success for r in results] == [True, False, True]
        assert results[0].data == {"id": "id-A"}
        assert results[1].error == "API request failed: invalid"

    @pytest.mark.asyncio
    async def test_delete_batch(self, calendar_client):
        with patch.object(calendar_client, "delete_event", new_callable=AsyncMock) as mock_delete:
            mock_delete.side_effect = [True, APIError("Event not found", status_code=404)]
            results = await calendar_client.delete_events_batch(["a", "b"])

        assert [(r.key, r.success) for r in results] == [("a", True), ("b", False)]


# ===========================================================================
# ERROR MAPPING
# ===========================================================================

class TestMakeRequest:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,message", [
        (401, "Unauthorized - access token may be expired"),
        (403, "Forbidden - calendar scope may not be granted"),
        (404, "Event not found"),
        (500, "API request failed: boom"),
    ])
    async def test_error_statuses(self, calendar_client, status_code, message):
        response = http_response(status_code)
        response.text = "boom"

        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=response):
            with pytest.raises(APIError) as exc_info:
                await calendar_client._make_request("GET", "/calendars/primary/events")

        assert str(exc_info.value) == message
        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_network_error(self, calendar_client):
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, side_effect=httpx.ConnectError("refused")):
            with pytest.raises(APIError, match="Network error"):
                await calendar_client._make_request("GET", "/calendars/primary/events")

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, calendar_client):
        with patch("httpx.AsyncClient.request", new_callable=AsyncMock, return_value=http_response(204)):
            result = await calendar_client._make_request("DELETE", "/calendars/primary/events/x", ok_statuses=(204,))

        assert result is None
