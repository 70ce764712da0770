"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Mock Gemini provider (no network)
- Mock calendar backend
- Sample events snapshot
- Test client (FastAPI TestClient) with token/backend dependencies overridden
"""

from typing import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.ai.providers.base import AIProvider, AIResponse, ProviderType
from app.deps import get_calendar_backend, get_google_token
from app.environments.base import BatchItemResult, CalendarBackend
from app.environments.google.calendar.schemas import CalendarEventRef
from app.main import app


# ---------------------------------------------------------------------------
# AI PROVIDER FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def make_response():
    """
    Factory for AIResponse objects.

    Usage:
        make_response("hello")
        make_response("", success=False, error="quota exceeded")
    """
    def _make(content: str = "", success: bool = True, error: str = None) -> AIResponse:
        return AIResponse(
            content=content,
            provider=ProviderType.GEMINI,
            model="test-model",
            success=success,
            error=error,
        )
    return _make


@pytest.fixture
def mock_provider() -> MagicMock:
    """
    A configured provider whose calls are AsyncMocks.

    Set ``mock_provider.generate_json.return_value`` (or
    ``generate_with_grounding``) in the test.
    """
    provider = MagicMock(spec=AIProvider)
    provider.provider_type = ProviderType.GEMINI
    provider.model = "test-model"
    provider.is_configured.return_value = True
    provider.generate_json = AsyncMock()
    provider.generate_with_grounding = AsyncMock()
    return provider


# ---------------------------------------------------------------------------
# CALENDAR FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_backend() -> MagicMock:
    """
    Calendar backend with every call mocked.

    Single calls succeed; batch calls succeed for every item.
    """
    backend = MagicMock(spec=CalendarBackend)
    backend.create_event = AsyncMock(return_value={"id": "created-1"})
    backend.update_event = AsyncMock(return_value={"id": "updated-1"})
    backend.delete_event = AsyncMock(return_value=True)
    backend.list_events = AsyncMock(return_value=[])

    async def create_batch(drafts):
        return [
            BatchItemResult(key=d.summary, success=True, data={"id": f"batch-{i}"})
            for i, d in enumerate(drafts)
        ]

    async def delete_batch(event_ids):
        return [BatchItemResult(key=event_id, success=True) for event_id in event_ids]

    backend.create_events_batch = AsyncMock(side_effect=create_batch)
    backend.delete_events_batch = AsyncMock(side_effect=delete_batch)
    return backend


@pytest.fixture
def known_events() -> list:
    """A small events snapshot, as Google returns it."""
    return [
        CalendarEventRef.model_validate({
            "id": "evt-dentist",
            "summary": "Dentist",
            "start": {"dateTime": "2025-07-02T10:00:00+02:00"},
            "end": {"dateTime": "2025-07-02T11:00:00+02:00"},
        }),
        CalendarEventRef.model_validate({
            "id": "evt-standup-0701",
            "recurringEventId": "evt-standup",
            "summary": "Daily Standup",
            "start": {"dateTime": "2025-07-01T09:00:00Z"},
            "end": {"dateTime": "2025-07-01T09:15:00Z"},
        }),
        CalendarEventRef.model_validate({
            "id": "evt-holiday",
            "summary": "Holiday",
            "start": {"date": "2025-07-04"},
            "end": {"date": "2025-07-05"},
        }),
    ]


# ---------------------------------------------------------------------------
# APP FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def client(mock_backend: MagicMock) -> Generator[TestClient, None, None]:
    """
    Test client with the token check and calendar backend overridden.

    Requests need no real Google token; calendar calls go to mock_backend.
    """
    app.dependency_overrides[get_google_token] = lambda: "test-token"
    app.dependency_overrides[get_calendar_backend] = lambda: mock_backend

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
