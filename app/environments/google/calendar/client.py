"""
Google Calendar API Client - Fetch and manage calendar events.

This client implements the CalendarBackend contract on top of the Google
Calendar REST API. It handles API requests, error handling, and response
parsing.

Key Features:
=============
1. List single event instances for a time window
2. Create / patch / delete events
3. Batched create and delete with per-item results
4. Clean error handling with APIError

API Reference:
==============
- Events API: https://developers.google.com/calendar/api/v3/reference/events

Usage Example:
==============
    from app.environments.google.calendar import GoogleCalendarClient

    client = GoogleCalendarClient(access_token="ya29.xxx")
    events = await client.list_events(time_min, time_max)
    for event in events:
        print(event.get_display_title())
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.ai.schemas.actions import EventDraft, EventUpdates
from app.environments.base import APIError, BatchItemResult, CalendarBackend
from app.environments.google.calendar.schemas import (
    CalendarEventRef,
    CalendarEventsResponse,
)


logger = logging.getLogger("calendar_assistant.environments.google.calendar")


class GoogleCalendarClient(CalendarBackend):
    """
    Google Calendar API client.

    Requires a valid access token with calendar.events scope.

    Attributes:
        access_token: Google OAuth access token with calendar scope
        calendar_id: Calendar to operate on ("primary" by default)
        default_timezone: Zone attached to dateTime values that carry none

    Example:
        client = GoogleCalendarClient(access_token="ya29.xxx")
        created = await client.create_event(draft)
    """

    required_scopes = [
        "https://www.googleapis.com/auth/calendar.events",
    ]

    # Google Calendar API base URL
    BASE_URL = "https://www.googleapis.com/calendar/v3"

    def __init__(
        self,
        access_token: str,
        calendar_id: str = "primary",
        default_timezone: Optional[str] = None,
    ):
        self.access_token = access_token
        self.calendar_id = calendar_id
        self.default_timezone = default_timezone or settings.DEFAULT_TIMEZONE

    # -------------------------------------------------------------------------
    # HTTP CLIENT MANAGEMENT
    # -------------------------------------------------------------------------

    def _get_headers(self) -> dict:
        """Get authorization headers for API requests."""
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    @property
    def _events_endpoint(self) -> str:
        return f"/calendars/{self.calendar_id}/events"

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
        ok_statuses: tuple = (200,),
    ) -> Optional[dict]:
        """
        Make an authenticated request to the Calendar API.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint path (e.g., "/calendars/primary/events")
            params: Query parameters
            json_body: JSON body to send
            ok_statuses: Status codes treated as success

        Returns:
            Parsed JSON response (None for empty bodies such as 204)

        Raises:
            APIError: If the request fails
        """
        url = f"{self.BASE_URL}{endpoint}"

        async with httpx.AsyncClient() as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._get_headers(),
                    params=params,
                    json=json_body,
                    timeout=30.0,
                )
            except httpx.RequestError as e:
                logger.error(f"Network error in Calendar API: {e}")
                raise APIError(f"Network error: {e}")

        if response.status_code == 401:
            logger.error("Calendar API: Unauthorized (token may be expired)")
            raise APIError(
                "Unauthorized - access token may be expired",
                status_code=401,
                response=response.text,
            )

        if response.status_code == 403:
            logger.error("Calendar API: Forbidden (scope may be missing)")
            raise APIError(
                "Forbidden - calendar scope may not be granted",
                status_code=403,
                response=response.text,
            )

        if response.status_code == 404:
            logger.error("Calendar API: Event not found")
            raise APIError(
                "Event not found",
                status_code=404,
                response=response.text,
            )

        if response.status_code not in ok_statuses:
            error_detail = response.text
            logger.error(f"Calendar API error: {response.status_code} - {error_detail}")
            raise APIError(
                f"API request failed: {error_detail}",
                status_code=response.status_code,
                response=error_detail,
            )

        if not response.content:
            return None
        return response.json()

    # -------------------------------------------------------------------------
    # REQUEST BODIES
    # -------------------------------------------------------------------------

    def _with_timezones(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Attach the default zone to start/end dateTimes that have none."""
        for key in ("start", "end"):
            value = body.get(key)
            if isinstance(value, dict) and value.get("dateTime") and not value.get("timeZone"):
                body[key] = {**value, "timeZone": self.default_timezone}
        return body

    # -------------------------------------------------------------------------
    # CALENDAR EVENTS
    # -------------------------------------------------------------------------

    async def list_events(
        self,
        time_min: datetime,
        time_max: datetime,
        max_results: int = 500,
    ) -> List[CalendarEventRef]:
        """
        List single event instances in a window, ordered by start time.

        Args:
            time_min: Start of time range (inclusive)
            time_max: End of time range (exclusive)
            max_results: Maximum number of events to return (1-2500)

        Returns:
            List of CalendarEventRef objects
        """
        params = {
            "maxResults": min(max(max_results, 1), settings.CALENDAR_MAX_RESULTS_LIMIT),
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
        }

        logger.info(
            "Fetching calendar events",
            extra={
                "calendar_id": self.calendar_id,
                "time_min": params["timeMin"],
                "time_max": params["timeMax"],
            }
        )

        response_data = await self._make_request(
            method="GET",
            endpoint=self._events_endpoint,
            params=params,
        )

        events_response = CalendarEventsResponse(**(response_data or {}))

        logger.info(f"Fetched {len(events_response.items)} calendar events")

        return events_response.items

    async def create_event(self, draft: EventDraft) -> Dict[str, Any]:
        """
        Create a calendar event (timed or all-day, optionally recurring).

        Args:
            draft: Validated event draft

        Returns:
            The created event resource

        Raises:
            APIError: If event creation fails
        """
        body = self._with_timezones(draft.to_api_body())

        logger.info(
            "Creating calendar event",
            extra={
                "summary": draft.summary,
                "calendar_id": self.calendar_id,
                "is_all_day": draft.start.is_all_day(),
            }
        )

        created = await self._make_request(
            method="POST",
            endpoint=self._events_endpoint,
            json_body=body,
            ok_statuses=(200, 201),
        )

        logger.info(f"Created event: {(created or {}).get('id')}")
        return created or {}

    async def create_events_batch(self, drafts: List[EventDraft]) -> List[BatchItemResult]:
        """
        Create several events concurrently.

        Returns:
            One BatchItemResult per draft, in input order
        """
        logger.info(f"Creating {len(drafts)} calendar events in batch")
        outcomes = await asyncio.gather(
            *(self.create_event(draft) for draft in drafts),
            return_exceptions=True,
        )
        return [
            self._batch_result(draft.summary, outcome)
            for draft, outcome in zip(drafts, outcomes)
        ]

    async def update_event(self, event_id: str, updates: EventUpdates) -> Dict[str, Any]:
        """
        Update an existing calendar event with a PATCH request.

        Only specified fields are updated; others remain unchanged.

        Raises:
            APIError: If update fails
            ValueError: If no updates provided
        """
        if not updates.has_changes():
            raise ValueError("No updates provided")

        body = self._with_timezones(updates.to_api_body())

        logger.info(
            "Updating calendar event",
            extra={
                "event_id": event_id,
                "calendar_id": self.calendar_id,
                "update_fields": list(body.keys()),
            }
        )

        updated = await self._make_request(
            method="PATCH",
            endpoint=f"{self._events_endpoint}/{event_id}",
            json_body=body,
        )

        logger.info(f"Updated event: {event_id}")
        return updated or {}

    async def delete_event(self, event_id: str) -> bool:
        """
        Delete a calendar event.

        Raises:
            APIError: If deletion fails
        """
        logger.info(
            "Deleting calendar event",
            extra={
                "event_id": event_id,
                "calendar_id": self.calendar_id,
            }
        )

        # 204 No Content is the expected success response for DELETE
        await self._make_request(
            method="DELETE",
            endpoint=f"{self._events_endpoint}/{event_id}",
            ok_statuses=(200, 204),
        )

        logger.info(f"Deleted event: {event_id}")
        return True

    async def delete_events_batch(self, event_ids: List[str]) -> List[BatchItemResult]:
        """
        Delete several events concurrently.

        Returns:
            One BatchItemResult per id, in input order
        """
        logger.info(f"Deleting {len(event_ids)} calendar events in batch")
        outcomes = await asyncio.gather(
            *(self.delete_event(event_id) for event_id in event_ids),
            return_exceptions=True,
        )
        return [
            self._batch_result(event_id, outcome)
            for event_id, outcome in zip(event_ids, outcomes)
        ]

    def _batch_result(self, key: str, outcome: Any) -> BatchItemResult:
        if isinstance(outcome, Exception):
            logger.warning(f"Batch item failed ({key}): {outcome}")
            return BatchItemResult(key=key, success=False, error=str(outcome))
        data = outcome if isinstance(outcome, dict) else None
        return BatchItemResult(key=key, success=True, data=data)
