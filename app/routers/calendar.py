"""
Calendar Router - list the user's events for a window.

GET /calendar/events picks its window from, in order:
1. ``start`` + ``end`` (ISO date or datetime), at most 18 months apart
2. ``months``: m months on each side of the current month (m clamped 1..12)
3. default: first day of last month through the end of next month

No window may exceed the hard cap of CALENDAR_HARD_CAP_DAYS days.
"""

import calendar as month_calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta
from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.deps import get_calendar_backend
from app.environments.base import APIError, CalendarBackend
from app.environments.google.calendar.schemas import CalendarWindow, EventListing


logger = logging.getLogger("calendar_assistant.routers.calendar")

router = APIRouter(prefix="/calendar", tags=["calendar"])


class WindowError(ValueError):
    """The requested window is not allowed."""
    pass


def parse_window_bound(value: Optional[str], zone: ZoneInfo) -> Optional[datetime]:
    """ISO date (midnight in ``zone``) or datetime (naive ones get ``zone``)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def _month_start(day: date, offset: int, zone: ZoneInfo) -> datetime:
    first = (day.replace(day=1) + relativedelta(months=offset))
    return datetime.combine(first, time.min, tzinfo=zone)


def _month_end(day: date, offset: int, zone: ZoneInfo) -> datetime:
    target = day.replace(day=1) + relativedelta(months=offset)
    last = target.replace(day=month_calendar.monthrange(target.year, target.month)[1])
    return datetime.combine(last, time.max, tzinfo=zone)


def resolve_window(
    start: Optional[str],
    end: Optional[str],
    months: Optional[int],
    now: datetime,
) -> Tuple[datetime, datetime]:
    """
    Work out the listing window.

    Args:
        start, end: Explicit bounds (used only when both parse)
        months: Months on each side of the current month
        now: Current time, zoned

    Raises:
        WindowError: end before start, or a window that is too large
    """
    zone = now.tzinfo
    start_at = parse_window_bound(start, zone)
    end_at = parse_window_bound(end, zone)

    if start_at and end_at:
        if end_at < start_at:
            raise WindowError("end must be after start")
        month_diff = (end_at.year - start_at.year) * 12 + (end_at.month - start_at.month)
        if month_diff > settings.RANGE_MAX_SPAN_MONTHS:
            raise WindowError(f"Range too large (max {settings.RANGE_MAX_SPAN_MONTHS} months)")
        time_min, time_max = start_at, end_at
    elif months is not None:
        span = min(max(months, 1), 12)
        time_min = _month_start(now.date(), -span, zone)
        time_max = _month_end(now.date(), span, zone)
    else:
        time_min = _month_start(now.date(), -1, zone)
        time_max = _month_end(now.date(), 1, zone)

    if time_max - time_min > timedelta(days=settings.CALENDAR_HARD_CAP_DAYS):
        raise WindowError(f"Date span exceeds {settings.CALENDAR_HARD_CAP_DAYS} days hard cap")

    return time_min, time_max


@router.get("/events", response_model=EventListing, response_model_exclude_none=True)
async def list_events(
    start: Optional[str] = Query(None, description="Window start (ISO date or datetime)"),
    end: Optional[str] = Query(None, description="Window end (ISO date or datetime)"),
    months: Optional[int] = Query(None, description="Months on each side of the current month"),
    max_results: Optional[int] = Query(None, description="1..2500, default 500"),
    timezone: Optional[str] = Query(None, description="IANA zone for date-only bounds"),
    backend: CalendarBackend = Depends(get_calendar_backend),
) -> EventListing:
    """
    List single event instances of a window, ordered by start time.

    Raises:
        400 Bad Request: Invalid window, unknown timezone or calendar API error
    """
    try:
        zone = ZoneInfo(timezone or settings.DEFAULT_TIMEZONE)
    except (KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown timezone")

    try:
        time_min, time_max = resolve_window(start, end, months, datetime.now(zone))
    except WindowError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    limit = min(max(max_results or settings.CALENDAR_MAX_RESULTS, 1), settings.CALENDAR_MAX_RESULTS_LIMIT)

    try:
        events = await backend.list_events(time_min, time_max, limit)
    except APIError as e:
        logger.warning(f"Listing events failed: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return EventListing(
        window=CalendarWindow(start=time_min, end=time_max),
        count=len(events),
        events=events,
    )
