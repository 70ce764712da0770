"""
Range Normalizer - validate and clamp date ranges proposed by the model.

Model output is untrusted. Each proposed range is checked on its own and
dropped (not the whole answer) when:
- start or end is not a parseable date
- end is before start
- either date is more than RANGE_MAX_DISTANCE_YEARS away from today

The surviving ranges are sorted; when together they cover more than
RANGE_MAX_SPAN_MONTHS, their ends are clamped to
``first.start + RANGE_MAX_SPAN_MONTHS - 1 day`` and the strategy says so.
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from app.core.config import settings
from app.ai.ranges.schemas import DateRange, RangeResult


logger = logging.getLogger("calendar_assistant.ai.ranges")

_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CLAMP_NOTE = f"Clamped to {settings.RANGE_MAX_SPAN_MONTHS} months"


def parse_range_date(value: Any, today: date) -> Optional[date]:
    """
    Parse a date proposed by the model.

    Accepts "YYYY-MM-DD" or a full ISO datetime (its calendar date is used).

    Returns:
        The date, or None if unparseable or implausibly far from today
    """
    if not value or not isinstance(value, str):
        return None

    value = value.strip()
    try:
        if _DATE_PREFIX_RE.match(value):
            parsed = date.fromisoformat(value)
        else:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        return None

    if not within_distance(parsed, today):
        return None
    return parsed


def within_distance(day: date, today: date) -> bool:
    """Whether ``day`` lies within RANGE_MAX_DISTANCE_YEARS of today."""
    years = relativedelta(years=settings.RANGE_MAX_DISTANCE_YEARS)
    return today - years <= day <= today + years


def normalize_range(raw: Any, today: date) -> Optional[DateRange]:
    """Validate one model-proposed range; None means "drop it"."""
    if not isinstance(raw, dict):
        return None

    start = parse_range_date(raw.get("start"), today)
    end = parse_range_date(raw.get("end"), today)
    if start is None or end is None or end < start:
        return None

    reason = str(raw.get("reason") or "")[:settings.RANGE_REASON_MAX_CHARS]
    return DateRange(start=start, end=end, reason=reason)


def clamp_span(ranges: List[DateRange]) -> Tuple[List[DateRange], bool]:
    """
    Keep the total span within RANGE_MAX_SPAN_MONTHS.

    Args:
        ranges: Valid ranges

    Returns:
        (sorted ranges, whether clamping happened). Ranges that begin after
        the clamp limit are dropped; ends past the limit are pulled back.
    """
    ordered = sorted(ranges, key=lambda r: r.start)
    if not ordered:
        return ordered, False

    limit = ordered[0].start + relativedelta(months=settings.RANGE_MAX_SPAN_MONTHS) - timedelta(days=1)
    if max(r.end for r in ordered) <= limit:
        return ordered, False

    clamped = [
        DateRange(start=r.start, end=min(r.end, limit), reason=r.reason)
        for r in ordered
        if r.start <= limit
    ]
    return clamped, True


def normalize_ai_ranges(parsed: Any, today: date) -> Optional[RangeResult]:
    """
    Turn the model's JSON answer into a RangeResult.

    Args:
        parsed: Decoded JSON object from the model
        today: Reference date for plausibility checks

    Returns:
        RangeResult with source "ai", or None when the answer has no
        ``ranges`` array or none of its ranges survive validation
    """
    if not isinstance(parsed, dict) or not isinstance(parsed.get("ranges"), list):
        return None

    proposed = parsed["ranges"][:settings.RANGE_MAX_AI_RANGES]
    valid = [r for r in (normalize_range(raw, today) for raw in proposed) if r is not None]
    if not valid:
        return None

    dropped = len(proposed) - len(valid)
    if dropped:
        logger.info(f"Dropped {dropped} invalid range(s) from model answer")

    strategy = parsed.get("strategy") if isinstance(parsed.get("strategy"), str) else ""
    ranges, clamped = clamp_span(valid)
    if clamped:
        strategy = f"{strategy} | {CLAMP_NOTE}" if strategy else CLAMP_NOTE

    return RangeResult.from_ranges(ranges, strategy=strategy or "ai", source="ai")
