"""
Heuristic Range Engine - deterministic fallback for range inference.

Used whenever the model is unavailable or its answer is unusable. It is a
pure function of the query text and today's date (no I/O), and always
returns exactly one range.

Rules, first match wins:
- month names ("June", "september 2026")  -> union of those full months
- "next N months"                         -> today .. end of month N
- "next year"                             -> today .. end of this month next year
- "this week"                             -> Sunday..Saturday containing today
- "today" / "now"                         -> today
- "tomorrow"                              -> tomorrow
- "next week"                             -> following Sunday..Saturday
- "upcoming", "plan", "schedule", "what's coming"
                                          -> 7 days back .. 3 months ahead
- anything else                           -> 3 days back .. 1 month ahead
"""

import calendar
import re
from datetime import date, timedelta
from typing import List, Tuple

from dateutil.relativedelta import relativedelta

from app.ai.ranges.normalizer import CLAMP_NOTE, clamp_span, within_distance
from app.ai.ranges.schemas import DateRange, RangeResult


MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

# "may" followed by a pronoun or verb is the modal, not the month ("May I see...")
_MODAL_MAY = r"(?!\s+(?:i|we|you|he|she|it|they|be|have|need|want|ask|see|know|check|get|add|help)\b)"


def _month_pattern(name: str) -> "re.Pattern[str]":
    guard = _MODAL_MAY if name == "may" else ""
    return re.compile(rf"\b{name}\b{guard}(?:\s+(\d{{4}})\b)?")


_MONTH_RES = [(index, _month_pattern(name)) for index, name in enumerate(MONTH_NAMES, start=1)]

_NEXT_N_MONTHS_RE = re.compile(r"next\s+(\d+)\s+month")
_NEXT_YEAR_RE = re.compile(r"next\s+year")
_THIS_WEEK_RE = re.compile(r"this\s+week")
_TODAY_RE = re.compile(r"\b(?:today|now)\b")
_TOMORROW_RE = re.compile(r"\btomorrow\b")
_NEXT_WEEK_RE = re.compile(r"next\s+week")
_UPCOMING_RE = re.compile(r"upcoming|plan|schedule|what.*coming")


def _end_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _months_ahead_end(today: date, months: int) -> date:
    target = today + relativedelta(months=months)
    return _end_of_month(target.year, target.month)


def _week_start(day: date) -> date:
    """Sunday of the week containing ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def infer_month_year(month: int, today: date) -> int:
    """A named month more than one month in the past means next year."""
    if month < today.month - 1:
        return today.year + 1
    return today.year


def find_referenced_months(query: str, today: date) -> List[Tuple[int, int]]:
    """
    All (year, month) pairs named in the query.

    Months reaching beyond RANGE_MAX_DISTANCE_YEARS of today are left out.
    """
    lower = query.lower()
    found = []
    for month, pattern in _MONTH_RES:
        for match in pattern.finditer(lower):
            year = int(match.group(1)) if match.group(1) else infer_month_year(month, today)
            if year < 1:
                continue
            if within_distance(date(year, month, 1), today) and within_distance(_end_of_month(year, month), today):
                found.append((year, month))
    return found


def heuristic_range(query: str, today: date) -> DateRange:
    """Pick the single fallback range for a query."""
    lower = query.lower()

    months = find_referenced_months(query, today)
    if months:
        first_year, first_month = min(months)
        last_year, last_month = max(months)
        return DateRange(
            start=date(first_year, first_month, 1),
            end=_end_of_month(last_year, last_month),
            reason="Referenced months",
        )

    match = _NEXT_N_MONTHS_RE.search(lower)
    if match:
        count = min(max(int(match.group(1)), 1), 12)
        return DateRange(start=today, end=_months_ahead_end(today, count), reason=f"Next {count} months")

    if _NEXT_YEAR_RE.search(lower):
        return DateRange(start=today, end=_months_ahead_end(today, 12), reason="Next year")

    if _THIS_WEEK_RE.search(lower):
        start = _week_start(today)
        return DateRange(start=start, end=start + timedelta(days=6), reason="This week")

    if _TODAY_RE.search(lower):
        return DateRange(start=today, end=today, reason="Today only")

    if _TOMORROW_RE.search(lower):
        tomorrow = today + timedelta(days=1)
        return DateRange(start=tomorrow, end=tomorrow, reason="Tomorrow")

    if _NEXT_WEEK_RE.search(lower):
        start = _week_start(today) + timedelta(days=7)
        return DateRange(start=start, end=start + timedelta(days=6), reason="Next week")

    if _UPCOMING_RE.search(lower):
        return DateRange(
            start=today - timedelta(days=7),
            end=today + relativedelta(months=3),
            reason="Recent past + 3 months ahead",
        )

    return DateRange(
        start=today - timedelta(days=3),
        end=today + relativedelta(months=1),
        reason="Default small window",
    )


def build_heuristic_ranges(query: str, today: date) -> RangeResult:
    """
    Deterministic range answer for a query.

    Args:
        query: User's natural-language question
        today: Current date in the user's timezone

    Returns:
        RangeResult with exactly one range and source "heuristic", its span
        clamped like a model answer
    """
    ranges, clamped = clamp_span([heuristic_range(query or "", today)])
    strategy = f"heuristic | {CLAMP_NOTE}" if clamped else "heuristic"
    return RangeResult.from_ranges(ranges, strategy=strategy, source="heuristic")
