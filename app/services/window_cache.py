"""
Fetched Window Cache - which calendar windows a session already loaded.

Windows are inclusive date intervals. Added windows are merged when they
overlap or touch (June 1-30 + July 1-31 -> June 1 - July 31), so the cache
always holds a sorted list of disjoint intervals.

The cache only answers "was this loaded?" and "which parts are missing?".
It never holds events; a turn's event snapshot is fetched fresh.
"""

from datetime import date, timedelta
from typing import List, Tuple

Interval = Tuple[date, date]


class FetchedWindowCache:
    """Merged set of inclusive date intervals."""

    def __init__(self):
        self._intervals: List[Interval] = []

    @property
    def intervals(self) -> List[Interval]:
        return list(self._intervals)

    def add(self, start: date, end: date) -> None:
        """Record [start, end] as loaded."""
        if end < start:
            raise ValueError("end must not be before start")

        merged: List[Interval] = []
        for current_start, current_end in sorted(self._intervals + [(start, end)]):
            if merged and current_start <= merged[-1][1] + timedelta(days=1):
                last_start, last_end = merged[-1]
                merged[-1] = (last_start, max(last_end, current_end))
            else:
                merged.append((current_start, current_end))
        self._intervals = merged

    def missing(self, start: date, end: date) -> List[Interval]:
        """Sub-intervals of [start, end] not yet loaded, in order."""
        gaps: List[Interval] = []
        cursor = start
        for current_start, current_end in self._intervals:
            if current_end < cursor:
                continue
            if current_start > end:
                break
            if current_start > cursor:
                gaps.append((cursor, current_start - timedelta(days=1)))
            cursor = max(cursor, current_end + timedelta(days=1))
            if cursor > end:
                return gaps
        if cursor <= end:
            gaps.append((cursor, end))
        return gaps

    def covers(self, start: date, end: date) -> bool:
        return not self.missing(start, end)

    def clear(self) -> None:
        self._intervals = []
