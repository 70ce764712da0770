"""
Date Range Schemas - the windows of calendar data needed to answer a query.

Before any events are fetched, the assistant decides which inclusive date
ranges it needs. A result looks like:

```json
{
  "ranges": [{"start": "2025-06-01", "end": "2025-06-30", "reason": "June"}],
  "union": {"start": "2025-06-01", "end": "2025-06-30"},
  "strategy": "Single month requested",
  "source": "ai"
}
```
"""

from datetime import date
from typing import List, Literal

from pydantic import BaseModel, Field, model_validator


class DateRange(BaseModel):
    """Inclusive date interval with a short rationale."""
    start: date
    end: date
    reason: str = Field(default="", max_length=160)

    @model_validator(mode="after")
    def start_before_end(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class RangeUnion(BaseModel):
    """Min-start / max-end envelope of a set of ranges."""
    start: date
    end: date


class RangeResult(BaseModel):
    """Answer of the range inference step."""
    ranges: List[DateRange]
    union: RangeUnion
    strategy: str
    source: Literal["ai", "heuristic"]

    @classmethod
    def from_ranges(
        cls,
        ranges: List[DateRange],
        strategy: str,
        source: Literal["ai", "heuristic"],
    ) -> "RangeResult":
        """Build a result, sorting the ranges and computing their union."""
        if not ranges:
            raise ValueError("a range result needs at least one range")
        ordered = sorted(ranges, key=lambda r: r.start)
        return cls(
            ranges=ordered,
            union=RangeUnion(
                start=min(r.start for r in ordered),
                end=max(r.end for r in ordered),
            ),
            strategy=strategy,
            source=source,
        )
