"""
Date Ranges Module - decide which calendar window a question needs.

- schemas: DateRange / RangeResult
- normalizer: validation and span clamping of model-proposed ranges
- heuristics: deterministic fallback from the query text alone
"""

from app.ai.ranges.schemas import DateRange, RangeResult, RangeUnion
from app.ai.ranges.normalizer import (
    clamp_span,
    normalize_ai_ranges,
    normalize_range,
    parse_range_date,
)
from app.ai.ranges.heuristics import build_heuristic_ranges, heuristic_range

__all__ = [
    "DateRange",
    "RangeResult",
    "RangeUnion",
    "clamp_span",
    "normalize_ai_ranges",
    "normalize_range",
    "parse_range_date",
    "build_heuristic_ranges",
    "heuristic_range",
]
