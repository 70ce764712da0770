"""
Range Service - decide which window of calendar data a question needs.

Before any events are fetched, the model is asked for the minimal set of
date ranges that answers the user's question. Its answer is validated and
clamped by app.ai.ranges; whenever the model is unavailable or its answer
is unusable, the deterministic heuristic takes over, so callers never see
a failure from this step.

Architecture:
=============
1. Build the range prompt (rules + output schema, last messages of context)
2. Ask Gemini for strict JSON
3. Locate the outermost {...} in the reply and decode it
4. normalize_ai_ranges: drop bad ranges, sort, clamp to 18 months
5. Anything missing or invalid along the way -> build_heuristic_ranges

Usage:
======
    from app.services.range_service import range_service

    result = await range_service.infer_range("What do I have in June?")
    print(result.union.start, result.union.end, result.source)
"""

import json
import logging
import re
import uuid
from datetime import date, datetime
from typing import Any, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings
from app.ai.monitoring import ai_logger
from app.ai.prompts import RANGE_SYSTEM_PROMPT, build_range_prompt
from app.ai.providers import AIProvider, gemini_provider
from app.ai.ranges import RangeResult, build_heuristic_ranges, normalize_ai_ranges


logger = logging.getLogger("calendar_assistant.services.range")

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def resolve_zone(timezone: Optional[str] = None) -> ZoneInfo:
    """The IANA zone of that name; unknown zones fall back to DEFAULT_TIMEZONE."""
    name = timezone or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using {settings.DEFAULT_TIMEZONE}")
        return ZoneInfo(settings.DEFAULT_TIMEZONE)


def today_in_timezone(timezone: Optional[str] = None) -> date:
    """Current calendar date in the given IANA zone."""
    return datetime.now(resolve_zone(timezone)).date()


def parse_range_answer(content: str) -> Optional[Any]:
    """Decode the outermost JSON object of a model reply, if any."""
    match = _JSON_OBJECT_RE.search(content or "")
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError:
        return None


class RangeService:
    """
    Range inference with a heuristic safety net.

    The provider is injectable so tests can substitute a mock.
    """

    def __init__(self, provider: Optional[AIProvider] = None):
        self.provider = provider or gemini_provider

    async def infer_range(
        self,
        query: str,
        today: Optional[date] = None,
        conversation_tail: Optional[Iterable[Any]] = None,
        timezone: Optional[str] = None,
    ) -> RangeResult:
        """
        Decide the date ranges needed for a query.

        Args:
            query: User's question
            today: Reference date (defaults to today in ``timezone``)
            conversation_tail: Recent conversation messages
            timezone: IANA zone of the user

        Returns:
            RangeResult from the model (source "ai") or from the
            heuristic (source "heuristic"); never raises for model issues
        """
        request_id = str(uuid.uuid4())
        today = today or today_in_timezone(timezone)

        if not self.provider.is_configured():
            return self._fallback(request_id, query, today, "provider_not_configured")

        prompt = build_range_prompt(query, today, conversation_tail)
        ai_logger.log_request(
            request_id=request_id,
            prompt=prompt,
            provider=self.provider.provider_type.value,
            model=self.provider.model,
            stage="range",
        )

        response = await self.provider.generate_json(
            prompt=prompt,
            system_prompt=RANGE_SYSTEM_PROMPT,
        )
        ai_logger.log_response(request_id, response)

        if not response.success:
            return self._fallback(request_id, query, today, "provider_error", response.error)

        parsed = parse_range_answer(response.content)
        if parsed is None:
            return self._fallback(request_id, query, today, "no_json")

        result = normalize_ai_ranges(parsed, today)
        if result is None:
            return self._fallback(request_id, query, today, "no_valid_ranges")

        ai_logger.log_event(
            request_id,
            "range_inferred",
            {
                "source": result.source,
                "ranges": len(result.ranges),
                "union": [result.union.start.isoformat(), result.union.end.isoformat()],
                "strategy": result.strategy,
            },
        )
        return result

    def _fallback(
        self,
        request_id: str,
        query: str,
        today: date,
        reason: str,
        error: Optional[str] = None,
    ) -> RangeResult:
        data = {"reason": reason}
        if error:
            data["error"] = error
        ai_logger.log_event(request_id, "range_fallback", data)
        return build_heuristic_ranges(query, today)


# Singleton instance
range_service = RangeService()
