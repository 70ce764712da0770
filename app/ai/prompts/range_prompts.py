"""
Range Prompts - decide which dates of calendar data a question needs.

The model answers with strict JSON; app.ai.ranges.normalizer validates and
clamps whatever comes back.
"""

from datetime import date
from typing import Any, Iterable, Optional

from app.core.config import settings
from app.ai.prompts.helpers import format_conversation_history


RANGE_SYSTEM_PROMPT = f"""Determine the minimal calendar date ranges needed to answer a user question or perform requested calendar actions. Output strict JSON only.

Rules:
1. Prefer a single contiguous range when months are consecutive.
2. If the user asks for multiple disjoint periods (e.g., "June and September"), output separate ranges.
3. Each range: start (inclusive ISO date), end (inclusive ISO date), reason (short rationale).
4. Never exceed {settings.RANGE_MAX_SPAN_MONTHS} months total span; if the request is broader, clamp and note it in strategy.
5. If the question is general (e.g., "What does my schedule look like?"), pick from 1 week before today to 3 months ahead.
6. If the user references explicit dates or months, cover exactly those.
7. For "next X months" choose today through the end of the Xth month ahead.
8. Always ensure start <= end.

Output schema:
{{"ranges":[{{"start":"YYYY-MM-DD","end":"YYYY-MM-DD","reason":"..."}}],"union":{{"start":"YYYY-MM-DD","end":"YYYY-MM-DD"}},"strategy":"brief explanation"}}"""


def build_range_prompt(
    query: str,
    today: date,
    context: Optional[Iterable[Any]] = None,
) -> str:
    """
    User-side content of the range call.

    Only the most recent RANGE_CONTEXT_MESSAGES messages are included.
    """
    history = format_conversation_history(context, limit=settings.RANGE_CONTEXT_MESSAGES)
    return f"""Today: {today.isoformat()}
User query: {query}
Conversation (truncated): {history}"""
