"""
Assistant Stream Service - one chat turn as an ordered frame sequence.

The model is called once for the whole reply. Its text is then split in two
views of the same string:
- actions: calendar mutations embedded as JSON (extract_actions)
- prose:   the reply with every JSON artifact removed (sanitize + tidy)

Frames, always in this order:
=============================
    {"delta": "Sure, I'll add that.\\n"}     zero or more, prose line by line
    {"type": "actions", "actions": [...]}   at most one
    [DONE]                                  always last

Failures (provider error, unexpected exception) produce a single
{"error": "..."} frame followed by [DONE], so a client reader loop always
terminates. Actions are computed from the complete reply, never from
partial text, so no side effect can start before the actions frame.

Usage:
======
    from app.services.assistant_stream_service import assistant_stream_service

    async for chunk in assistant_stream_service.stream_sse(query, events, history):
        ...  # "data: {...}\\n\\n"
"""

import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, Iterable, List, Optional, Union

from app.core.config import settings
from app.ai.actions import extract_actions, sanitize, tidy_markdown
from app.ai.monitoring import ai_logger
from app.ai.prompts import build_assistant_prompt, build_assistant_system_prompt
from app.ai.providers import AIProvider, gemini_provider
from app.services.range_service import today_in_timezone


logger = logging.getLogger("calendar_assistant.services.stream")

DONE_MARKER = "[DONE]"

Frame = Union[Dict[str, Any], str]


def format_sse_frame(frame: Frame) -> str:
    """Encode one frame as a server-sent-events ``data:`` line."""
    if frame == DONE_MARKER:
        return f"data: {DONE_MARKER}\n\n"
    return f"data: {json.dumps(frame, ensure_ascii=False)}\n\n"


def chunk_prose(text: str) -> List[str]:
    """
    Split prose into line deltas.

    Every line but the last keeps its newline, so the deltas concatenate
    back to ``text`` exactly. Empty text yields no delta.
    """
    if not text:
        return []
    lines = text.split("\n")
    chunks = [line + "\n" for line in lines[:-1]]
    chunks.append(lines[-1])
    return [chunk for chunk in chunks if chunk]


class AssistantStreamService:
    """
    Streaming orchestrator for the chat reply.

    The provider is injectable so tests can substitute a mock.
    """

    def __init__(self, provider: Optional[AIProvider] = None):
        self.provider = provider or gemini_provider

    async def stream_frames(
        self,
        query: str,
        events: Iterable[Any],
        history: Optional[Iterable[Any]] = None,
        timezone: Optional[str] = None,
    ) -> AsyncIterator[Frame]:
        """
        Produce the frames of one reply.

        Args:
            query: User's message
            events: Events of the fetched window (CalendarEventRef or dicts)
            history: Conversation so far
            timezone: IANA zone of the user

        Yields:
            Delta frames, then at most one actions frame, then DONE_MARKER
        """
        request_id = str(uuid.uuid4())

        try:
            zone = timezone or settings.DEFAULT_TIMEZONE
            system_prompt = build_assistant_system_prompt(today_in_timezone(zone), zone)
            prompt = build_assistant_prompt(query, list(events), history)

            ai_logger.log_request(
                request_id=request_id,
                prompt=prompt,
                provider=self.provider.provider_type.value,
                model=self.provider.model,
                stage="stream",
            )

            response = await self.provider.generate_with_grounding(
                prompt=prompt,
                system_prompt=system_prompt,
                use_search=True,
                max_tokens=settings.ASSISTANT_MAX_TOKENS,
            )
            ai_logger.log_response(request_id, response)

            if not response.success:
                ai_logger.log_error(request_id, response.error or "unknown error", stage="stream")
                yield {"error": response.error or "The assistant is unavailable right now."}
            else:
                text = response.content or ""
                actions = extract_actions(text)
                prose = tidy_markdown(sanitize(text))
                ai_logger.log_actions(request_id, actions, prose_length=len(prose))

                for chunk in chunk_prose(prose):
                    yield {"delta": chunk}

                if actions:
                    yield {"type": "actions", "actions": actions}

        except Exception as e:
            logger.exception("Assistant stream failed")
            ai_logger.log_error(request_id, str(e), stage="stream")
            yield {"error": str(e)}

        yield DONE_MARKER

    async def stream_sse(
        self,
        query: str,
        events: Iterable[Any],
        history: Optional[Iterable[Any]] = None,
        timezone: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """stream_frames encoded for a text/event-stream response."""
        async for frame in self.stream_frames(query, events, history, timezone):
            yield format_sse_frame(frame)


# Singleton instance
assistant_stream_service = AssistantStreamService()
