"""
Assistant Router - API endpoints of the chat assistant.

This router only handles HTTP concerns; the pipeline lives in the services.

Endpoints:
==========
- POST /assistant/range    which dates of calendar data a question needs
- POST /assistant/stream   the reply as server-sent events
- POST /assistant/execute  apply the actions of a reply to the calendar

Flow of one chat turn (client side):
====================================
```
range ──► GET /calendar/events (union window) ──► stream ──► execute
                                                    │
                                  deltas ── actions ┴── [DONE]
```
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from app.ai.ranges import RangeResult
from app.deps import get_calendar_backend, get_google_token
from app.environments.base import CalendarBackend
from app.schemas.assistant import (
    ExecuteRequest,
    ExecutionLogResponse,
    RangeRequest,
    StreamRequest,
)
from app.services.action_executor import ActionExecutor
from app.services.assistant_stream_service import assistant_stream_service
from app.services.range_service import range_service


# ---------------------------------------------------------------------------
# LOGGER SETUP
# ---------------------------------------------------------------------------
logger = logging.getLogger("calendar_assistant.routers.assistant")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(prefix="/assistant", tags=["assistant"])


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------

@router.post("/range", response_model=RangeResult)
async def infer_range(
    request: RangeRequest,
    _token: str = Depends(get_google_token),
) -> RangeResult:
    """
    Decide the date ranges needed to answer a question.

    Never fails because of the model: when it is unavailable or answers
    nonsense, the heuristic result (source "heuristic") is returned.

    Raises:
        400 Bad Request: If the query is blank
    """
    if not request.query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="query required",
        )

    return await range_service.infer_range(
        request.query,
        today=request.today,
        conversation_tail=request.context,
        timezone=request.timezone,
    )


@router.post("/stream")
async def stream_reply(
    request: StreamRequest,
    _token: str = Depends(get_google_token),
) -> StreamingResponse:
    """
    Stream the assistant reply.

    Response body (text/event-stream):
        data: {"delta": "..."}                      prose, line by line
        data: {"type": "actions", "actions": [...]} at most once
        data: {"error": "..."}                      only on failure
        data: [DONE]                                always last
    """
    logger.info(f"Streaming reply for query of {len(request.query)} chars with {len(request.events)} events")

    return StreamingResponse(
        assistant_stream_service.stream_sse(
            request.query,
            request.events,
            request.context,
            request.timezone,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/execute", response_model=ExecutionLogResponse)
async def execute_actions(
    request: ExecuteRequest,
    backend: CalendarBackend = Depends(get_calendar_backend),
) -> ExecutionLogResponse:
    """
    Apply the actions of one reply.

    Update/delete targets without an id are resolved against ``events``.
    Each action succeeds or fails on its own; the response lists every
    outcome and ``refreshed`` tells the client to reload its calendar.
    """
    executor = ActionExecutor(backend)
    log = await executor.execute(request.actions, request.events)
    return ExecutionLogResponse(**log.to_dict())
