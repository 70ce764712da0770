"""
AI Logger - Structured logging for AI operations.

This module provides structured logging specifically for the assistant
pipeline. It captures:
- Request details (prompt size, model, provider)
- Response details (tokens, latency)
- Extraction results (how many actions a reply carried)
- Errors and fallbacks

Log Format:
==========
Each log entry is a single JSON object on one line, including:
- Timestamp
- Request ID (for tracing one chat turn / range inference)
- Provider and model
- Token usage and latency
- Success/failure status
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from app.ai.providers.base import AIResponse

logger = logging.getLogger("calendar_assistant.ai")
logger.setLevel(logging.INFO)

# Create console handler if not exists
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s [%(name)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


class AILogger:
    """
    Structured logger for AI operations.

    Usage:
        ai_logger.log_request(
            request_id="abc123",
            prompt="What's on tomorrow?",
            provider="gemini",
            model="gemini-2.5-flash",
            stage="stream",
        )
        ai_logger.log_response(request_id="abc123", response=ai_response)
    """

    def __init__(self):
        self._logger = logger

    def log_request(
        self,
        request_id: str,
        prompt: str,
        provider: str,
        model: str,
        stage: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log an AI request.

        Args:
            request_id: Unique request identifier
            prompt: The prompt being sent (only a preview is logged)
            provider: AI provider name
            model: Model name
            stage: Pipeline stage issuing the call ("range", "stream")
            metadata: Additional metadata
        """
        log_data = {
            "event": "ai_request",
            "request_id": request_id,
            "stage": stage,
            "provider": provider,
            "model": model,
            "prompt_length": len(prompt),
            "prompt_preview": prompt[:100] + "..." if len(prompt) > 100 else prompt,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if metadata:
            log_data["metadata"] = metadata

        self._logger.info(f"AI Request: {json.dumps(log_data)}")

    def log_response(
        self,
        request_id: str,
        response: AIResponse,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log an AI response.

        Args:
            request_id: Request identifier (for correlation)
            response: The AIResponse object
            metadata: Additional metadata
        """
        log_data = {
            "event": "ai_response",
            "request_id": request_id,
            "provider": response.provider.value if hasattr(response.provider, 'value') else str(response.provider),
            "model": response.model,
            "success": response.success,
            "latency_ms": round(response.latency_ms, 2),
            "tokens": {
                "prompt": response.usage.prompt_tokens,
                "completion": response.usage.completion_tokens,
                "total": response.usage.total_tokens,
            },
            "response_length": len(response.content),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if not response.success:
            log_data["error"] = response.error

        if metadata:
            log_data["metadata"] = metadata

        level = logging.INFO if response.success else logging.WARNING
        self._logger.log(level, f"AI Response: {json.dumps(log_data)}")

    def log_actions(
        self,
        request_id: str,
        actions: list,
        prose_length: int,
    ) -> None:
        """
        Log the outcome of action extraction for one reply.

        Args:
            request_id: Request identifier
            actions: Extracted action payloads
            prose_length: Length of the sanitized prose sent to the client
        """
        log_data = {
            "event": "actions_extracted",
            "request_id": request_id,
            "count": len(actions),
            "kinds": [a.get("action") or a.get("type") for a in actions],
            "prose_length": prose_length,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        self._logger.info(f"Actions Extracted: {json.dumps(log_data)}")

    def log_error(
        self,
        request_id: str,
        error: str,
        stage: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log an error in the AI pipeline.

        Args:
            request_id: Request identifier
            error: Error message
            stage: Where the error occurred (range, stream, execute)
            metadata: Additional context
        """
        log_data = {
            "event": "ai_error",
            "request_id": request_id,
            "error": error,
            "stage": stage,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if metadata:
            log_data["metadata"] = metadata

        self._logger.error(f"AI Error: {json.dumps(log_data)}")

    def log_event(
        self,
        request_id: str,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Log a generic event in the AI pipeline.

        Args:
            request_id: Request identifier
            event_type: Type of event (range_fallback, range_clamped, ...)
            data: Event-specific data
        """
        log_data = {
            "event": event_type,
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        if data:
            log_data.update(data)

        self._logger.info(f"AI Event: {json.dumps(log_data)}")


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
ai_logger = AILogger()
