"""
Base AI Provider - the interface the assistant services call.

Two calls are needed per chat turn: a JSON-mode call that picks the date
range, and a grounded call that writes the reply. Services only see this
interface, so tests swap in a mock provider.

Example:
    response = await provider.generate_json(prompt, system_prompt=RANGE_SYSTEM_PROMPT)
    if response.success:
        data = json.loads(response.content)
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Any, Dict
from enum import Enum
import logging

logger = logging.getLogger("calendar_assistant.ai")


class ProviderType(str, Enum):
    GEMINI = "gemini"


@dataclass
class TokenUsage:
    """Token counts reported for one request (logged with the response)."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        if self.total_tokens == 0:
            self.total_tokens = self.prompt_tokens + self.completion_tokens


@dataclass
class AIResponse:
    """
    Result of one model call.

    Providers never raise: a failed call comes back with ``success=False``
    and the reason in ``error``; ``content`` is then empty.

    Attributes:
        content: Model text (JSON text for generate_json)
        provider: Which provider answered
        model: Model name
        usage: Token counts
        latency_ms: Wall time of the call
        metadata: Grounding info (``grounded``, ``sources``) when search was used
    """
    content: str
    provider: ProviderType
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    latency_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    provider_type: ProviderType
    model: str

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """
        Low-temperature call in JSON response mode.

        Used for date-range inference. ``content`` is the raw JSON text;
        callers parse and validate it themselves.
        """
        pass

    @abstractmethod
    async def generate_with_grounding(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        use_search: bool = True,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs
    ) -> AIResponse:
        """
        Free-text call with web search grounding.

        Used for the chat reply; the system prompt limits searches to
        lookups that help answer calendar questions.
        """
        pass

    def is_configured(self) -> bool:
        return True

    def _measure_latency(self, start_time: float) -> float:
        return (time.time() - start_time) * 1000

    def _create_error_response(
        self,
        error: str,
        model: str,
        latency_ms: float = 0.0
    ) -> AIResponse:
        logger.error(f"AI Provider Error [{self.provider_type.value}]: {error}")
        return AIResponse(
            content="",
            provider=self.provider_type,
            model=model,
            latency_ms=latency_ms,
            success=False,
            error=error,
        )
