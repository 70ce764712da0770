"""
AI Providers Module - LLM client used by the calendar assistant.

Google Gemini handles both jobs of the assistant:
- the chat reply (with calendar-scoped search grounding)
- the date-range inference call (JSON mode)

Every provider exposes the same async interface:
    response = await provider.generate_json(prompt, system_prompt=...)
    response = await provider.generate_with_grounding(prompt, use_search=True)
"""

from app.ai.providers.base import AIProvider, AIResponse, ProviderType, TokenUsage
from app.ai.providers.gemini import GeminiProvider, gemini_provider

__all__ = [
    "AIProvider",
    "AIResponse",
    "ProviderType",
    "TokenUsage",
    "GeminiProvider",
    "gemini_provider",
]
