"""
Gemini Provider - Google's GenAI SDK.

Compatible with Gemini 2.0 and 2.5 Flash models. Calls go through the
SDK's async client so a turn never blocks the event loop while waiting
on the model.
"""

import time
import logging
from typing import Optional

from google import genai
from google.genai import types

from app.core.config import settings
from app.ai.providers.base import (
    AIProvider,
    AIResponse,
    ProviderType,
    TokenUsage
)

logger = logging.getLogger("calendar_assistant.ai.gemini")


class GeminiProvider(AIProvider):
    provider_type = ProviderType.GEMINI

    def __init__(self, model: str = None, api_key: str = None):
        self.model = model or settings.GEMINI_MODEL
        self.api_key = api_key or settings.GEMINI_API_KEY

        if self.api_key:
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=settings.AI_REQUEST_TIMEOUT * 1000),
            )
            logger.info(f"Gemini provider initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning("Gemini API key not configured")

    def is_configured(self) -> bool:
        return self._client is not None

    async def generate_json(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        start_time = time.time()
        if not self._client:
            return self._error("Gemini API key not configured", start_time)

        try:
            config = types.GenerateContentConfig(
                temperature=0.2,
                max_output_tokens=kwargs.get("max_tokens", 1024),
                response_mime_type="application/json",
                system_instruction=system_prompt
            )

            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=f"{prompt}\n\nIMPORTANT: Respond ONLY with valid JSON.",
                config=config
            )

            content = (response.text or "").strip()
            if content.startswith("```json"):
                content = content[7:-3].strip()

            return AIResponse(
                content=content,
                provider=self.provider_type,
                model=self.model,
                usage=self._extract_usage(response),
                latency_ms=self._measure_latency(start_time),
                success=True,
            )

        except Exception as e:
            return self._error(str(e), start_time)

    async def generate_with_grounding(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        use_search: bool = True,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        **kwargs
    ) -> AIResponse:
        start_time = time.time()
        if not self._client:
            return self._error("Gemini API key not configured", start_time)

        try:
            tools_list = []
            if use_search:
                tools_list.append(types.Tool(google_search=types.GoogleSearch()))

            config = types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
                system_instruction=system_prompt,
                tools=tools_list
            )

            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config
            )

            return AIResponse(
                content=response.text or "",
                provider=self.provider_type,
                model=self.model,
                usage=self._extract_usage(response),
                latency_ms=self._measure_latency(start_time),
                success=True,
                metadata=self._extract_grounding_metadata(response),
            )

        except Exception as e:
            return self._error(str(e), start_time)

    # --- PRIVATE HELPERS ---

    def _extract_usage(self, response):
        # The SDK returns None when no usage was reported
        prompt_t = response.usage_metadata.prompt_token_count if response.usage_metadata else 0
        comp_t = response.usage_metadata.candidates_token_count if response.usage_metadata else 0
        return TokenUsage(prompt_tokens=prompt_t or 0, completion_tokens=comp_t or 0)

    def _extract_grounding_metadata(self, response):
        metadata = {}
        if response.candidates and response.candidates[0].grounding_metadata:
            gm = response.candidates[0].grounding_metadata
            metadata['grounded'] = True

            sources = []
            if gm.grounding_chunks:
                for chunk in gm.grounding_chunks:
                    if chunk.web:
                        sources.append({'uri': chunk.web.uri, 'title': chunk.web.title})
            if sources:
                metadata['sources'] = sources
        return metadata

    def _error(self, msg, start_time):
        return self._create_error_response(
            error=msg, model=self.model, latency_ms=self._measure_latency(start_time)
        )


# Singleton instance
gemini_provider = GeminiProvider()
