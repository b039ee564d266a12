"""
OpenAI Provider
===============

OpenAI chat-completions implementation. Works against api.openai.com or
any OpenAI-compatible gateway configured through ``OPENAI_BASE_URL``.

Version: 0.1.0
"""

import json
import time
from typing import Any

import openai

from shared.config import settings
from shared.llm.provider import (
    LLMBackendError,
    LLMMessage,
    LLMProvider,
    LLMUsage,
    OutputSchema,
    StructuredOutputError,
    StructuredResponse,
    error_for_status,
)
from shared.logging import get_logger


logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible provider implementation."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        """
        Initialize OpenAI provider.

        Args:
            api_key: API key (default from settings)
            model: Model to use (default from settings)
            base_url: Gateway URL (default from settings, else api.openai.com)
            client: Pre-built SDK client (tests)
        """
        self._api_key = api_key or settings.llm.openai.api_key.get_secret_value()
        self._model = model or settings.llm.openai.model

        if client is None and not self._api_key:
            raise ValueError("OpenAI API key not configured")

        self._client = client or openai.AsyncOpenAI(
            api_key=self._api_key,
            base_url=base_url or settings.llm.openai.base_url,
            max_retries=0,
            timeout=settings.llm.timeout_seconds,
        )

        logger.debug("openai_provider_initialized", model=self._model)

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    async def extract_structured(
        self,
        messages: list[LLMMessage],
        schema: OutputSchema,
        temperature: float | None = None,
    ) -> StructuredResponse:
        """Force a single function call and return its parsed arguments."""
        start_time = time.perf_counter()

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [msg.to_dict() for msg in messages],
            "temperature": temperature if temperature is not None else settings.llm.temperature,
            "tools": [
                {
                    "type": "function",
                    "function": {
                        "name": schema.name,
                        "description": schema.description,
                        "parameters": schema.parameters,
                    },
                }
            ],
            "tool_choice": {"type": "function", "function": {"name": schema.name}},
        }

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except openai.APIStatusError as e:
            logger.error("openai_error", status=e.status_code, error=str(e))
            raise error_for_status(e.status_code, str(e)) from e
        except openai.APIConnectionError as e:
            logger.error("openai_connection_error", error=str(e))
            raise LLMBackendError(f"LLM connection failed: {e}") from e

        latency_ms = (time.perf_counter() - start_time) * 1000

        tool_calls = response.choices[0].message.tool_calls if response.choices else None
        if not tool_calls:
            raise StructuredOutputError("No tool call in LLM response")

        try:
            payload = json.loads(tool_calls[0].function.arguments)
        except (TypeError, json.JSONDecodeError) as e:
            raise StructuredOutputError(f"Tool call arguments are not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise StructuredOutputError("Tool call arguments are not a JSON object")

        prompt_tokens = response.usage.prompt_tokens if response.usage else 0
        completion_tokens = response.usage.completion_tokens if response.usage else 0

        logger.debug(
            "openai_structured_completion",
            model=self._model,
            tool=schema.name,
            tokens=prompt_tokens + completion_tokens,
            latency_ms=round(latency_ms, 2),
        )

        return StructuredResponse(
            payload=payload,
            model=response.model,
            provider=self.name,
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            latency_ms=latency_ms,
        )

    async def health_check(self) -> dict[str, Any]:
        """Check API health by listing models."""
        try:
            start = time.perf_counter()

            await self._client.models.list()

            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "provider": self.name,
                "model": self._model,
                "latency_ms": round(latency_ms, 2),
            }

        except Exception as e:
            logger.error("openai_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "provider": self.name,
                "model": self._model,
                "error": str(e),
            }
