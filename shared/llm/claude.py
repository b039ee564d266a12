"""
Claude Provider
===============

Anthropic Claude API implementation.

Structured output is obtained by offering exactly one tool and forcing
the model to call it (``tool_choice={"type": "tool", ...}``).

Version: 0.1.0
"""

import time
from typing import Any

import anthropic

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


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider implementation."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        """
        Initialize Claude provider.

        Args:
            api_key: Anthropic API key (default from settings)
            model: Model to use (default from settings)
            client: Pre-built SDK client (tests)
        """
        self._api_key = api_key or settings.llm.claude.api_key.get_secret_value()
        self._model = model or settings.llm.claude.model
        self._max_tokens = settings.llm.claude.max_tokens

        if client is None and not self._api_key:
            raise ValueError("Anthropic API key not configured")

        # Retries are owned by the caller's retry policy
        self._client = client or anthropic.AsyncAnthropic(
            api_key=self._api_key,
            max_retries=0,
            timeout=settings.llm.timeout_seconds,
        )

        logger.debug("claude_provider_initialized", model=self._model)

    @property
    def name(self) -> str:
        return "claude"

    @property
    def model(self) -> str:
        return self._model

    async def extract_structured(
        self,
        messages: list[LLMMessage],
        schema: OutputSchema,
        temperature: float | None = None,
    ) -> StructuredResponse:
        """Force a single tool call and return its input."""
        start_time = time.perf_counter()

        system_message = None
        api_messages = []
        for msg in messages:
            msg_dict = msg.to_dict()
            if msg_dict["role"] == "system":
                system_message = msg_dict["content"]
            else:
                api_messages.append(msg_dict)

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": api_messages,
            "max_tokens": self._max_tokens,
            "temperature": temperature if temperature is not None else settings.llm.temperature,
            "tools": [
                {
                    "name": schema.name,
                    "description": schema.description,
                    "input_schema": schema.parameters,
                }
            ],
            "tool_choice": {"type": "tool", "name": schema.name},
        }
        if system_message:
            kwargs["system"] = system_message

        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIStatusError as e:
            logger.error("claude_error", status=e.status_code, error=str(e))
            raise error_for_status(e.status_code, str(e)) from e
        except anthropic.APIConnectionError as e:
            logger.error("claude_connection_error", error=str(e))
            raise LLMBackendError(f"LLM connection failed: {e}") from e

        latency_ms = (time.perf_counter() - start_time) * 1000

        payload = None
        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == schema.name:
                payload = block.input
                break

        if not isinstance(payload, dict):
            raise StructuredOutputError("No tool call in LLM response")

        usage = LLMUsage(
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
            total_tokens=response.usage.input_tokens + response.usage.output_tokens,
        )

        logger.debug(
            "claude_structured_completion",
            model=self._model,
            tool=schema.name,
            tokens=usage.total_tokens,
            latency_ms=round(latency_ms, 2),
        )

        return StructuredResponse(
            payload=payload,
            model=response.model,
            provider=self.name,
            usage=usage,
            latency_ms=latency_ms,
        )

    async def health_check(self) -> dict[str, Any]:
        """Check Claude API health with a minimal completion."""
        try:
            start = time.perf_counter()

            await self._client.messages.create(
                model=self._model,
                messages=[{"role": "user", "content": "Hi"}],
                max_tokens=5,
            )

            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "provider": self.name,
                "model": self._model,
                "latency_ms": round(latency_ms, 2),
            }

        except Exception as e:
            logger.error("claude_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "provider": self.name,
                "model": self._model,
                "error": str(e),
            }
