"""
LLM Provider Base
=================

Abstract base class, error taxonomy and common models for LLM providers.

Providers expose a single schema-constrained call: the model is forced to
answer through one named tool whose input schema is the required output
shape, and the provider returns that tool input as a dict.

Version: 0.1.0
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from shared.config import settings, LLMProvider as LLMProviderEnum
from shared.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Errors
# =============================================================================


class LLMError(Exception):
    """Base class for failures talking to an LLM backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LLMRateLimitError(LLMError):
    """Backend rejected the call with HTTP 429."""


class LLMQuotaError(LLMError):
    """Backend rejected the call for billing/quota reasons (HTTP 402)."""


class LLMBackendError(LLMError):
    """Transport failure or any other non-success backend response."""


class StructuredOutputError(LLMError):
    """Response did not carry the expected structured payload."""


# =============================================================================
# Models
# =============================================================================


class MessageRole(str, Enum):
    """Message role in conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class LLMMessage(BaseModel):
    """A message in the conversation."""

    role: MessageRole | Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dict for API calls."""
        role_str = self.role.value if isinstance(self.role, MessageRole) else self.role
        return {"role": role_str, "content": self.content}


class LLMUsage(BaseModel):
    """Token usage information."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class OutputSchema(BaseModel):
    """A named JSON schema the model must answer with."""

    name: str
    description: str
    parameters: dict[str, Any]


class StructuredResponse(BaseModel):
    """Structured payload returned by a provider."""

    payload: dict[str, Any] = Field(..., description="Arguments of the forced tool call")
    model: str
    provider: str
    usage: LLMUsage = Field(default_factory=LLMUsage)
    latency_ms: float = 0.0


def error_for_status(status_code: int | None, message: str) -> LLMError:
    """Map an HTTP status from a backend onto the error taxonomy."""
    if status_code == 429:
        return LLMRateLimitError(f"LLM rate limited: {message}", status_code)
    if status_code == 402:
        return LLMQuotaError(f"LLM payment required: {message}", status_code)
    return LLMBackendError(f"LLM error ({status_code}): {message}", status_code)


# =============================================================================
# Provider
# =============================================================================


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    Implements the Strategy pattern for swappable LLM backends.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Model identifier."""
        ...

    @abstractmethod
    async def extract_structured(
        self,
        messages: list[LLMMessage],
        schema: OutputSchema,
        temperature: float | None = None,
    ) -> StructuredResponse:
        """
        Run a completion constrained to a single structured answer.

        Args:
            messages: System and user messages
            schema: Output schema the model is forced to answer with
            temperature: Sampling temperature (default from settings)

        Returns:
            StructuredResponse carrying the parsed payload

        Raises:
            LLMError: any backend failure, normalized to the error taxonomy
        """
        ...

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        """
        Check provider health.

        Returns:
            dict with status and provider info
        """
        ...


# Global provider instance
_provider: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    """
    Get the configured LLM provider instance.

    Uses the provider specified in settings.llm.provider.
    Creates and caches the instance on first call.
    """
    global _provider

    if _provider is None:
        provider_type = settings.llm.provider

        if provider_type == LLMProviderEnum.CLAUDE:
            from shared.llm.claude import ClaudeProvider

            _provider = ClaudeProvider()
        elif provider_type == LLMProviderEnum.OPENAI:
            from shared.llm.openai import OpenAIProvider

            _provider = OpenAIProvider()
        else:
            raise ValueError(f"Unknown LLM provider: {provider_type}")

        logger.info(
            "llm_provider_initialized",
            provider=_provider.name,
            model=_provider.model,
        )

    return _provider


def set_llm_provider(provider: LLMProvider) -> None:
    """
    Set a custom LLM provider.

    Useful for testing or custom implementations.
    """
    global _provider
    _provider = provider
    logger.info(
        "llm_provider_set",
        provider=provider.name,
        model=provider.model,
    )


def reset_llm_provider() -> None:
    """Reset the provider to be re-initialized on next access."""
    global _provider
    _provider = None
