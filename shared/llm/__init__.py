"""
LLM Provider Module
===================

Abstraction layer for schema-constrained LLM calls.

Supported providers:
- Anthropic Claude (primary)
- OpenAI or any OpenAI-compatible gateway

Usage:
    from shared.llm import get_llm_provider, LLMMessage, OutputSchema

    provider = get_llm_provider()

    response = await provider.extract_structured(
        messages=[
            LLMMessage(role="system", content="You are a regulatory expert."),
            LLMMessage(role="user", content="Analyze this circular..."),
        ],
        schema=OutputSchema(name="extract", description="...", parameters={...}),
    )
    print(response.payload)
"""

from shared.llm.provider import (
    LLMBackendError,
    LLMError,
    LLMMessage,
    LLMProvider,
    LLMQuotaError,
    LLMRateLimitError,
    LLMUsage,
    MessageRole,
    OutputSchema,
    StructuredOutputError,
    StructuredResponse,
    get_llm_provider,
    reset_llm_provider,
    set_llm_provider,
)

__all__ = [
    # Base
    "LLMProvider",
    "LLMMessage",
    "LLMUsage",
    "MessageRole",
    "OutputSchema",
    "StructuredResponse",
    "get_llm_provider",
    "set_llm_provider",
    "reset_llm_provider",
    # Errors
    "LLMError",
    "LLMRateLimitError",
    "LLMQuotaError",
    "LLMBackendError",
    "StructuredOutputError",
]
