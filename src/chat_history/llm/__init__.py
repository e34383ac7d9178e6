"""Completion service abstraction layer."""

from .base import (
    AuthenticationError,
    BaseLLMProvider,
    InvalidRequestError,
    LLMConfig,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    Message,
    MessageRole,
    RateLimitError,
    RetryConfig,
)
from .providers import OpenAIProvider

__all__ = [
    # Base types
    "BaseLLMProvider",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "Message",
    "MessageRole",
    "RetryConfig",
    # Errors
    "AuthenticationError",
    "InvalidRequestError",
    "LLMProviderError",
    "RateLimitError",
    # Providers
    "OpenAIProvider",
]
