"""Base types and protocols for the completion service."""

from __future__ import annotations

import asyncio
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from chat_history.errors import InvalidArgumentError


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """An immutable message in a conversation."""

    role: MessageRole
    content: str
    attachments: Optional[Any] = None

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content)

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to dictionary format."""
        result: Dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
        }
        if self.attachments is not None:
            result["attachments"] = self.attachments
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        """Create a message from its dictionary form.

        Raises:
            InvalidArgumentError: If the role is unknown or content missing.
        """
        try:
            role = MessageRole(data["role"])
            content = data["content"]
        except (KeyError, ValueError) as e:
            raise InvalidArgumentError(f"Malformed message: {data!r}") from e
        if not isinstance(content, str):
            raise InvalidArgumentError(f"Message content must be text, got {type(content).__name__}")
        return cls(role=role, content=content, attachments=data.get("attachments"))


@dataclass
class LLMResponse:
    """Response from an LLM provider."""

    content: str
    model: str
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None  # tokens used
    raw_response: Optional[Any] = None  # Original response object

    @property
    def input_tokens(self) -> int:
        """Prompt tokens billed for this request, 0 when not reported."""
        if not self.usage:
            return 0
        return int(self.usage.get("prompt_tokens", 0) or 0)


@dataclass
class RetryConfig:
    """Configuration for retry logic with exponential backoff."""

    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 60.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_status_codes: tuple = field(default_factory=lambda: (429, 500, 502, 503, 504))

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for a given attempt number."""
        delay = min(
            self.base_delay * (self.exponential_base ** attempt),
            self.max_delay
        )
        if self.jitter:
            delay = delay * (0.5 + random.random())
        return delay


@dataclass
class LLMConfig:
    """Configuration for an LLM provider."""

    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    timeout: float = 60.0
    retry_config: Optional[RetryConfig] = None
    extra_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.retry_config is None:
            self.retry_config = RetryConfig()


@runtime_checkable
class LLMProvider(Protocol):
    """Protocol for completion services.

    A provider accepts an ordered message sequence and returns the generated
    text together with a token usage report.
    """

    config: LLMConfig

    async def generate(
        self,
        messages: List[Message],
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a response from the LLM.

        Args:
            messages: List of messages in the conversation.
            **kwargs: Additional provider-specific parameters.

        Returns:
            LLMResponse with the generated content.
        """
        ...


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers with common functionality."""

    def __init__(self, config: LLMConfig):
        self.config = config
        self._client: Any = None

    @abstractmethod
    async def generate(
        self,
        messages: List[Message],
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        pass

    async def _retry_with_backoff(
        self,
        func: Callable,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Execute a function with retry logic and exponential backoff.

        Only errors carrying a retryable HTTP status code are retried.

        Args:
            func: The async function to execute.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function.

        Raises:
            The last exception if all retries are exhausted.
        """
        retry_config = self.config.retry_config or RetryConfig()

        for attempt in range(retry_config.max_retries + 1):
            try:
                return await func(*args, **kwargs)
            except LLMProviderError as e:
                if (
                    e.status_code not in retry_config.retryable_status_codes
                    or attempt >= retry_config.max_retries
                ):
                    raise

                await asyncio.sleep(retry_config.get_delay(attempt))

        raise RuntimeError("Unexpected state in retry logic")

    def _format_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        """Format messages for the provider's API.

        Attachments are client-side data and never sent.
        """
        return [{"role": msg.role.value, "content": msg.content} for msg in messages]


class LLMProviderError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        response: Optional[Any] = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.response = response


class RateLimitError(LLMProviderError):
    """Exception raised when rate limited by the provider."""
    pass


class AuthenticationError(LLMProviderError):
    """Exception raised for authentication failures."""
    pass


class InvalidRequestError(LLMProviderError):
    """Exception raised for invalid requests."""
    pass
