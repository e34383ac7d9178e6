"""OpenAI-compatible completion provider."""

from __future__ import annotations

from typing import Any, Dict, List

from openai import APIStatusError, AsyncOpenAI
from openai import AuthenticationError as OpenAIAuthError
from openai import BadRequestError as OpenAIBadRequestError
from openai import OpenAIError
from openai import RateLimitError as OpenAIRateLimitError

from ..base import (
    AuthenticationError,
    BaseLLMProvider,
    InvalidRequestError,
    LLMConfig,
    LLMProviderError,
    LLMResponse,
    Message,
    RateLimitError,
)


class OpenAIProvider(BaseLLMProvider):
    """Chat completions provider for OpenAI and OpenAI-compatible endpoints.

    Any endpoint speaking the chat completions protocol works by setting
    ``LLMConfig.base_url``.
    """

    def __init__(self, config: LLMConfig, client: Any = None):
        """Initialize OpenAI provider.

        Args:
            config: LLM configuration with model, api_key, etc.
            client: Optional pre-built ``AsyncOpenAI`` client.
        """
        super().__init__(config)
        self._client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    def _handle_error(self, error: Exception) -> LLMProviderError:
        """Convert OpenAI errors to our error types."""
        if isinstance(error, OpenAIRateLimitError):
            return RateLimitError(str(error), provider="openai", status_code=429)
        if isinstance(error, OpenAIAuthError):
            return AuthenticationError(str(error), provider="openai", status_code=401)
        if isinstance(error, OpenAIBadRequestError):
            return InvalidRequestError(str(error), provider="openai", status_code=400)
        status_code = error.status_code if isinstance(error, APIStatusError) else None
        return LLMProviderError(str(error), provider="openai", status_code=status_code)

    async def generate(
        self,
        messages: List[Message],
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a response using the chat completions API.

        Args:
            messages: List of messages in the conversation.
            **kwargs: Additional parameters passed to the API.

        Returns:
            LLMResponse with the generated content and usage.
        """
        async def _make_request() -> LLMResponse:
            request_params: Dict[str, Any] = {
                "model": self.config.model,
                "messages": self._format_messages(messages),
                "temperature": self.config.temperature,
            }

            if self.config.max_tokens:
                request_params["max_tokens"] = self.config.max_tokens

            request_params.update(self.config.extra_params)
            request_params.update(kwargs)

            try:
                response = await self._client.chat.completions.create(**request_params)
            except OpenAIError as e:
                raise self._handle_error(e) from e

            choice = response.choices[0]

            return LLMResponse(
                content=choice.message.content or "",
                model=response.model,
                finish_reason=choice.finish_reason,
                usage={
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }
                if response.usage
                else None,
                raw_response=response,
            )

        return await self._retry_with_backoff(_make_request)
