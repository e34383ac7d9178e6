"""Unit tests for the OpenAI-compatible provider."""

from __future__ import annotations

from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from chat_history.llm.base import (
    AuthenticationError,
    InvalidRequestError,
    LLMConfig,
    LLMProviderError,
    Message,
    RateLimitError,
    RetryConfig,
)
from chat_history.llm.providers import OpenAIProvider


def make_completion(
    content: Optional[str] = "Hello!",
    model: str = "gpt-4o-mini",
    finish_reason: str = "stop",
    prompt_tokens: Optional[int] = 42,
    completion_tokens: int = 7,
) -> MagicMock:
    """Build an object shaped like a ChatCompletion."""
    response = MagicMock()
    response.model = model
    choice = MagicMock()
    choice.message.content = content
    choice.finish_reason = finish_reason
    response.choices = [choice]
    if prompt_tokens is None:
        response.usage = None
    else:
        response.usage = MagicMock(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )
    return response


def make_status_error(cls, status_code: int):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return cls(f"HTTP {status_code}", response=response, body=None)


@pytest.fixture
def openai_client() -> MagicMock:
    """AsyncOpenAI stand-in whose completions endpoint is an AsyncMock."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=make_completion())
    return client


@pytest.fixture
def provider(fast_retry_config: LLMConfig, openai_client: MagicMock) -> OpenAIProvider:
    return OpenAIProvider(fast_retry_config, client=openai_client)


# ============================================================================
# Initialization Tests
# ============================================================================


class TestOpenAIProviderInit:
    """Tests for provider construction."""

    def test_uses_injected_client(self, provider, openai_client):
        assert provider._client is openai_client

    def test_builds_client_from_config(self):
        config = LLMConfig(model="gpt-4o-mini", api_key="sk-test", base_url="http://localhost:8080/v1")
        provider = OpenAIProvider(config)
        assert isinstance(provider._client, openai.AsyncOpenAI)
        assert str(provider._client.base_url).startswith("http://localhost:8080/v1")


# ============================================================================
# generate Tests
# ============================================================================


class TestOpenAIProviderGenerate:
    """Tests for OpenAIProvider.generate."""

    @pytest.mark.asyncio
    async def test_returns_content_and_usage(self, provider):
        response = await provider.generate([Message.user("Hi")])

        assert response.content == "Hello!"
        assert response.model == "gpt-4o-mini"
        assert response.finish_reason == "stop"
        assert response.usage == {"prompt_tokens": 42, "completion_tokens": 7, "total_tokens": 49}
        assert response.input_tokens == 42

    @pytest.mark.asyncio
    async def test_request_params(self, provider, openai_client):
        provider.config.max_tokens = 256
        await provider.generate(
            [Message.system("Be brief."), Message.user("Hi")], top_p=0.5
        )

        params = openai_client.chat.completions.create.call_args.kwargs
        assert params["model"] == "test-model"
        assert params["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]
        assert params["temperature"] == 0.7
        assert params["max_tokens"] == 256
        assert params["top_p"] == 0.5

    @pytest.mark.asyncio
    async def test_missing_usage(self, provider, openai_client):
        openai_client.chat.completions.create.return_value = make_completion(prompt_tokens=None)
        response = await provider.generate([Message.user("Hi")])
        assert response.usage is None
        assert response.input_tokens == 0

    @pytest.mark.asyncio
    async def test_null_content(self, provider, openai_client):
        openai_client.chat.completions.create.return_value = make_completion(content=None)
        response = await provider.generate([Message.user("Hi")])
        assert response.content == ""


# ============================================================================
# Error Mapping Tests
# ============================================================================


class TestOpenAIProviderErrors:
    """Tests for error translation and retry."""

    @pytest.mark.asyncio
    async def test_rate_limit_retried_then_raised(self, provider, openai_client):
        openai_client.chat.completions.create.side_effect = make_status_error(
            openai.RateLimitError, 429
        )

        with pytest.raises(RateLimitError) as exc_info:
            await provider.generate([Message.user("Hi")])

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "openai"
        assert openai_client.chat.completions.create.await_count == 4

    @pytest.mark.asyncio
    async def test_rate_limit_recovers(self, provider, openai_client):
        openai_client.chat.completions.create.side_effect = [
            make_status_error(openai.RateLimitError, 429),
            make_completion(content="Recovered"),
        ]

        response = await provider.generate([Message.user("Hi")])

        assert response.content == "Recovered"
        assert openai_client.chat.completions.create.await_count == 2

    @pytest.mark.asyncio
    async def test_authentication_not_retried(self, provider, openai_client):
        openai_client.chat.completions.create.side_effect = make_status_error(
            openai.AuthenticationError, 401
        )

        with pytest.raises(AuthenticationError):
            await provider.generate([Message.user("Hi")])
        assert openai_client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_bad_request_not_retried(self, provider, openai_client):
        openai_client.chat.completions.create.side_effect = make_status_error(
            openai.BadRequestError, 400
        )

        with pytest.raises(InvalidRequestError):
            await provider.generate([Message.user("Hi")])
        assert openai_client.chat.completions.create.await_count == 1

    @pytest.mark.asyncio
    async def test_server_error_keeps_status(self, openai_client):
        config = LLMConfig(model="test-model", retry_config=RetryConfig(max_retries=0))
        provider = OpenAIProvider(config, client=openai_client)
        openai_client.chat.completions.create.side_effect = make_status_error(
            openai.InternalServerError, 503
        )

        with pytest.raises(LLMProviderError) as exc_info:
            await provider.generate([Message.user("Hi")])
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_error_has_no_status(self, provider, openai_client):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        openai_client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

        with pytest.raises(LLMProviderError) as exc_info:
            await provider.generate([Message.user("Hi")])

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, openai.APIConnectionError)
        assert openai_client.chat.completions.create.await_count == 1
