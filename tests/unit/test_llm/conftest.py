"""Local fixtures for LLM module tests."""

from __future__ import annotations

from typing import Any, List, Optional

import pytest

from chat_history.llm.base import (
    BaseLLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
    RetryConfig,
)


# ============================================================================
# Concrete Implementation for Testing Abstract Base Class
# ============================================================================


class ConcreteLLMProvider(BaseLLMProvider):
    """Concrete implementation of BaseLLMProvider for testing."""

    def __init__(self, config: LLMConfig, responses: Optional[List[LLMResponse]] = None):
        super().__init__(config)
        self.responses = responses or []
        self.call_count = 0

    async def generate(self, messages: List[Message], **kwargs: Any) -> LLMResponse:
        self.call_count += 1
        if self.responses:
            return self.responses[min(self.call_count - 1, len(self.responses) - 1)]
        return LLMResponse(content="Test response", model=self.config.model, finish_reason="stop")


# ============================================================================
# Config Fixtures
# ============================================================================


@pytest.fixture
def retry_config_no_jitter() -> RetryConfig:
    return RetryConfig(max_retries=3, base_delay=1.0, max_delay=10.0, jitter=False)


@pytest.fixture
def retry_config_with_jitter() -> RetryConfig:
    return RetryConfig(max_retries=3, base_delay=1.0, max_delay=10.0, jitter=True)


@pytest.fixture
def fast_retry_config() -> LLMConfig:
    """Config that retries three times without sleeping."""
    return LLMConfig(
        model="test-model",
        api_key="test-key",
        retry_config=RetryConfig(max_retries=3, base_delay=0.0, jitter=False),
    )


@pytest.fixture
def concrete_provider(fast_retry_config: LLMConfig) -> ConcreteLLMProvider:
    return ConcreteLLMProvider(fast_retry_config)

