"""Common test fixtures and configuration for chat_history tests."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

import pytest

from chat_history.errors import SummarizationError
from chat_history.llm.base import (
    BaseLLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
    MessageRole,
    RetryConfig,
)


# ============================================================================
# Message Fixtures
# ============================================================================


@pytest.fixture
def system_message() -> Message:
    return Message(role=MessageRole.SYSTEM, content="You are a friendly assistant.")


@pytest.fixture
def sample_conversation(system_message: Message) -> List[Message]:
    """A system prompt followed by three user/assistant exchanges."""
    return [
        system_message,
        Message(role=MessageRole.USER, content="Implement bubble sort in C#"),
        Message(role=MessageRole.ASSISTANT, content="Here is a bubble sort in C#..."),
        Message(role=MessageRole.USER, content="Now add a quick sort"),
        Message(role=MessageRole.ASSISTANT, content="Here is a quick sort..."),
        Message(role=MessageRole.USER, content="Give me the Java version"),
        Message(role=MessageRole.ASSISTANT, content="Here is the Java version..."),
    ]


# ============================================================================
# LLM Fixtures
# ============================================================================


@pytest.fixture
def sample_llm_config() -> LLMConfig:
    """Create sample LLM configuration."""
    return LLMConfig(
        model="test-model",
        api_key="test-api-key",
        temperature=0.7,
        timeout=30.0,
        retry_config=RetryConfig(max_retries=2, base_delay=0.0, jitter=False),
    )


class MockLLMProvider(BaseLLMProvider):
    """Mock LLM provider for testing."""

    def __init__(self, config: LLMConfig, responses: Optional[List[LLMResponse]] = None):
        super().__init__(config)
        self.responses = responses or []
        self.call_count = 0
        self.last_messages: Optional[List[Message]] = None

    async def generate(self, messages: List[Message], **kwargs: Any) -> LLMResponse:
        """Generate a mock response."""
        self.last_messages = messages
        self.call_count += 1

        if self.responses:
            return self.responses[min(self.call_count - 1, len(self.responses) - 1)]

        return LLMResponse(
            content="Mock response",
            model=self.config.model,
            finish_reason="stop",
            usage={"prompt_tokens": 100, "completion_tokens": 20, "total_tokens": 120},
        )


@pytest.fixture
def mock_llm_provider(sample_llm_config: LLMConfig) -> MockLLMProvider:
    """Create mock LLM provider."""
    return MockLLMProvider(sample_llm_config)


# ============================================================================
# Summarizer Fixtures
# ============================================================================


class FakeSummarizer:
    """Summarizer returning canned text, optionally failing or hanging."""

    def __init__(
        self,
        summary: str = "User asked for sorting algorithms in several languages.",
        error: Optional[BaseException] = None,
        delay: float = 0.0,
    ):
        self.summary = summary
        self.error = error
        self.delay = delay
        self.calls: List[List[Message]] = []

    async def summarize(self, messages: List[Message]) -> str:
        self.calls.append(list(messages))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.summary


@pytest.fixture
def fake_summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def failing_summarizer() -> FakeSummarizer:
    return FakeSummarizer(error=SummarizationError("upstream unavailable"))
