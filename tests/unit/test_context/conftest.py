"""Local fixtures for context management tests."""

from __future__ import annotations

import pytest

from chat_history.context import CompactionConfig, CompactionPolicy, TokenBudgetTracker
from chat_history.history import InMemoryHistoryStorage, MessageLog


# ============================================================================
# Budget Fixtures
# ============================================================================


@pytest.fixture
def tracker() -> TokenBudgetTracker:
    """Tracker with the 6000 token budget used by the demo conversation."""
    return TokenBudgetTracker(limit=6000, threshold_fraction=0.8)


@pytest.fixture
def exceeded_tracker(tracker: TokenBudgetTracker) -> TokenBudgetTracker:
    tracker.add_consumed(5000)
    return tracker


# ============================================================================
# Compaction Fixtures
# ============================================================================


@pytest.fixture
def slow_summarizer(fake_summarizer):
    """The shared fake summarizer, delayed well past any test timeout."""
    fake_summarizer.delay = 5.0
    return fake_summarizer


@pytest.fixture
def policy(fake_summarizer) -> CompactionPolicy:
    return CompactionPolicy(fake_summarizer, CompactionConfig())


@pytest.fixture
def message_log() -> MessageLog:
    return MessageLog(InMemoryHistoryStorage())
