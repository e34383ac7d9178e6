"""Local fixtures for history storage tests."""

from __future__ import annotations

import pytest

from chat_history.history import InMemoryHistoryStorage, MessageLog


@pytest.fixture
def memory_storage() -> InMemoryHistoryStorage:
    return InMemoryHistoryStorage()


@pytest.fixture
def message_log(memory_storage: InMemoryHistoryStorage) -> MessageLog:
    return MessageLog(memory_storage)
