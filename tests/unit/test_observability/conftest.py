"""Local fixtures for observability tests."""

from __future__ import annotations

import json
from io import StringIO
from typing import Any, Dict, Iterator, List

import pytest
import structlog

from chat_history.observability.logging import (
    LogConfig,
    LogContext,
    LogLevel,
    clear_context,
    configure_logging,
)


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Restore structlog defaults and drop any log context after each test."""
    yield
    clear_context()
    structlog.reset_defaults()


@pytest.fixture
def log_stream() -> StringIO:
    return StringIO()


@pytest.fixture
def json_logging(log_stream: StringIO) -> StringIO:
    """Configure JSON logging at DEBUG level into an in-memory stream."""
    configure_logging(LogConfig(level=LogLevel.DEBUG, json_format=True, stream=log_stream))
    return log_stream


@pytest.fixture
def log_context() -> LogContext:
    return LogContext(conversation_id="conv-123", extra={"user": "alice"})


def read_entries(stream: StringIO) -> List[Dict[str, Any]]:
    """Parse JSON log lines written to a stream."""
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


@pytest.fixture
def entries():
    return read_entries
