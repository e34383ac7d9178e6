"""Exception hierarchy for conversation history management."""

from __future__ import annotations

from typing import Any, Dict, Optional


class HistoryError(Exception):
    """Base exception for history management errors."""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.details: Dict[str, Any] = details


class InvalidArgumentError(HistoryError, ValueError):
    """Raised when a caller passes malformed input (e.g. negative tokens)."""
    pass


class PersistenceError(HistoryError):
    """Raised when the durable snapshot cannot be read or written."""

    def __init__(self, message: str, resource: Optional[str] = None, **details: Any):
        super().__init__(message, **details)
        self.resource = resource


class SummarizationError(HistoryError):
    """Raised when the summarizer fails, times out, is cancelled or returns blank text."""

    def __init__(self, message: str, reason: str = "failed", **details: Any):
        super().__init__(message, **details)
        self.reason = reason
