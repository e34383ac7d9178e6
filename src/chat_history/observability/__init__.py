"""Observability helpers for conversation history management."""

from .logging import (
    HistoryLogger,
    LogConfig,
    LogContext,
    LogLevel,
    clear_context,
    configure_logging,
    get_context,
    get_logger,
    set_context,
)

__all__ = [
    "HistoryLogger",
    "LogConfig",
    "LogContext",
    "LogLevel",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "set_context",
]
