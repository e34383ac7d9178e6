"""Structured logging for conversation history management.

This module provides:
- Structured logging using structlog
- Context propagation through a ContextVar (conversation id, extras)
- Console or JSON rendering to a configurable stream
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TextIO

import structlog
from structlog.types import Processor


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_int(self) -> int:
        """Convert to logging module integer level."""
        return {
            LogLevel.DEBUG: logging.DEBUG,
            LogLevel.INFO: logging.INFO,
            LogLevel.WARNING: logging.WARNING,
            LogLevel.ERROR: logging.ERROR,
            LogLevel.CRITICAL: logging.CRITICAL,
        }[self]


@dataclass
class LogContext:
    """Context for structured logging.

    Holds contextual data that should be included in all log entries
    within the current execution scope.

    Attributes:
        conversation_id: ID of the conversation being managed.
        extra: Additional context data.
    """

    conversation_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary for logging."""
        result: Dict[str, Any] = {}
        if self.conversation_id:
            result["conversation_id"] = self.conversation_id
        result.update(self.extra)
        return result

    def with_extra(self, **kwargs: Any) -> "LogContext":
        """Create a new context with additional data."""
        return LogContext(
            conversation_id=self.conversation_id,
            extra={**self.extra, **kwargs},
        )


_log_context: ContextVar[Optional[LogContext]] = ContextVar(
    "log_context", default=None
)


def set_context(context: LogContext) -> None:
    """Set the current log context."""
    _log_context.set(context)


def get_context() -> Optional[LogContext]:
    """Get the current log context."""
    return _log_context.get()


def clear_context() -> None:
    """Clear the current log context."""
    _log_context.set(None)


@dataclass
class LogConfig:
    """Configuration for the logging system.

    Attributes:
        level: Minimum log level.
        json_format: Render entries as JSON instead of console output.
        include_caller: Whether to include caller info.
        stream: Stream console/JSON output is written to.
    """

    level: LogLevel = LogLevel.INFO
    json_format: bool = False
    include_caller: bool = False
    stream: TextIO = field(default_factory=lambda: sys.stderr)


class HistoryLogger:
    """Structured logger with automatic context inclusion."""

    def __init__(self, name: str, bound: Optional[Any] = None):
        """Initialize the logger.

        Args:
            name: Logger name (usually module name).
            bound: Already-bound structlog logger to wrap.
        """
        self.name = name
        self._logger = bound if bound is not None else structlog.get_logger(name)

    def _merged(self, **extra: Any) -> Dict[str, Any]:
        context: Dict[str, Any] = {}
        log_context = get_context()
        if log_context:
            context.update(log_context.to_dict())
        context.update(extra)
        return context

    def bind(self, **kwargs: Any) -> "HistoryLogger":
        """Create a new logger with bound context."""
        return HistoryLogger(self.name, self._logger.bind(**kwargs))

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._logger.debug(msg, **self._merged(**kwargs))

    def info(self, msg: str, **kwargs: Any) -> None:
        self._logger.info(msg, **self._merged(**kwargs))

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._logger.warning(msg, **self._merged(**kwargs))

    def error(self, msg: str, **kwargs: Any) -> None:
        self._logger.error(msg, **self._merged(**kwargs))

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(msg, **self._merged(**kwargs))

    def log(self, level: LogLevel, msg: str, **kwargs: Any) -> None:
        """Log a message at the specified level."""
        getattr(self, level.value)(msg, **kwargs)


_loggers: Dict[str, HistoryLogger] = {}


def get_logger(name: str = "chat_history") -> HistoryLogger:
    """Get or create a logger instance.

    Args:
        name: Logger name.

    Returns:
        HistoryLogger instance.
    """
    if name not in _loggers:
        _loggers[name] = HistoryLogger(name)
    return _loggers[name]


def configure_logging(config: Optional[LogConfig] = None) -> None:
    """Configure structlog processors and rendering.

    Args:
        config: Logging configuration to apply.
    """
    config = config or LogConfig()

    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if config.include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder())

    if config.json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(config.level.to_int()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=config.stream),
        cache_logger_on_first_use=False,
    )
    _loggers.clear()

