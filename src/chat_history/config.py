"""Configuration for conversation history management."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

from chat_history.context.compactor import CompactionConfig
from chat_history.context.summarizer import SummaryPrompt
from chat_history.errors import InvalidArgumentError

ENV_PREFIX = "CHAT_HISTORY_"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class HistoryConfig:
    """Configuration for a HistoryStore.

    Attributes:
        token_limit: Input-token budget of the conversation.
        threshold_fraction: Fraction of the budget that triggers compaction.
        min_retained_messages: Logs of this size or smaller are never compacted.
        recent_window_size: Most recent non-system messages kept verbatim.
        storage_path: Snapshot file; history stays in memory when None.
        summarization_timeout: Seconds allowed for the summarizer call.
        raise_on_compaction_error: Re-raise compaction failures from
            ``get_context`` instead of returning the un-compacted context.
        conversation_id: Identifier attached to log entries.
    """

    token_limit: int
    threshold_fraction: float = 0.8
    min_retained_messages: int = 3
    recent_window_size: int = 2
    storage_path: Optional[Union[str, Path]] = None
    summarization_timeout: Optional[float] = None
    raise_on_compaction_error: bool = False
    conversation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate config values."""
        if self.token_limit <= 0:
            raise InvalidArgumentError(f"token_limit must be positive, got {self.token_limit}")
        if not 0.0 < self.threshold_fraction <= 1.0:
            raise InvalidArgumentError(
                f"threshold_fraction must be in (0, 1], got {self.threshold_fraction}"
            )
        if self.min_retained_messages < 0:
            raise InvalidArgumentError("min_retained_messages must be >= 0")
        if self.recent_window_size < 0:
            raise InvalidArgumentError("recent_window_size must be >= 0")
        if self.summarization_timeout is not None and self.summarization_timeout <= 0:
            raise InvalidArgumentError("summarization_timeout must be positive")

    def compaction_config(self, prompt: Optional[SummaryPrompt] = None) -> CompactionConfig:
        """Derive the compaction policy configuration."""
        return CompactionConfig(
            min_retained_messages=self.min_retained_messages,
            recent_window_size=self.recent_window_size,
            summarization_timeout=self.summarization_timeout,
            prompt=prompt or SummaryPrompt(),
        )

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "HistoryConfig":
        """Build a config from environment variables.

        Recognized variables (with the default prefix): CHAT_HISTORY_TOKEN_LIMIT
        (required), _THRESHOLD_FRACTION, _MIN_RETAINED_MESSAGES,
        _RECENT_WINDOW_SIZE, _STORAGE_PATH, _SUMMARIZATION_TIMEOUT,
        _RAISE_ON_COMPACTION_ERROR, _CONVERSATION_ID.

        Raises:
            InvalidArgumentError: If the token limit is missing or a value
                cannot be parsed.
        """
        env = os.environ if environ is None else environ

        parsers: Dict[str, Callable[[str], Any]] = {
            "token_limit": int,
            "threshold_fraction": float,
            "min_retained_messages": int,
            "recent_window_size": int,
            "storage_path": str,
            "summarization_timeout": float,
            "raise_on_compaction_error": _parse_bool,
            "conversation_id": str,
        }

        values: Dict[str, Any] = {}
        for option, parse in parsers.items():
            raw = env.get(f"{prefix}{option.upper()}")
            if raw is None or raw == "":
                continue
            try:
                values[option] = parse(raw)
            except ValueError as e:
                raise InvalidArgumentError(
                    f"Invalid value for {prefix}{option.upper()}: {raw!r}"
                ) from e

        if "token_limit" not in values:
            raise InvalidArgumentError(f"{prefix}TOKEN_LIMIT is required")

        return cls(**values)
