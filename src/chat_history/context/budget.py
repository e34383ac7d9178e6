"""Cumulative input-token budget tracking.

The tracker counts input tokens reported by the completion service and
answers whether the conversation has crossed the compaction threshold.
Updates are serialized with a lock so usage may be reported concurrently
from parallel requests, tasks or threads.
"""

from __future__ import annotations

import threading

from chat_history.errors import InvalidArgumentError


class TokenBudgetTracker:
    """Thread-safe counter of consumed tokens against a configured limit.

    Example:
        tracker = TokenBudgetTracker(limit=6000, threshold_fraction=0.8)
        tracker.add_consumed(4800)
        assert tracker.is_over_threshold()
    """

    def __init__(self, limit: int, threshold_fraction: float = 0.8):
        """Initialize the tracker.

        Args:
            limit: Token budget, must be positive.
            threshold_fraction: Fraction of ``limit`` at which the budget
                counts as exceeded, in (0, 1].

        Raises:
            InvalidArgumentError: If either value is out of range.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise InvalidArgumentError(f"limit must be a positive integer, got {limit!r}")
        if not 0.0 < threshold_fraction <= 1.0:
            raise InvalidArgumentError(
                f"threshold_fraction must be in (0, 1], got {threshold_fraction!r}"
            )

        self._limit = limit
        self._threshold_fraction = float(threshold_fraction)
        self._consumed = 0
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def threshold_fraction(self) -> float:
        return self._threshold_fraction

    @property
    def threshold_tokens(self) -> float:
        """Token count at which the budget counts as exceeded."""
        return self._limit * self._threshold_fraction

    @property
    def consumed(self) -> int:
        with self._lock:
            return self._consumed

    @property
    def usage_ratio(self) -> float:
        """Consumed tokens as a ratio of the limit."""
        return self.consumed / self._limit

    def add_consumed(self, tokens: int) -> None:
        """Atomically add ``tokens`` to the consumed count.

        Raises:
            InvalidArgumentError: If ``tokens`` is not a non-negative integer.
        """
        if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens < 0:
            raise InvalidArgumentError(
                f"tokens must be a non-negative integer, got {tokens!r}",
                tokens=tokens,
            )
        with self._lock:
            self._consumed += tokens

    def is_over_threshold(self) -> bool:
        """Return True iff ``consumed >= limit * threshold_fraction``."""
        with self._lock:
            return self._consumed >= self._limit * self._threshold_fraction

    def reset(self) -> None:
        """Atomically set the consumed count back to zero."""
        with self._lock:
            self._consumed = 0

    def __repr__(self) -> str:
        return (
            f"TokenBudgetTracker(limit={self._limit}, "
            f"threshold_fraction={self._threshold_fraction}, consumed={self.consumed})"
        )
