"""History compaction for conversations over their token budget.

When the token budget is exceeded, the oldest non-system messages are
replaced by a single summary message produced by an external summarizer:

    [system..., summary-as-user, recent...]

System messages are always kept, in order, and the most recent exchange
(the recent window) is kept verbatim. One compaction cycle moves through
IDLE -> TRIGGERED -> SUMMARIZING -> COMMITTING -> IDLE; a failure in
SUMMARIZING leaves log and tracker untouched, a failure in COMMITTING
leaves the tracker un-reset.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from chat_history.errors import InvalidArgumentError, SummarizationError
from chat_history.llm.base import Message, MessageRole
from chat_history.observability.logging import get_logger

from .summarizer import SummaryPrompt

if TYPE_CHECKING:
    from chat_history.history.message_log import MessageLog

    from .budget import TokenBudgetTracker
    from .summarizer import Summarizer

logger = get_logger(__name__)

SUMMARY_OPEN_TAG = "<conversation-history-summary>"
SUMMARY_CLOSE_TAG = "</conversation-history-summary>"
SUMMARY_PREAMBLE = "[This is a summary of our previous conversation for context]"


def make_summary_message(summary: str) -> Message:
    """Wrap summary text in a user message tagged as historical context."""
    return Message(
        role=MessageRole.USER,
        content=(
            f"{SUMMARY_OPEN_TAG}\n"
            f"{SUMMARY_PREAMBLE}\n"
            f"\n"
            f"{summary}\n"
            f"{SUMMARY_CLOSE_TAG}"
        ),
    )


def is_history_summary(message: Message) -> bool:
    """Check whether a message is a synthetic compaction summary."""
    content = message.content.strip()
    return (
        message.role == MessageRole.USER
        and content.startswith(SUMMARY_OPEN_TAG)
        and content.endswith(SUMMARY_CLOSE_TAG)
    )


class CompactionState(str, Enum):
    """Phases of a single compaction cycle."""

    IDLE = "idle"
    TRIGGERED = "triggered"
    SUMMARIZING = "summarizing"
    COMMITTING = "committing"


@dataclass
class CompactionConfig:
    """Configuration for compaction behavior."""

    # Compaction never runs on logs with this many messages or fewer
    min_retained_messages: int = 3
    # Most recent non-system messages kept verbatim
    recent_window_size: int = 2
    # Seconds before an in-flight summarization is abandoned
    summarization_timeout: Optional[float] = None
    prompt: SummaryPrompt = field(default_factory=SummaryPrompt)

    def __post_init__(self) -> None:
        if self.min_retained_messages < 0:
            raise InvalidArgumentError(
                f"min_retained_messages must be >= 0, got {self.min_retained_messages}"
            )
        if self.recent_window_size < 0:
            raise InvalidArgumentError(
                f"recent_window_size must be >= 0, got {self.recent_window_size}"
            )
        if self.summarization_timeout is not None and self.summarization_timeout <= 0:
            raise InvalidArgumentError(
                f"summarization_timeout must be positive, got {self.summarization_timeout}"
            )


@dataclass
class CompactionPlan:
    """How a log splits up for one compaction cycle."""

    system_messages: List[Message]
    recent_messages: List[Message]
    to_compress: List[Message]


@dataclass
class CompactionResult:
    """Result of a committed compaction."""

    summary_text: str
    kept_messages: List[Message]
    source_count: int
    messages: List[Message]
    messages_before: int
    tokens_consumed_before: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def messages_after(self) -> int:
        return len(self.messages)

    @property
    def compression_ratio(self) -> float:
        """Fraction of messages removed by the compaction."""
        if self.messages_before == 0:
            return 0.0
        return 1.0 - (self.messages_after / self.messages_before)


class CompactionPolicy:
    """Decides when to compact a message log and performs the compaction."""

    def __init__(
        self,
        summarizer: Summarizer,
        config: Optional[CompactionConfig] = None,
    ):
        """Initialize the policy.

        Args:
            summarizer: Collaborator that turns the compaction prompt into text.
            config: Compaction configuration.
        """
        self._summarizer = summarizer
        self.config = config or CompactionConfig()
        self._state = CompactionState.IDLE
        self._history: List[CompactionResult] = []

    @property
    def state(self) -> CompactionState:
        return self._state

    @property
    def history(self) -> List[CompactionResult]:
        """Committed compactions, oldest first."""
        return self._history

    def should_compact(self, tracker: TokenBudgetTracker, message_count: int) -> bool:
        """Check the trigger: budget exceeded and log large enough to shrink."""
        return tracker.is_over_threshold() and message_count > self.config.min_retained_messages

    def plan(self, messages: List[Message]) -> CompactionPlan:
        """Partition messages into system, recent and to-compress groups."""
        system_messages = [m for m in messages if m.role == MessageRole.SYSTEM]
        non_system = [m for m in messages if m.role != MessageRole.SYSTEM]

        window = self.config.recent_window_size
        split = max(len(non_system) - window, 0)

        return CompactionPlan(
            system_messages=system_messages,
            recent_messages=non_system[split:],
            to_compress=non_system[:split],
        )

    def build_prompt(self, to_compress: List[Message]) -> List[Message]:
        """Messages to compress followed by the summarization instruction."""
        return list(to_compress) + [self.config.prompt.instruction_message()]

    def rebuild(self, plan: CompactionPlan, summary: str) -> List[Message]:
        """Assemble the compacted log."""
        return (
            list(plan.system_messages)
            + [make_summary_message(summary)]
            + list(plan.recent_messages)
        )

    async def compact(
        self,
        log: MessageLog,
        tracker: TokenBudgetTracker,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[CompactionResult]:
        """Run one compaction cycle over an already loaded log.

        Args:
            log: The message log to compact.
            tracker: Token budget consulted for the trigger and reset on commit.
            timeout: Seconds to wait for the summarizer, overrides the config.
            cancel_event: Setting this event abandons the summarization.

        Returns:
            The CompactionResult, or None when nothing was compacted.

        Raises:
            SummarizationError: Summarizer failed; log and tracker untouched.
            PersistenceError: New log not stored; log and tracker untouched.
        """
        messages = log.messages
        if not self.should_compact(tracker, len(messages)):
            return None

        self._state = CompactionState.TRIGGERED
        try:
            plan = self.plan(messages)
            if not plan.to_compress:
                logger.debug(
                    "compaction skipped, nothing outside the recent window",
                    message_count=len(messages),
                )
                return None

            logger.info(
                "token budget exceeded, compacting conversation history",
                consumed=tracker.consumed,
                limit=tracker.limit,
                to_compress=len(plan.to_compress),
            )

            self._state = CompactionState.SUMMARIZING
            if timeout is None:
                timeout = self.config.summarization_timeout
            summary = await self._summarize(
                self.build_prompt(plan.to_compress), timeout, cancel_event
            )

            new_messages = self.rebuild(plan, summary)
            consumed_before = tracker.consumed

            self._state = CompactionState.COMMITTING
            await log.replace(new_messages)
            tracker.reset()
        finally:
            self._state = CompactionState.IDLE

        result = CompactionResult(
            summary_text=summary,
            kept_messages=plan.system_messages + plan.recent_messages,
            source_count=len(plan.to_compress),
            messages=new_messages,
            messages_before=len(messages),
            tokens_consumed_before=consumed_before,
        )
        self._history.append(result)

        logger.info(
            "conversation history compacted",
            source_count=result.source_count,
            messages_before=result.messages_before,
            messages_after=result.messages_after,
        )
        return result

    async def _summarize(
        self,
        prompt: List[Message],
        timeout: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> str:
        """Await the summarizer, honouring timeout and caller cancellation."""
        if cancel_event is not None and cancel_event.is_set():
            raise SummarizationError("Summarization cancelled", reason="cancelled")

        summary_task = asyncio.ensure_future(self._summarizer.summarize(prompt))
        waiters = {summary_task}
        cancel_task: Optional[asyncio.Future] = None
        if cancel_event is not None:
            cancel_task = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            if cancel_task is not None:
                cancel_task.cancel()
            if not summary_task.done():
                summary_task.cancel()

        if cancel_task is not None and cancel_task in done:
            if summary_task.done() and not summary_task.cancelled():
                summary_task.exception()
            raise SummarizationError("Summarization cancelled", reason="cancelled")
        if summary_task not in done:
            raise SummarizationError(
                f"Summarization timed out after {timeout}s", reason="timeout"
            )
        if summary_task.cancelled():
            raise SummarizationError("Summarization cancelled", reason="cancelled")

        error = summary_task.exception()
        if isinstance(error, SummarizationError):
            raise error
        if error is not None:
            raise SummarizationError(f"Summarizer failed: {error}", reason="failed") from error

        summary = summary_task.result()
        if not isinstance(summary, str) or not summary.strip():
            raise SummarizationError("Summarizer returned empty text", reason="empty_output")
        return summary.strip()
