"""
History Store - the conversation history surface used by an agent run-loop.

The store ties the message log, the token budget and the compaction
policy together:

    store = HistoryStore.from_config(HistoryConfig(token_limit=6000), summarizer)

    await store.record_turn([Message.user("...")])
    context = await store.get_context()          # may compact
    response = await provider.generate(context)
    await store.record_turn([Message.assistant(response.content)])
    store.report_usage(response)

Every operation touching the log runs under one asyncio.Lock, so a
compaction cycle never interleaves with another read, append or
compaction on the same store.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from chat_history.config import HistoryConfig
from chat_history.context.budget import TokenBudgetTracker
from chat_history.context.compactor import CompactionPolicy, CompactionResult
from chat_history.context.summarizer import Summarizer, SummaryPrompt
from chat_history.errors import (
    InvalidArgumentError,
    PersistenceError,
    SummarizationError,
)
from chat_history.llm.base import LLMResponse, Message
from chat_history.observability.logging import get_logger

from .message_log import MessageLog
from .storage import FileHistoryStorage, HistoryStorage, InMemoryHistoryStorage

logger = get_logger(__name__)


class HistoryStore:
    """
    Public facade over message log, token budget and compaction policy.

    Only ``get_context`` can trigger compaction. Compaction failures are
    logged and the un-compacted context is returned, unless the store was
    created with ``raise_on_compaction_error=True``.
    """

    def __init__(
        self,
        log: MessageLog,
        tracker: TokenBudgetTracker,
        policy: CompactionPolicy,
        raise_on_compaction_error: bool = False,
        conversation_id: Optional[str] = None,
    ) -> None:
        """
        Args:
            log: Durable message log owned by this store
            tracker: Token budget owned by this store
            policy: Compaction policy
            raise_on_compaction_error: Propagate compaction failures
            conversation_id: Identifier attached to log entries
        """
        self._log = log
        self._tracker = tracker
        self._policy = policy
        self._raise_on_compaction_error = raise_on_compaction_error
        self._lock = asyncio.Lock()
        self._logger = logger.bind(conversation_id=conversation_id) if conversation_id else logger

    @classmethod
    def from_config(
        cls,
        config: HistoryConfig,
        summarizer: Summarizer,
        storage: Optional[HistoryStorage] = None,
        prompt: Optional[SummaryPrompt] = None,
    ) -> "HistoryStore":
        """
        Build a store from configuration.

        Args:
            config: History configuration
            summarizer: Summarizer used for compaction
            storage: Explicit backend; otherwise a file backend when
                ``config.storage_path`` is set, else in-memory
            prompt: Custom summarization prompt

        Returns:
            A ready HistoryStore
        """
        if storage is None:
            if config.storage_path is not None:
                storage = FileHistoryStorage(Path(config.storage_path))
            else:
                storage = InMemoryHistoryStorage()

        return cls(
            log=MessageLog(storage),
            tracker=TokenBudgetTracker(config.token_limit, config.threshold_fraction),
            policy=CompactionPolicy(summarizer, config.compaction_config(prompt)),
            raise_on_compaction_error=config.raise_on_compaction_error,
            conversation_id=config.conversation_id,
        )

    @property
    def log(self) -> MessageLog:
        return self._log

    @property
    def tracker(self) -> TokenBudgetTracker:
        return self._tracker

    @property
    def policy(self) -> CompactionPolicy:
        return self._policy

    @property
    def compaction_history(self) -> List[CompactionResult]:
        return self._policy.history

    @property
    def last_compaction(self) -> Optional[CompactionResult]:
        history = self._policy.history
        return history[-1] if history else None

    async def record_turn(self, messages: Iterable[Message]) -> None:
        """
        Append messages exchanged in a turn.

        Args:
            messages: Messages in conversation order

        Raises:
            InvalidArgumentError: If an item is not a Message
            PersistenceError: If the snapshot could not be written
        """
        batch = list(messages)
        for item in batch:
            if not isinstance(item, Message):
                raise InvalidArgumentError(
                    f"record_turn expects Message instances, got {type(item).__name__}"
                )

        async with self._lock:
            await self._log.append(batch)
        self._logger.debug("turn recorded", appended=len(batch), total=len(self._log))

    async def get_context(
        self,
        timeout: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Message]:
        """
        Load the log, compact it if the budget is exceeded, and return it.

        Args:
            timeout: Seconds allowed for summarization, overrides config
            cancel_event: Setting this event abandons an in-flight summarization

        Returns:
            Messages to send as the next request's context

        Raises:
            PersistenceError: If the stored snapshot cannot be read, or a
                compaction failed and the store raises on compaction errors
            SummarizationError: If summarization failed and the store
                raises on compaction errors
        """
        async with self._lock:
            messages = await self._log.load()
            try:
                result = await self._policy.compact(
                    self._log, self._tracker, timeout=timeout, cancel_event=cancel_event
                )
            except (SummarizationError, PersistenceError) as e:
                self._logger.warning(
                    "compaction failed, returning un-compacted context",
                    error=str(e),
                    error_type=type(e).__name__,
                    message_count=len(messages),
                    consumed=self._tracker.consumed,
                )
                if self._raise_on_compaction_error:
                    raise
                return messages

            if result is None:
                return messages
            return list(result.messages)

    def report_consumed_tokens(self, tokens: int) -> None:
        """
        Add input tokens consumed by a request to the budget.

        Raises:
            InvalidArgumentError: If ``tokens`` is negative or not an int
        """
        self._tracker.add_consumed(tokens)

    def report_usage(self, response: LLMResponse) -> int:
        """
        Add the prompt tokens of a completion response to the budget.

        Returns:
            The number of tokens recorded
        """
        tokens = response.input_tokens
        self._tracker.add_consumed(tokens)
        return tokens

    async def clear(self) -> None:
        """Drop the whole conversation and reset the budget."""
        async with self._lock:
            await self._log.clear()
            self._tracker.reset()
        self._logger.info("history cleared")

    def serialize(self) -> Dict[str, Any]:
        """Snapshot document of the current in-memory log."""
        return self._log.serialize()
