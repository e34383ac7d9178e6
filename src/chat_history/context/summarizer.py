"""Conversation summarization for history compaction.

This module provides the summarizer collaborator the compaction policy
calls into:
- Summarizer: protocol every summarizer implements
- ConversationSummarizer: LLM-powered summarizer backed by an LLMProvider
- SummaryPrompt: the system instructions and compaction instruction text
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from chat_history.errors import SummarizationError
from chat_history.llm.base import LLMProviderError, Message, MessageRole
from chat_history.observability.logging import get_logger

if TYPE_CHECKING:
    from chat_history.llm import LLMProvider

logger = get_logger(__name__)


DEFAULT_SYSTEM_PROMPT = (
    "You are a conversation summarization assistant. "
    "Your task is to analyze conversation history and create concise, accurate summaries. "
    "Focus on extracting the most important information while maintaining context coherence."
)

DEFAULT_COMPACTION_INSTRUCTION = (
    "Please compress the above conversation history into a concise summary.\n"
    "\n"
    "The summary should:\n"
    "1. Retain key information and context\n"
    "2. Record important decisions and outcomes\n"
    "3. Preserve the final task requirements and goals\n"
    "4. Use concise language, not exceeding 1/3 of the original length\n"
    "\n"
    "Provide ONLY the summary without any additional explanations."
)


class SummaryPrompt(BaseModel):
    """Prompt text used when compacting a conversation."""

    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        description="System instructions sent to the summarizing model",
    )
    instruction: str = Field(
        default=DEFAULT_COMPACTION_INSTRUCTION,
        min_length=1,
        description="User instruction appended after the messages to compress",
    )

    def instruction_message(self) -> Message:
        """Build the user message that asks for the summary."""
        return Message(role=MessageRole.USER, content=self.instruction)


@runtime_checkable
class Summarizer(Protocol):
    """Protocol for summarizer implementations.

    ``summarize`` receives the full compaction prompt (messages to compress
    followed by the instruction) and returns plain text.
    """

    async def summarize(self, messages: List[Message]) -> str:
        """Summarize messages."""
        ...


class ConversationSummarizer:
    """LLM-powered conversation summarizer.

    Sends the compaction prompt, preceded by the summarization system
    instructions, to an LLM provider in a single request and returns the
    response text.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        prompt: Optional[SummaryPrompt] = None,
    ):
        """Initialize conversation summarizer.

        Args:
            llm_provider: LLM provider for generating summaries.
            prompt: Summary prompt configuration.
        """
        self._llm = llm_provider
        self._prompt = prompt or SummaryPrompt()

    @property
    def prompt(self) -> SummaryPrompt:
        """Get current prompt configuration."""
        return self._prompt

    async def summarize(self, messages: List[Message]) -> str:
        """Summarize the conversation.

        Args:
            messages: The compaction prompt.

        Returns:
            Generated summary string, stripped of surrounding whitespace.

        Raises:
            SummarizationError: If the provider fails or returns blank text.
        """
        if not messages:
            raise SummarizationError("Nothing to summarize", reason="empty_input")

        llm_messages = [Message(role=MessageRole.SYSTEM, content=self._prompt.system_prompt)]
        llm_messages.extend(messages)

        try:
            response = await self._llm.generate(llm_messages)
        except LLMProviderError as e:
            logger.warning(
                "summarizer provider call failed",
                provider=e.provider,
                status_code=e.status_code,
                error=str(e),
            )
            raise SummarizationError(f"Summarizer provider failed: {e}", reason="provider") from e

        summary = (response.content or "").strip()
        if not summary:
            raise SummarizationError("Summarizer returned empty text", reason="empty_output")

        logger.debug(
            "summary generated",
            source_messages=len(messages),
            summary_chars=len(summary),
            input_tokens=response.input_tokens,
        )
        return summary
