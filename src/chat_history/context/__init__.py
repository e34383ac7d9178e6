"""Token budgeting, summarization and compaction of conversation history.

Example:
    from chat_history.context import (
        CompactionPolicy,
        ConversationSummarizer,
        TokenBudgetTracker,
    )

    tracker = TokenBudgetTracker(limit=6000, threshold_fraction=0.8)
    policy = CompactionPolicy(ConversationSummarizer(provider))

    # Before each request
    result = await policy.compact(log, tracker)
"""

from .budget import TokenBudgetTracker
from .compactor import (
    SUMMARY_CLOSE_TAG,
    SUMMARY_OPEN_TAG,
    CompactionConfig,
    CompactionPlan,
    CompactionPolicy,
    CompactionResult,
    CompactionState,
    is_history_summary,
    make_summary_message,
)
from .summarizer import (
    DEFAULT_COMPACTION_INSTRUCTION,
    DEFAULT_SYSTEM_PROMPT,
    ConversationSummarizer,
    Summarizer,
    SummaryPrompt,
)

__all__ = [
    # Budget
    "TokenBudgetTracker",
    # Compaction
    "CompactionConfig",
    "CompactionPlan",
    "CompactionPolicy",
    "CompactionResult",
    "CompactionState",
    "SUMMARY_CLOSE_TAG",
    "SUMMARY_OPEN_TAG",
    "is_history_summary",
    "make_summary_message",
    # Summarization
    "ConversationSummarizer",
    "DEFAULT_COMPACTION_INSTRUCTION",
    "DEFAULT_SYSTEM_PROMPT",
    "Summarizer",
    "SummaryPrompt",
]
