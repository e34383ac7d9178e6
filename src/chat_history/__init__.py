"""Chat History - conversation history management for chat-style LLM clients.

This package stores exchanged messages, tracks a cumulative input-token
budget and, once the budget is exceeded, compacts the oldest history into
a summary so future requests stay within context limits:
- Message log persisted to memory or a JSON file
- Thread-safe token budget tracking
- LLM-backed summarization with timeout and cancellation
- Structured logging with structlog

Example:
    from chat_history import HistoryConfig, HistoryStore, Message
    from chat_history.context import ConversationSummarizer
    from chat_history.llm import LLMConfig, OpenAIProvider

    provider = OpenAIProvider(LLMConfig(model="gpt-4o-mini"))
    store = HistoryStore.from_config(
        HistoryConfig(token_limit=6000, storage_path="messages.json"),
        ConversationSummarizer(provider),
    )

    await store.record_turn([Message.user("Implement bubble sort in C#")])
    response = await provider.generate(await store.get_context())
    await store.record_turn([Message.assistant(response.content)])
    store.report_usage(response)
"""

__version__ = "0.1.0"

from .config import HistoryConfig
from .context import (
    CompactionConfig,
    CompactionPolicy,
    CompactionResult,
    ConversationSummarizer,
    Summarizer,
    TokenBudgetTracker,
)
from .errors import (
    HistoryError,
    InvalidArgumentError,
    PersistenceError,
    SummarizationError,
)
from .history import (
    FileHistoryStorage,
    HistoryStore,
    InMemoryHistoryStorage,
    MessageLog,
)
from .llm import LLMResponse, Message, MessageRole

__all__ = [
    "__version__",
    # Config
    "HistoryConfig",
    # Context
    "CompactionConfig",
    "CompactionPolicy",
    "CompactionResult",
    "ConversationSummarizer",
    "Summarizer",
    "TokenBudgetTracker",
    # Errors
    "HistoryError",
    "InvalidArgumentError",
    "PersistenceError",
    "SummarizationError",
    # History
    "FileHistoryStorage",
    "HistoryStore",
    "InMemoryHistoryStorage",
    "MessageLog",
    # Messages
    "LLMResponse",
    "Message",
    "MessageRole",
]
