"""
Durable conversation history.

Includes:
- HistoryStore: facade used by an agent run-loop
- MessageLog: ordered message sequence persisted after every mutation
- Storage backends: in-memory and JSON file
"""

from .message_log import SNAPSHOT_VERSION, HistorySnapshot, MessageLog, MessageRecord
from .storage import FileHistoryStorage, HistoryStorage, InMemoryHistoryStorage
from .store import HistoryStore

__all__ = [
    "FileHistoryStorage",
    "HistorySnapshot",
    "HistoryStorage",
    "HistoryStore",
    "InMemoryHistoryStorage",
    "MessageLog",
    "MessageRecord",
    "SNAPSHOT_VERSION",
]
