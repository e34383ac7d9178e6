"""
Message Log - ordered, durable conversation history.

The log keeps the conversation in insertion order and writes a full
snapshot to its storage backend after every mutation. Snapshots are
validated with pydantic when they are read back, so a malformed file is
reported as a PersistenceError instead of leaking bad messages into a
request.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from chat_history.errors import PersistenceError
from chat_history.llm.base import Message, MessageRole

from .storage import HistoryStorage, InMemoryHistoryStorage

SNAPSHOT_VERSION = 1


class MessageRecord(BaseModel):
    """Serialized form of a single message."""

    role: MessageRole
    content: str
    attachments: Optional[Any] = None

    @classmethod
    def from_message(cls, message: Message) -> "MessageRecord":
        return cls.model_validate(message.to_dict())

    def to_message(self) -> Message:
        return Message.from_dict(self.model_dump())


class HistorySnapshot(BaseModel):
    """The persisted document: a versioned list of messages."""

    version: Literal[1] = SNAPSHOT_VERSION
    messages: List[MessageRecord] = Field(default_factory=list)

    @classmethod
    def from_messages(cls, messages: Iterable[Message]) -> "HistorySnapshot":
        return cls(messages=[MessageRecord.from_message(m) for m in messages])

    def to_messages(self) -> List[Message]:
        return [record.to_message() for record in self.messages]


class MessageLog:
    """
    Ordered sequence of messages persisted through a storage backend.

    The in-memory sequence only changes after the snapshot was written,
    so a failed write leaves both memory and storage as they were.

    Example:
        ```python
        log = MessageLog(FileHistoryStorage("messages.json"))
        await log.append([Message.user("hi"), Message.assistant("hello")])
        messages = await log.load()
        ```
    """

    def __init__(self, storage: Optional[HistoryStorage] = None) -> None:
        """
        Args:
            storage: Snapshot backend, in-memory when omitted
        """
        self._storage = storage or InMemoryHistoryStorage()
        self._messages: List[Message] = []

    @property
    def storage(self) -> HistoryStorage:
        return self._storage

    @property
    def messages(self) -> List[Message]:
        """Copy of the current in-memory sequence."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    async def append(self, messages: Iterable[Message]) -> None:
        """
        Add messages to the end of the log and persist.

        Args:
            messages: Messages in conversation order

        Raises:
            PersistenceError: If the snapshot could not be written
        """
        updated = self._messages + list(messages)
        await self._persist(updated)
        self._messages = updated

    async def load(self) -> List[Message]:
        """
        Refresh from storage and return the current sequence.

        Returns:
            The messages in order; empty if nothing was ever stored

        Raises:
            PersistenceError: If the snapshot is unreadable or invalid
        """
        data = await self._storage.read()
        if data is not None:
            self._messages = self._decode(data)
        return list(self._messages)

    async def replace(self, messages: Iterable[Message]) -> None:
        """
        Swap the entire content of the log and persist.

        Raises:
            PersistenceError: If the snapshot could not be written
        """
        updated = list(messages)
        await self._persist(updated)
        self._messages = updated

    async def clear(self) -> None:
        """Remove every message and the stored snapshot."""
        await self._storage.delete()
        self._messages = []

    def serialize(self) -> Dict[str, Any]:
        """Return the snapshot document for the current sequence."""
        return HistorySnapshot.from_messages(self._messages).model_dump(mode="json")

    def _encode(self, messages: List[Message]) -> str:
        try:
            snapshot = HistorySnapshot.from_messages(messages)
            return json.dumps(snapshot.model_dump(mode="json"), indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                f"Failed to encode history snapshot: {e}", resource=self._storage.name
            ) from e

    def _decode(self, data: str) -> List[Message]:
        if not data.strip():
            return []
        try:
            snapshot = HistorySnapshot.model_validate_json(data)
        except ValidationError as e:
            raise PersistenceError(
                f"Invalid history snapshot: {e}", resource=self._storage.name
            ) from e
        return snapshot.to_messages()

    async def _persist(self, messages: List[Message]) -> None:
        await self._storage.write(self._encode(messages))
