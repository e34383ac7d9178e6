"""
Storage backends for the persisted conversation snapshot.

A backend holds exactly one named resource: the serialized message log.
It knows nothing about messages; encoding and validation live in
MessageLog.

Includes:
- HistoryStorage: protocol every backend implements
- InMemoryHistoryStorage: in-process storage (testing, ephemeral chats)
- FileHistoryStorage: JSON file on disk written atomically via aiofiles
"""

from __future__ import annotations

import contextlib
import uuid
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

import aiofiles
import aiofiles.os

from chat_history.errors import PersistenceError


@runtime_checkable
class HistoryStorage(Protocol):
    """Protocol for snapshot storage backends."""

    @property
    def name(self) -> str:
        """Human readable name of the underlying resource."""
        ...

    async def read(self) -> Optional[str]:
        """
        Read the stored snapshot.

        Returns:
            The snapshot text, or None if nothing has been stored yet
        """
        ...

    async def write(self, data: str) -> None:
        """
        Replace the stored snapshot.

        Args:
            data: Serialized snapshot
        """
        ...

    async def delete(self) -> bool:
        """
        Remove the stored snapshot.

        Returns:
            True if a snapshot existed
        """
        ...


class InMemoryHistoryStorage:
    """
    Snapshot storage kept in process memory.

    Suitable for tests and conversations that need no persistence;
    data is lost when the process exits.
    """

    def __init__(self, name: str = "memory") -> None:
        self._name = name
        self._data: Optional[str] = None

    @property
    def name(self) -> str:
        return self._name

    async def read(self) -> Optional[str]:
        return self._data

    async def write(self, data: str) -> None:
        self._data = data

    async def delete(self) -> bool:
        existed = self._data is not None
        self._data = None
        return existed


class FileHistoryStorage:
    """
    Snapshot storage backed by a single JSON file.

    Writes go to a temporary sibling file which then replaces the target,
    so a crash mid-write never leaves a truncated snapshot behind.

    Layout:
        path.parent/
        ├── messages.json          # current snapshot
        └── .messages.json.<id>    # transient, during a write
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Args:
            path: Location of the snapshot file
        """
        self._path = Path(path)

    @property
    def name(self) -> str:
        return str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    async def exists(self) -> bool:
        return await aiofiles.os.path.exists(str(self._path))

    async def read(self) -> Optional[str]:
        if not await self.exists():
            return None
        try:
            async with aiofiles.open(self._path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read history snapshot: {e}", resource=self.name
            ) from e

    async def write(self, data: str) -> None:
        tmp_path = self._path.with_name(f".{self._path.name}.{uuid.uuid4().hex}")
        try:
            parent = self._path.parent
            if not await aiofiles.os.path.isdir(str(parent)):
                await aiofiles.os.makedirs(str(parent), exist_ok=True)

            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(data)
            await aiofiles.os.replace(str(tmp_path), str(self._path))
        except OSError as e:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(str(tmp_path))
            raise PersistenceError(
                f"Failed to write history snapshot: {e}", resource=self.name
            ) from e

    async def delete(self) -> bool:
        if not await self.exists():
            return False
        try:
            await aiofiles.os.remove(str(self._path))
        except OSError as e:
            raise PersistenceError(
                f"Failed to delete history snapshot: {e}", resource=self.name
            ) from e
        return True
