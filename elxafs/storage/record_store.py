"""
Record Store

Persists the three file system mappings (system marker, folders, files)
as JSON documents in a :class:`~elxafs.storage.kv_store.KeyValueStore`.

Author: Elxa Corporation
Version: 2.0.0
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional, Callable, TypeVar

from elxafs.exceptions import CorruptStoreError, InvalidRecordError
from elxafs.filesystem.records import FileRecord, FolderRecord
from elxafs.logger import get_logger
from .kv_store import KeyValueStore, MemoryKeyValueStore, JsonFileKeyValueStore


T = TypeVar('T')


class RecordStore(ABC):
    """
    Abstract persistence for file system records.

    Mappings are keyed by full path. A store that has never been written
    returns ``None`` for the system marker and empty mappings.
    """

    @abstractmethod
    def load_system(self) -> Optional[dict[str, Any]]:
        """Read the system marker, None before the first seed."""

    @abstractmethod
    def save_system(self, marker: dict[str, Any]) -> None:
        """Write the system marker."""

    @abstractmethod
    def load_folders(self) -> dict[str, FolderRecord]:
        """Read all folder records."""

    @abstractmethod
    def save_folders(self, folders: dict[str, FolderRecord]) -> None:
        """Replace all folder records."""

    @abstractmethod
    def load_files(self) -> dict[str, FileRecord]:
        """Read all file records."""

    @abstractmethod
    def save_files(self, files: dict[str, FileRecord]) -> None:
        """Replace all file records."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every persisted mapping, marker included."""


class KeyValueRecordStore(RecordStore):
    """
    Record store over a string key-value store.

    Keys are ``<prefix>system``, ``<prefix>folders`` and ``<prefix>files``.
    """

    SYSTEM_KEY = 'system'
    FOLDERS_KEY = 'folders'
    FILES_KEY = 'files'

    def __init__(self, kv: KeyValueStore, key_prefix: str = ''):
        self._kv = kv
        self._prefix = key_prefix
        self._logger = get_logger('store')

    @property
    def kv(self) -> KeyValueStore:
        return self._kv

    def key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def _read(self, name: str) -> Optional[dict[str, Any]]:
        key = self.key(name)
        raw = self._kv.get_item(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(key, reason=str(e))
        if not isinstance(data, dict):
            raise CorruptStoreError(key, reason="not a JSON object")
        return data

    def _write(self, name: str, data: dict[str, Any]) -> None:
        self._kv.set_item(self.key(name), json.dumps(data))

    def _decode(self, name: str, factory: Callable[[dict[str, Any]], T]) -> dict[str, T]:
        data = self._read(name) or {}
        records: dict[str, T] = {}
        for path, raw in data.items():
            try:
                records[path] = factory(raw)
            except (InvalidRecordError, KeyError, TypeError, ValueError) as e:
                raise CorruptStoreError(self.key(name), reason=f"{path}: {e}")
        return records

    def load_system(self) -> Optional[dict[str, Any]]:
        return self._read(self.SYSTEM_KEY)

    def save_system(self, marker: dict[str, Any]) -> None:
        self._write(self.SYSTEM_KEY, marker)

    def load_folders(self) -> dict[str, FolderRecord]:
        return self._decode(self.FOLDERS_KEY, FolderRecord.from_dict)

    def save_folders(self, folders: dict[str, FolderRecord]) -> None:
        self._write(self.FOLDERS_KEY, {path: r.to_dict() for path, r in folders.items()})

    def load_files(self) -> dict[str, FileRecord]:
        return self._decode(self.FILES_KEY, FileRecord.from_dict)

    def save_files(self, files: dict[str, FileRecord]) -> None:
        self._write(self.FILES_KEY, {path: r.to_dict() for path, r in files.items()})

    def clear(self) -> None:
        for name in (self.SYSTEM_KEY, self.FOLDERS_KEY, self.FILES_KEY):
            self._kv.remove_item(self.key(name))
        self._logger.notice("Record store cleared")


def create_record_store(backend: str = 'memory', data_dir: Optional[str] = None,
                        key_prefix: str = '') -> RecordStore:
    """
    Create a record store for a configured backend name.

    Args:
        backend: ``memory`` or ``json``
        data_dir: Directory for the ``json`` backend
        key_prefix: Prefix for the persisted keys
    """
    if backend == 'memory':
        kv: KeyValueStore = MemoryKeyValueStore()
    elif backend == 'json':
        if not data_dir:
            raise ValueError("The json record store needs a data directory")
        kv = JsonFileKeyValueStore(data_dir)
    else:
        raise ValueError(f"Unknown record store backend: {backend}")
    return KeyValueRecordStore(kv, key_prefix=key_prefix)
