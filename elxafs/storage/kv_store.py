"""
Key-Value Stores

The primary store is a flat string-to-string key-value store, the same
contract as a browser's local storage. Two implementations are provided:
an in-memory one and one backed by a directory of JSON files.

Author: Elxa Corporation
Version: 2.0.0
"""

import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List
from urllib.parse import quote, unquote

from elxafs.logger import get_logger


class KeyValueStore(ABC):
    """
    Abstract string key-value store.

    Implementations must make :meth:`set_item` atomic per key.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Read a value.

        Returns:
            The stored string, or None if the key is absent
        """

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""

    @abstractmethod
    def keys(self) -> List[str]:
        """All keys currently stored."""

    def clear(self) -> None:
        for key in self.keys():
            self.remove_item(key)


class MemoryKeyValueStore(KeyValueStore):
    """Key-value store held in a dictionary."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Key-value store with one ``<key>.json`` file per key.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so a reader never sees a half-written value.
    """

    SUFFIX = '.json'

    def __init__(self, directory: str):
        self._directory = Path(directory).expanduser()
        self._directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = get_logger('store')

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / (quote(key, safe='') + self.SUFFIX)

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        with self._lock:
            if not path.exists():
                return None
            return path.read_text(encoding='utf-8')

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix='.tmp-', suffix=self.SUFFIX)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    f.write(value)
                os.replace(tmp_name, path)
            except OSError:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        self._logger.debug("Key written", context={'key': key, 'bytes': len(value)})

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        with self._lock:
            if path.exists():
                path.unlink()

    def keys(self) -> List[str]:
        with self._lock:
            return [
                unquote(p.name[:-len(self.SUFFIX)])
                for p in self._directory.glob('*' + self.SUFFIX)
                if not p.name.startswith('.tmp-')
            ]
