"""
Shared test helpers: configurations, file systems and fake backends.

Author: Elxa Corporation
Version: 2.0.0
"""

import threading
import time
from typing import Any, Optional

from elxafs.core.config_loader import Config
from elxafs.storage.content_backend import ContentBackend
from elxafs.storage.kv_store import MemoryKeyValueStore
from elxafs.storage.record_store import KeyValueRecordStore


def make_config(**storage: Any) -> Config:
    """Default configuration with quiet logging and storage overrides."""
    config = Config()
    config.logging.console_output = False
    config.storage.backend_timeout = 0.5
    for key, value in storage.items():
        setattr(config.storage, key, value)
    return config


def make_fs(backend: Optional[ContentBackend] = None, config: Optional[Config] = None,
            seed: bool = True, user: Optional[str] = 'default', store=None):
    """A file system over a fresh in-memory store, seeded by default."""
    from elxafs.core.seeder import Seeder
    from elxafs.filesystem.vfs import FileSystem

    fs = FileSystem(store, backend=backend, config=config or make_config())
    fs.initialize()
    if seed:
        Seeder(fs).run()
    fs.set_current_user(user)
    return fs


def snapshot(fs) -> tuple[dict, dict]:
    """Persisted folder and file mappings as plain dictionaries."""
    folders = {p: r.to_dict() for p, r in fs.store.load_folders().items()}
    files = {p: r.to_dict() for p, r in fs.store.load_files().items()}
    return folders, files


class MemoryContentBackend(ContentBackend):
    """
    Content backend holding blobs in a dictionary.

    ``fail`` makes every call raise; ``delay`` makes every call sleep
    first.
    """

    def __init__(self, available: bool = True):
        self.blobs: dict[str, Any] = {}
        self.available = available
        self.fail = False
        self.delay = 0.0
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def _enter(self, operation: str, path: str) -> None:
        with self._lock:
            self.calls.append((operation, path))
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            raise OSError(f"{operation} failed for {path}")

    def is_available(self) -> bool:
        return self.available

    def save_content(self, path: str, data: Any) -> bool:
        self._enter('save', path)
        self.blobs[path] = data
        return True

    def load_content(self, path: str, fmt: Optional[str] = None) -> Any:
        self._enter('load', path)
        return self.blobs.get(path)

    def delete_content(self, path: str) -> bool:
        self._enter('delete', path)
        return self.blobs.pop(path, None) is not None


class FailingRecordStore(KeyValueRecordStore):
    """In-memory record store whose files write fails while ``fail_files`` is set."""

    def __init__(self):
        super().__init__(MemoryKeyValueStore())
        self.fail_files = False

    def save_files(self, files):
        if self.fail_files:
            raise OSError("files mapping write failed")
        super().save_files(files)
