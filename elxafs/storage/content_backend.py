"""
Content Backends

The secondary tier for file content. A backend stores opaque content
under the logical path of the file it belongs to. The file system only
uses it while :meth:`ContentBackend.is_available` is true and falls back
to the primary store whenever a call fails.

Author: Elxa Corporation
Version: 2.0.0
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

from elxafs.core.subsystem import Subsystem, SubsystemState
from elxafs.exceptions import BackendUnavailableError, InvalidPathError
from elxafs.filesystem.path_resolver import PathResolver


class ContentBackend(ABC):
    """
    Abstract content backend.

    Calls may block and may raise; callers are expected to bound them
    with a timeout and treat any exception as a miss.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """True once the backend can serve requests."""

    @abstractmethod
    def save_content(self, path: str, data: Any) -> bool:
        """
        Store content for a logical path.

        Returns:
            True when the content was written
        """

    @abstractmethod
    def load_content(self, path: str, fmt: Optional[str] = None) -> Any:
        """
        Read content for a logical path.

        Args:
            path: Logical file path
            fmt: ``text``, ``bytes`` or ``json``; guessed from the file
                extension when omitted

        Returns:
            The content, or None if nothing is stored for ``path``
        """

    @abstractmethod
    def delete_content(self, path: str) -> bool:
        """
        Remove content for a logical path.

        Returns:
            True when something was removed
        """


class NullContentBackend(ContentBackend):
    """Backend that is never available."""

    def is_available(self) -> bool:
        return False

    def save_content(self, path: str, data: Any) -> bool:
        raise BackendUnavailableError(path=path)

    def load_content(self, path: str, fmt: Optional[str] = None) -> Any:
        raise BackendUnavailableError(path=path)

    def delete_content(self, path: str) -> bool:
        raise BackendUnavailableError(path=path)


class DirectoryContentBackend(ContentBackend, Subsystem):
    """
    Backend writing content into a host directory.

    The directory has to be granted before the backend becomes
    available. Logical paths map onto the directory one segment per
    level, so ``/Root/Users/kit/Pictures/cat.png`` is stored at
    ``<dir>/Root/Users/kit/Pictures/cat.png``.

    Strings are written as UTF-8 text, bytes as binary and anything else
    as JSON.

    Example:
        >>> backend = DirectoryContentBackend()
        >>> backend.grant('/tmp/elxaos-files')
        True
        >>> backend.save_content('/Root/Users/kit/Documents/a.txt', 'hi')
        True
    """

    TEXT_SUFFIXES = frozenset({'.txt', '.md', '.csv', '.html', '.config', '.log'})
    JSON_SUFFIXES = frozenset({'.json', '.odp'})

    def __init__(self, directory: Optional[str] = None):
        Subsystem.__init__(self, 'backend')
        self._root: Optional[Path] = None
        self._lock = threading.Lock()
        if directory:
            self.grant(directory)

    @property
    def directory(self) -> Optional[Path]:
        return self._root

    def initialize(self) -> None:
        self.set_state(SubsystemState.INITIALIZED)
        self._logger.info(
            "Content backend initialized",
            context={'available': self.is_available(), 'directory': self._root}
        )

    def grant(self, directory: str) -> bool:
        """
        Grant access to a host directory.

        Returns:
            True when the directory is usable
        """
        path = Path(directory).expanduser()
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self._logger.error(
                "Cannot use directory for content",
                context={'directory': str(path), 'error': str(e)}
            )
            return False

        with self._lock:
            self._root = path.resolve()
        self._logger.info("Content directory granted", context={'directory': str(self._root)})
        return True

    def revoke(self) -> None:
        """Forget the granted directory."""
        with self._lock:
            self._root = None
        self._logger.info("Content directory revoked")

    def is_available(self) -> bool:
        return self._root is not None

    def _resolve(self, path: str) -> Path:
        root = self._root
        if root is None:
            raise BackendUnavailableError(path=path)
        parts = PathResolver.components(path)
        if not parts:
            raise InvalidPathError(path)
        for part in parts:
            PathResolver.validate_name(part)
        return root.joinpath(*parts)

    def save_content(self, path: str, data: Any) -> bool:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, (bytes, bytearray)):
            target.write_bytes(bytes(data))
        elif isinstance(data, str):
            target.write_text(data, encoding='utf-8')
        else:
            target.write_text(json.dumps(data), encoding='utf-8')
        self._logger.debug("Content saved", context={'path': path})
        return True

    def load_content(self, path: str, fmt: Optional[str] = None) -> Any:
        target = self._resolve(path)
        if not target.is_file():
            return None

        if fmt is None:
            suffix = target.suffix.lower()
            if suffix in self.JSON_SUFFIXES:
                fmt = 'json'
            elif suffix in self.TEXT_SUFFIXES:
                fmt = 'text'
            else:
                fmt = 'bytes'

        if fmt == 'bytes':
            return target.read_bytes()
        text = target.read_text(encoding='utf-8')
        if fmt == 'json':
            return json.loads(text)
        return text

    def delete_content(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()

        # Drop directories left empty, up to the granted root.
        parent = target.parent
        while parent != self._root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent

        self._logger.debug("Content deleted", context={'path': path})
        return True
