"""
Content Tiering

Decides whether file content goes to the primary store or the external
content backend, and runs backend calls with a timeout. A failing or
slow backend never fails a file system operation: the call is logged
and reported as a miss so the caller can keep the content inline.

Author: Elxa Corporation
Version: 2.0.0
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Any, Callable, Optional

from elxafs.exceptions import BackendTimeoutError
from elxafs.logger import get_logger
from elxafs.storage.content_backend import ContentBackend, NullContentBackend
from .path_resolver import PathResolver
from .records import FileKind, PRIMARY_ONLY_KINDS, content_size

_MISS = object()


class ContentTier:
    """
    Timeout-bounded access to a content backend.

    Args:
        backend: Content backend, or None for primary-only storage
        threshold: Size in bytes from which non-image content is stored
            externally
        timeout: Seconds to wait for a single backend call
        system_path: Content of files below this folder stays primary
    """

    def __init__(
        self,
        backend: Optional[ContentBackend] = None,
        threshold: int = 102400,
        timeout: float = 5.0,
        system_path: str = '/Root/System'
    ):
        self._backend = backend or NullContentBackend()
        self._threshold = threshold
        self._timeout = timeout
        self._system_path = system_path
        self._executor: Optional[ThreadPoolExecutor] = None
        self._logger = get_logger('tier')

    @property
    def backend(self) -> ContentBackend:
        return self._backend

    def available(self) -> bool:
        try:
            return bool(self._backend.is_available())
        except Exception as e:
            self._logger.warning("Backend availability check failed", context={'error': str(e)})
            return False

    def is_regular(self, kind: FileKind, path: str) -> bool:
        """Regular files are candidates for the external tier."""
        return kind not in PRIMARY_ONLY_KINDS and not PathResolver.is_descendant(path, self._system_path)

    def should_externalize(self, kind: FileKind, content: Any, path: str) -> bool:
        """
        Tier policy for new content.

        Images go external whenever the backend is available; other
        regular files only once they reach the size threshold.
        """
        if content is None or not self.is_regular(kind, path):
            return False
        if not self.available():
            return False
        if kind is FileKind.IMAGE:
            return True
        return content_size(content) >= self._threshold

    def _call(self, operation: str, path: str, func: Callable[[], Any]) -> Any:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='elxafs-backend')
        future = self._executor.submit(func)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeout:
            error = BackendTimeoutError(operation, self._timeout, path=path)
            self._logger.warning(str(error), context={'path': path})
            if operation == 'save':
                self._discard_late_write(path)
        except Exception as e:
            self._logger.warning(
                f"Content backend {operation} failed",
                context={'path': path, 'error': str(e)}
            )
        return _MISS

    def _discard_late_write(self, path: str) -> None:
        """
        Queue removal of the blob a timed-out save may still write.

        The single worker runs calls in order, so the removal runs after
        the late write and before any call submitted afterwards.
        """
        future = self._executor.submit(self._backend.delete_content, path)

        def done(f):
            if f.exception() is not None:
                self._logger.warning(
                    "Discarding late content write failed",
                    context={'path': path, 'error': str(f.exception())}
                )

        future.add_done_callback(done)

    def save(self, path: str, content: Any) -> bool:
        """Write content externally; False means keep it inline."""
        if not self.available():
            return False
        result = self._call('save', path, lambda: self._backend.save_content(path, content))
        return result is not _MISS and bool(result)

    def load(self, path: str, fmt: Optional[str] = None) -> Any:
        """Read content externally; None on a miss."""
        if not self.available():
            return None
        result = self._call('load', path, lambda: self._backend.load_content(path, fmt))
        return None if result is _MISS else result

    def delete(self, path: str) -> bool:
        if not self.available():
            return False
        result = self._call('delete', path, lambda: self._backend.delete_content(path))
        return result is not _MISS and bool(result)

    def relocate(self, old_path: str, new_path: str, fmt: Optional[str] = None) -> bool:
        """Move content from one logical path to another."""
        if old_path == new_path:
            return True
        content = self.load(old_path, fmt)
        if content is None:
            self._logger.warning(
                "External content not found for relocation",
                context={'path': old_path, 'new_path': new_path}
            )
            return False
        if not self.save(new_path, content):
            return False
        self.delete(old_path)
        return True

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
