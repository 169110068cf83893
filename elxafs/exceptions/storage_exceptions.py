"""
Storage Exceptions

Errors from the record store and the tiered content backend. Backend
errors are recoverable: the file system catches them and falls back to
the primary store.

Author: Elxa Corporation
Version: 2.0.0
"""

from typing import Optional, Any

from .base import ElxaFSError


class StorageException(ElxaFSError):
    """Base exception for record store and content backend errors."""

    default_code = 5000


class BackendUnavailableError(StorageException):
    """
    The tiered content backend has not been granted a directory.

    Example:
        >>> raise BackendUnavailableError("No directory granted")
    """

    def __init__(
        self,
        message: str = "Content backend unavailable",
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=message,
            path=path,
            error_code=5001,
            recoverable=True,
            context=context
        )


class BackendTimeoutError(StorageException):
    """A content backend call did not finish within the configured timeout."""

    def __init__(
        self,
        operation: str,
        timeout: float,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["operation"] = operation
        ctx["timeout"] = timeout
        super().__init__(
            message=f"Content backend {operation} timed out after {timeout}s",
            path=path,
            error_code=5002,
            recoverable=True,
            context=ctx
        )
        self.operation = operation
        self.timeout = timeout


class CorruptStoreError(StorageException):
    """A persisted mapping could not be decoded."""

    def __init__(
        self,
        key: str,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["key"] = key
        if reason:
            ctx["reason"] = reason
        super().__init__(
            message=f"Corrupt store value for key '{key}'",
            error_code=5003,
            context=ctx
        )
        self.key = key
