"""
Filesystem Exceptions

Structural violations of the virtual namespace. These are always surfaced
to the caller and are raised before any record is touched, so a failed
operation leaves the store exactly as it was.

Author: Elxa Corporation
Version: 2.0.0
"""

from typing import Optional, Any

from .base import ElxaFSError


class FileSystemException(ElxaFSError):
    """
    Base exception for all filesystem-related errors.

    This is the parent class for all exceptions that occur within
    the virtual file system.
    """

    default_code = 4000


class NotFoundError(FileSystemException):
    """
    The operand path has no folder or file record.

    Example:
        >>> raise NotFoundError("/Root/Users/kit/missing.txt")
    """

    def __init__(
        self,
        path: str,
        kind: str = "entry",
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["kind"] = kind
        super().__init__(
            message=f"{kind.capitalize()} not found: {path}",
            path=path,
            error_code=4001,
            context=ctx
        )
        self.kind = kind


class AlreadyExistsError(FileSystemException):
    """
    The destination path is already taken.

    Example:
        >>> raise AlreadyExistsError("/Root/Users/kit/Documents", kind="folder")
    """

    def __init__(
        self,
        path: str,
        kind: str = "entry",
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["kind"] = kind
        super().__init__(
            message=f"{kind.capitalize()} already exists: {path}",
            path=path,
            error_code=4002,
            context=ctx
        )
        self.kind = kind


class ProtectedError(FileSystemException):
    """
    The operation would delete, rename or move a protected record.

    Raised for system folders, user root folders (outside account
    deletion) and any record flagged ``is_protected``.

    Example:
        >>> raise ProtectedError("/Root/System", operation="delete")
    """

    def __init__(
        self,
        path: str,
        operation: Optional[str] = None,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        if reason:
            ctx["reason"] = reason
        super().__init__(
            message=f"Protected: {path}",
            path=path,
            error_code=4003,
            context=ctx
        )
        self.operation = operation
        self.reason = reason


class ProtectedChildError(FileSystemException):
    """
    A protected descendant blocks an operation on its ancestor folder.

    Example:
        >>> raise ProtectedChildError("/Root/Users/kit", child="/Root/Users/kit/.settings/user.config")
    """

    def __init__(
        self,
        path: str,
        child: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["child"] = child
        super().__init__(
            message=f"Protected child blocks operation: {path}",
            path=path,
            error_code=4004,
            context=ctx
        )
        self.child = child


class CyclicMoveError(FileSystemException):
    """
    A folder cannot be moved into itself or one of its descendants.

    Example:
        >>> raise CyclicMoveError("/a/b", target="/a/b/c")
    """

    def __init__(
        self,
        path: str,
        target: str,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        ctx["target"] = target
        super().__init__(
            message=f"Cannot move folder into itself: {path} -> {target}",
            path=path,
            error_code=4005,
            context=ctx
        )
        self.target = target


class InvalidPathError(FileSystemException):
    """A path argument is not a string or cannot be used for the operation."""

    def __init__(
        self,
        value: Any,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=f"Invalid path: {value!r}",
            error_code=4006,
            context=context
        )
        self.value = value


class InvalidNameError(FileSystemException):
    """
    A folder or file name is empty, contains a separator or is a dot segment.

    Example:
        >>> raise InvalidNameError("a/b")
    """

    def __init__(
        self,
        name: Any,
        reason: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(
            message=f"Invalid name: {name!r}",
            error_code=4007,
            context=ctx
        )
        self.name = name
        self.reason = reason


class InvalidRecordError(FileSystemException):
    """
    A record does not match its declared kind.

    Raised for unknown kinds, unknown attributes and missing required
    attributes.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(
            message=message,
            path=path,
            error_code=4008,
            context=context
        )
