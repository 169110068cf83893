"""
Base Exception

Common parent for every error raised by ElxaFS. Carries a numeric error
code, the path involved (if any) and free-form context so collaborators can
render one predictable message per error kind.

Author: Elxa Corporation
Version: 2.0.0
"""

from typing import Optional, Any


class ElxaFSError(Exception):
    """
    Base exception for all ElxaFS errors.

    Attributes:
        message: Human-readable error description
        error_code: Numeric error code for programmatic handling
        path: Virtual path associated with the error (if applicable)
        recoverable: Whether the caller can carry on after the error
        context: Additional context about the error
    """

    default_code = 0

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        error_code: Optional[int] = None,
        recoverable: bool = False,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.error_code = error_code or self.default_code
        self.recoverable = recoverable
        self.context = context or {}
        if path:
            self.context["path"] = path

    def __str__(self) -> str:
        base = f"[Error {self.error_code}] {self.message}"
        if self.path:
            base = f"{base} (path={self.path})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code}, "
            f"recoverable={self.recoverable})"
        )
