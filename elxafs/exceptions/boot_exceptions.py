"""
Boot Exceptions

Errors raised while loading configuration and bringing the file system up.

Author: Elxa Corporation
Version: 2.0.0
"""

from typing import Optional, Any

from .base import ElxaFSError


class BootException(ElxaFSError):
    """Base exception for boot and configuration errors."""

    default_code = 1000


class BootFailureError(BootException):
    """
    Failure during the boot sequence.

    Example:
        >>> raise BootFailureError("Configuration file is not valid JSON", subsystem="config")
    """

    def __init__(
        self,
        message: str,
        subsystem: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if subsystem:
            ctx["subsystem"] = subsystem
        super().__init__(
            message=message,
            error_code=1001,
            context=ctx
        )
        self.subsystem = subsystem


class ConfigValidationError(BootException):
    """Raised when a configuration key or value is invalid."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        ctx = context or {}
        if key:
            ctx["key"] = key
        super().__init__(
            message=message,
            error_code=1002,
            context=ctx
        )
        self.key = key
