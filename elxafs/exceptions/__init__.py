"""
ElxaFS Exception Hierarchy

All custom exceptions inherit from ElxaFSError, with one sub-category per
layer of the file system.

Architecture:
    ElxaFSError (Base)
    ├── BootException
    │   ├── BootFailureError
    │   └── ConfigValidationError
    ├── FileSystemException
    │   ├── NotFoundError
    │   ├── AlreadyExistsError
    │   ├── ProtectedError
    │   ├── ProtectedChildError
    │   ├── CyclicMoveError
    │   ├── InvalidPathError
    │   ├── InvalidNameError
    │   └── InvalidRecordError
    └── StorageException
        ├── BackendUnavailableError
        ├── BackendTimeoutError
        └── CorruptStoreError
"""

from .base import ElxaFSError

from .boot_exceptions import (
    BootException,
    BootFailureError,
    ConfigValidationError,
)

from .fs_exceptions import (
    FileSystemException,
    NotFoundError,
    AlreadyExistsError,
    ProtectedError,
    ProtectedChildError,
    CyclicMoveError,
    InvalidPathError,
    InvalidNameError,
    InvalidRecordError,
)

from .storage_exceptions import (
    StorageException,
    BackendUnavailableError,
    BackendTimeoutError,
    CorruptStoreError,
)

__all__ = [
    "ElxaFSError",
    # Boot exceptions
    "BootException",
    "BootFailureError",
    "ConfigValidationError",
    # Filesystem exceptions
    "FileSystemException",
    "NotFoundError",
    "AlreadyExistsError",
    "ProtectedError",
    "ProtectedChildError",
    "CyclicMoveError",
    "InvalidPathError",
    "InvalidNameError",
    "InvalidRecordError",
    # Storage exceptions
    "StorageException",
    "BackendUnavailableError",
    "BackendTimeoutError",
    "CorruptStoreError",
]
