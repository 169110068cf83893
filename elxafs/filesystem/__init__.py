"""
ElxaFS Virtual File System Module

Provides the hierarchical namespace:
- Canonical path handling
- Folder and file records with closed file kinds
- Arena namespace tree with O(depth) rename and move
- Tiered content storage
- Recycle bin
"""

from .path_resolver import PathResolver
from .records import (
    FolderType,
    FileKind,
    FolderRecord,
    FileRecord,
    FolderContents,
    KIND_SPECS,
    PRIMARY_ONLY_KINDS,
    now_iso,
)
from .namespace import NamespaceTree
from .vfs import FileSystem
from .tiering import ContentTier
from .recycle_bin import RecycleBin

__all__ = [
    # Paths
    'PathResolver',
    # Records
    'FolderType',
    'FileKind',
    'FolderRecord',
    'FileRecord',
    'FolderContents',
    'KIND_SPECS',
    'PRIMARY_ONLY_KINDS',
    'now_iso',
    # Namespace
    'NamespaceTree',
    # VFS
    'FileSystem',
    'ContentTier',
    'RecycleBin',
]
