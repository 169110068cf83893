"""
ElxaFS - The ElxaOS Virtual File System

A hierarchical, path-addressed namespace over a flat key-value store,
with per-user isolation, protected folders and files, tiered content
storage and bootstrap seeding.
"""

__version__ = "2.0.0"
__author__ = "Elxa Corporation"

# Import order matters: the filesystem package pulls in core and storage.
from .filesystem import FileSystem, RecycleBin, PathResolver
from .storage import create_record_store, DirectoryContentBackend
from .core import Bootloader, Seeder, boot_system

__all__ = [
    'FileSystem',
    'RecycleBin',
    'PathResolver',
    'create_record_store',
    'DirectoryContentBackend',
    'Bootloader',
    'Seeder',
    'boot_system',
]
