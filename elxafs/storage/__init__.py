"""
ElxaFS Storage Module

Persistence below the namespace:
- String key-value stores (memory, JSON files)
- Record store for the system marker, folders and files
- External content backends
"""

from .kv_store import KeyValueStore, MemoryKeyValueStore, JsonFileKeyValueStore
from .record_store import RecordStore, KeyValueRecordStore, create_record_store
from .content_backend import ContentBackend, NullContentBackend, DirectoryContentBackend

__all__ = [
    # Key-value stores
    'KeyValueStore',
    'MemoryKeyValueStore',
    'JsonFileKeyValueStore',
    # Record stores
    'RecordStore',
    'KeyValueRecordStore',
    'create_record_store',
    # Content backends
    'ContentBackend',
    'NullContentBackend',
    'DirectoryContentBackend',
]
