"""
Cache storage abstraction for the call-flow engine.

Supports multiple storage backends:
- JsonFileStore: one JSON file per subject on local disk (default)
- MemoryStore: process-local records
"""

from callflow.storage.protocol import CacheStore
from callflow.storage.json_store import JsonFileStore
from callflow.storage.memory_store import MemoryStore
from callflow.storage.factory import create_store

__all__ = [
    'CacheStore',
    'JsonFileStore',
    'MemoryStore',
    'create_store',
]
