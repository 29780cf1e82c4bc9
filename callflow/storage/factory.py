"""
Store Factory.

Creates the cache store named by configuration (or by the caller).
"""

import logging
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from callflow.config import get_cache_backend, get_cache_dir
from callflow.storage.json_store import JsonFileStore
from callflow.storage.memory_store import MemoryStore

if TYPE_CHECKING:
    from callflow.storage.protocol import CacheStore

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("json", "memory")


def create_store(
    backend: Optional[str] = None,
    cache_dir: Optional[Union[str, Path]] = None,
) -> "CacheStore":
    """
    Create a cache store instance.

    Args:
        backend: 'json' or 'memory'; defaults to the configured backend
        cache_dir: Directory for the JSON store; defaults to the configured one

    Returns:
        CacheStore instance (JsonFileStore or MemoryStore)
    """
    backend_type = (backend or get_cache_backend()).strip().lower()

    if backend_type == "memory":
        return MemoryStore()

    if backend_type not in SUPPORTED_BACKENDS:
        logger.warning(f"Unknown cache backend '{backend_type}', falling back to json")

    return JsonFileStore(cache_dir if cache_dir is not None else get_cache_dir())
