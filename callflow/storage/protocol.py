"""
CacheStore Protocol Definition.

Durable key-value persistence used by the flow cache. Records are plain
JSON-compatible dicts; each key holds at most one record.
Both JsonFileStore (local files) and MemoryStore (process-local) conform to
this protocol.
"""

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """
    Abstract protocol for cache stores.

    Stores are dumb: they do not know about subjects, hashes or graphs.
    The single-entry-per-subject policy lives in FlowCache.
    """

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier ('json' or 'memory')."""
        ...

    def load_record(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Load the record stored under `key`.

        Returns:
            The record dict, or None if nothing is stored.

        Raises:
            CacheReadError: if a record exists but cannot be parsed
        """
        ...

    def save_record(self, key: str, record: Dict[str, Any]) -> None:
        """
        Store `record` under `key`, replacing any previous record.

        The write is all-or-nothing: readers see the old record or the new
        one, never a partial write.

        Raises:
            CacheWriteError: if the record could not be persisted
        """
        ...

    def delete_record(self, key: str) -> None:
        """
        Remove the record under `key` if present.

        Raises:
            CacheWriteError: if an existing record could not be removed
        """
        ...

    def list_keys(self) -> List[str]:
        """List all keys that currently hold a record."""
        ...
