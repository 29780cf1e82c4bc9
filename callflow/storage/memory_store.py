"""
In-process cache store.

Records are kept as serialized JSON strings so that reads behave like the
file store: callers always get a fresh copy and unparsable data surfaces as
CacheReadError.
"""

import json
from typing import Any, Dict, List, Optional

from callflow.errors import CacheReadError, CacheWriteError


class MemoryStore:
    """Process-local CacheStore, useful for tests and short-lived sessions."""

    def __init__(self):
        self._records: Dict[str, str] = {}

    @property
    def backend_type(self) -> str:
        return "memory"

    def load_record(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._records.get(key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheReadError(key, str(e)) from e
        if not isinstance(data, dict):
            raise CacheReadError(key, "record is not a JSON object")
        return data

    def save_record(self, key: str, record: Dict[str, Any]) -> None:
        try:
            self._records[key] = json.dumps(record)
        except (TypeError, ValueError) as e:
            raise CacheWriteError(key, str(e)) from e

    def delete_record(self, key: str) -> None:
        self._records.pop(key, None)

    def list_keys(self) -> List[str]:
        return sorted(self._records)
