"""
Content-addressed cache for laid-out call flows.

Each subject (an agent or configuration) has at most one cached diagram.
An entry is a hit only when its stored hash equals the hash of the
subject's current source text; writing a new entry for a subject replaces
the old one whatever its hash was.

Stored record (one per subject, under "call-flow-viz-{subject_id}"):
  {
    "input_hash": "<compute_hash(source text)>",
    "flow": {"graph": {...}, "layout": {...}},
    "timestamp": "2026-01-14T12:00:00+00:00"
  }
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from callflow.errors import CacheReadError
from callflow.graph import Graph
from callflow.layout import LayoutResult
from callflow.storage.protocol import CacheStore

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "call-flow-viz-"

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def compute_hash(text: str) -> str:
    """
    Fast, deterministic, order-sensitive hash of `text`.

    32-bit rolling hash (h = h * 31 + unit) over UTF-16 code units, kept as
    a signed 32-bit integer and rendered in base 36. This is a cache key,
    not a security boundary; collisions are tolerated.
    """
    h = 0
    # surrogatepass keeps lone surrogates as their own code units
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return _to_base36(h)


def cache_key(subject_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}{subject_id}"


@dataclass(frozen=True)
class CacheEntry:
    subject_id: str
    input_hash: str
    graph: Graph
    layout: LayoutResult
    created_at: datetime

    def to_record(self) -> Dict[str, Any]:
        return {
            "input_hash": self.input_hash,
            "flow": {
                "graph": self.graph.to_dict(),
                "layout": self.layout.to_dict(),
            },
            "timestamp": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, subject_id: str, record: Dict[str, Any]) -> "CacheEntry":
        flow = record["flow"]
        return cls(
            subject_id=subject_id,
            input_hash=str(record["input_hash"]),
            graph=Graph.from_dict(flow["graph"]),
            layout=LayoutResult.from_dict(flow["layout"]),
            created_at=datetime.fromisoformat(record["timestamp"]),
        )


class FlowCache:
    """
    Single-entry-per-subject cache over an injected CacheStore.

    Reads never fail: unreadable or malformed records count as misses.
    Writes raise CacheWriteError so the caller can decide to carry on.
    """

    def __init__(self, store: CacheStore):
        self.store = store

    def get(self, subject_id: str, input_hash: str) -> Optional[CacheEntry]:
        """Return the cached entry for `subject_id` if its hash matches."""
        key = cache_key(subject_id)
        try:
            record = self.store.load_record(key)
        except CacheReadError as e:
            logger.warning(f"Ignoring unreadable cache record for {subject_id}: {e}")
            return None

        if record is None:
            return None

        if record.get("input_hash") != input_hash:
            logger.info(f"Cache for {subject_id} is stale (hash {record.get('input_hash')} != {input_hash})")
            return None

        try:
            return CacheEntry.from_record(subject_id, record)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed cache record for {subject_id}: {type(e).__name__}: {e}")
            return None

    def lookup(self, subject_id: str, source_text: str) -> Optional[CacheEntry]:
        """Hash `source_text` and return the matching entry, if any."""
        return self.get(subject_id, compute_hash(source_text))

    def put(self, subject_id: str, input_hash: str, graph: Graph, layout: LayoutResult) -> CacheEntry:
        """
        Store a laid-out graph for `subject_id`, replacing any prior entry.

        Raises:
            CacheWriteError: if the store could not persist the record
        """
        entry = CacheEntry(
            subject_id=subject_id,
            input_hash=input_hash,
            graph=graph,
            layout=layout,
            created_at=datetime.now(timezone.utc),
        )
        self.store.save_record(cache_key(subject_id), entry.to_record())
        logger.info(f"Cached call flow for {subject_id} (hash {input_hash})")
        return entry

    def invalidate(self, subject_id: str) -> None:
        """Drop the cached entry for `subject_id`."""
        self.store.delete_record(cache_key(subject_id))
