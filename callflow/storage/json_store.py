"""
File-based cache store.

Implements the CacheStore protocol with one JSON file per key:
- {cache_dir}/{quoted key}.json
- {cache_dir}/{quoted prefix}%%{digest}.json + .key   (keys too long for a filename)

Keys are percent-encoded so any subject id maps to a safe, reversible
filename. Percent-encoding never produces "%%", so hashed names cannot
collide with plain ones; their full key is kept in the .key file next to
the record. Writes go to a temporary file in the same directory which then
replaces the target, so a crash mid-write leaves the previous record intact.
"""

import hashlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote, unquote

from callflow.errors import CacheReadError, CacheWriteError

logger = logging.getLogger(__name__)

# Most filesystems cap a name at 255 bytes; leave room for the suffixes
MAX_STEM_LENGTH = 200
HASHED_PREFIX_LENGTH = 100
HASHED_MARKER = "%%"
KEY_SUFFIX = ".key"


class JsonFileStore:
    """Local file-based cache store."""

    def __init__(self, cache_dir: Union[str, Path]):
        """
        Initialize the store.

        Args:
            cache_dir: Directory holding one JSON file per key (created if missing)
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        return "json"

    def _stem(self, key: str) -> str:
        quoted = quote(key, safe='')
        if len(quoted) <= MAX_STEM_LENGTH:
            return quoted
        digest = hashlib.sha256(key.encode("utf-8", "surrogatepass")).hexdigest()
        return f"{quoted[:HASHED_PREFIX_LENGTH]}{HASHED_MARKER}{digest}"

    def _path(self, key: str) -> Path:
        return self.cache_dir / f"{self._stem(key)}.json"

    def _key_path(self, key: str) -> Path:
        return self.cache_dir / f"{self._stem(key)}{KEY_SUFFIX}"

    def load_record(self, key: str) -> Optional[Dict[str, Any]]:
        path = self._path(key)
        try:
            if not path.exists():
                return None
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise CacheReadError(key, str(e)) from e
        if not isinstance(data, dict):
            raise CacheReadError(key, "record is not a JSON object")
        return data

    def save_record(self, key: str, record: Dict[str, Any]) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            if HASHED_MARKER in path.stem:
                self._key_path(key).write_text(key, encoding="utf-8", errors="surrogatepass")
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.cache_dir, suffix=".tmp", delete=False
            ) as f:
                tmp_name = f.name
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheWriteError(key, str(e)) from e

    def delete_record(self, key: str) -> None:
        path = self._path(key)
        try:
            if path.exists():
                path.unlink()
                logger.info(f"Deleted cache record {key}")
            key_path = self._key_path(key)
            if key_path.exists():
                key_path.unlink()
        except OSError as e:
            raise CacheWriteError(key, str(e)) from e

    def list_keys(self) -> List[str]:
        keys = []
        for p in self.cache_dir.glob("*.json"):
            if HASHED_MARKER not in p.stem:
                keys.append(unquote(p.stem))
                continue
            key_path = p.with_suffix(KEY_SUFFIX)
            try:
                keys.append(key_path.read_text(encoding="utf-8", errors="surrogatepass"))
            except OSError as e:
                logger.warning(f"Skipping cache record {p.name} with unreadable key file: {e}")
        return sorted(keys)
