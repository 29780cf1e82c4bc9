"""
Tests for cache stores.

Tests both JsonFileStore and MemoryStore implementations, plus the factory.
"""

import json
import pytest
from pathlib import Path
from unittest.mock import MagicMock

# Test imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from callflow import config
from callflow.errors import CacheReadError, CacheWriteError
from callflow.storage import CacheStore, JsonFileStore, MemoryStore, create_store


class TestJsonFileStore:
    """Tests for JsonFileStore file-based storage."""

    @pytest.fixture
    def store(self, tmp_path):
        return JsonFileStore(tmp_path / "call_flows")

    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "cache"
        JsonFileStore(target)
        assert target.is_dir()

    def test_backend_type(self, store):
        assert store.backend_type == "json"
        assert isinstance(store, CacheStore)

    def test_missing_record(self, store):
        assert store.load_record("call-flow-viz-nobody") is None

    def test_save_and_load(self, store):
        record = {"input_hash": "abc", "flow": {"graph": {"nodes": []}}, "timestamp": "2026-01-14T12:00:00+00:00"}
        store.save_record("call-flow-viz-agent-1", record)
        assert store.load_record("call-flow-viz-agent-1") == record

    def test_record_is_readable_json(self, store):
        store.save_record("call-flow-viz-agent-1", {"input_hash": "abc"})
        path = store.cache_dir / "call-flow-viz-agent-1.json"
        assert json.loads(path.read_text(encoding="utf-8")) == {"input_hash": "abc"}

    def test_keys_with_path_characters(self, store):
        key = "call-flow-viz-team/agent 7?"
        store.save_record(key, {"input_hash": "x"})

        assert store.load_record(key) == {"input_hash": "x"}
        assert store.list_keys() == [key]
        # nothing escapes the cache directory
        assert all(p.parent == store.cache_dir for p in store.cache_dir.rglob("*"))

    def test_overwrite_leaves_no_temp_files(self, store):
        store.save_record("k", {"input_hash": "1"})
        store.save_record("k", {"input_hash": "2"})

        assert store.load_record("k") == {"input_hash": "2"}
        assert [p.name for p in store.cache_dir.iterdir()] == ["k.json"]

    def test_corrupt_file_raises_read_error(self, store):
        (store.cache_dir / "k.json").write_text("{oops", encoding="utf-8")
        with pytest.raises(CacheReadError) as exc_info:
            store.load_record("k")
        assert exc_info.value.key == "k"

    def test_non_object_raises_read_error(self, store):
        (store.cache_dir / "k.json").write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(CacheReadError):
            store.load_record("k")

    def test_unserializable_record_raises_write_error(self, store):
        store.save_record("k", {"input_hash": "1"})
        with pytest.raises(CacheWriteError):
            store.save_record("k", {"input_hash": object()})

        # previous record survives and the temp file is cleaned up
        assert store.load_record("k") == {"input_hash": "1"}
        assert [p.name for p in store.cache_dir.iterdir()] == ["k.json"]

    def test_delete(self, store):
        store.save_record("k", {"input_hash": "1"})
        store.delete_record("k")
        assert store.load_record("k") is None
        store.delete_record("k")

    def test_list_keys_sorted(self, store):
        for key in ["b", "a", "c"]:
            store.save_record(key, {})
        assert store.list_keys() == ["a", "b", "c"]

    def test_long_key_round_trip(self, store):
        key = "call-flow-viz-" + "a" * 300
        other = "call-flow-viz-" + "a" * 299 + "b"
        store.save_record(key, {"input_hash": "1"})
        store.save_record(other, {"input_hash": "2"})

        assert store.load_record(key) == {"input_hash": "1"}
        assert store.load_record(other) == {"input_hash": "2"}
        assert store.list_keys() == sorted([key, other])
        assert all(len(p.name) < 255 for p in store.cache_dir.iterdir())

        store.delete_record(key)
        assert store.load_record(key) is None
        assert store.list_keys() == [other]
        assert len(list(store.cache_dir.iterdir())) == 2

    def test_long_non_ascii_key(self, store):
        key = "call-flow-viz-" + "\u00e9" * 200
        store.save_record(key, {"input_hash": "1"})
        assert store.list_keys() == [key]
        assert store.load_record(key) == {"input_hash": "1"}

    def test_filesystem_error_on_read_raises_read_error(self, store, monkeypatch):
        broken = MagicMock()
        broken.exists.side_effect = OSError(36, "File name too long")
        monkeypatch.setattr(store, "_path", lambda key: broken)

        with pytest.raises(CacheReadError):
            store.load_record("k")
        with pytest.raises(CacheWriteError):
            store.delete_record("k")


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_backend_type(self):
        store = MemoryStore()
        assert store.backend_type == "memory"
        assert isinstance(store, CacheStore)

    def test_save_and_load_returns_copy(self):
        store = MemoryStore()
        record = {"input_hash": "abc", "flow": {"graph": {}}}
        store.save_record("k", record)

        loaded = store.load_record("k")
        assert loaded == record
        loaded["input_hash"] = "changed"
        assert store.load_record("k")["input_hash"] == "abc"

    def test_unserializable_record_raises_write_error(self):
        store = MemoryStore()
        with pytest.raises(CacheWriteError):
            store.save_record("k", {"bad": {1, 2}})
        assert store.load_record("k") is None

    def test_delete_and_list(self):
        store = MemoryStore()
        store.save_record("b", {})
        store.save_record("a", {})
        assert store.list_keys() == ["a", "b"]
        store.delete_record("a")
        store.delete_record("missing")
        assert store.list_keys() == ["b"]


class TestStoreFactory:
    """Tests for create_store and the cache settings it reads."""

    @pytest.fixture(autouse=True)
    def isolated_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "get_config_path", lambda: tmp_path / "config.json")
        monkeypatch.delenv(config.ENV_CACHE_BACKEND, raising=False)
        monkeypatch.delenv(config.ENV_CACHE_DIR, raising=False)
        return tmp_path

    def test_explicit_backends(self, tmp_path):
        assert isinstance(create_store("memory"), MemoryStore)
        store = create_store("json", cache_dir=tmp_path / "flows")
        assert isinstance(store, JsonFileStore)
        assert store.cache_dir == tmp_path / "flows"

    def test_backend_name_is_case_insensitive(self):
        assert isinstance(create_store(" Memory "), MemoryStore)

    def test_unknown_backend_falls_back_to_json(self, tmp_path, caplog):
        store = create_store("redis", cache_dir=tmp_path)
        assert isinstance(store, JsonFileStore)
        assert "Unknown cache backend 'redis'" in caplog.text

    def test_backend_from_environment(self, monkeypatch):
        monkeypatch.setenv(config.ENV_CACHE_BACKEND, "memory")
        assert isinstance(create_store(), MemoryStore)

    def test_backend_and_dir_from_config_file(self, tmp_path):
        config.save_config({"cache_backend": "json", "cache_dir": str(tmp_path / "from_config")})
        store = create_store()
        assert isinstance(store, JsonFileStore)
        assert store.cache_dir == tmp_path / "from_config"

    def test_environment_beats_config_file(self, tmp_path, monkeypatch):
        config.save_config({"cache_dir": str(tmp_path / "from_config")})
        monkeypatch.setenv(config.ENV_CACHE_DIR, str(tmp_path / "from_env"))
        assert create_store("json").cache_dir == tmp_path / "from_env"
