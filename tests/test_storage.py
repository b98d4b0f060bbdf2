"""
Tests for vis_site.storage module.

Covers:
- MemoryLocalStorage: get/set/remove/keys
- SQLiteLocalStorage: persistence across instances, errors wrapped as LocalPersistenceError
"""

import sqlite3
from pathlib import Path
from unittest import mock

import pytest

from vis_site.exceptions import LocalPersistenceError
from vis_site.storage import MemoryLocalStorage, SQLiteLocalStorage


class TestMemoryLocalStorage:
    """Tests for MemoryLocalStorage class."""

    def test_get_missing_returns_none(self):
        assert MemoryLocalStorage().get_item("nope") is None

    def test_set_get_remove(self):
        storage = MemoryLocalStorage()
        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"
        storage.remove_item("k")
        assert storage.get_item("k") is None

    def test_remove_missing_is_noop(self):
        storage = MemoryLocalStorage({"a": "1"})
        storage.remove_item("b")
        assert storage.keys() == ["a"]

    def test_initial_is_copied(self):
        initial = {"a": "1"}
        storage = MemoryLocalStorage(initial)
        storage.set_item("b", "2")
        assert "b" not in initial


class TestSQLiteLocalStorage:
    """Tests for SQLiteLocalStorage class."""

    def test_init_creates_database(self, tmp_path: Path):
        """Initialization creates the file and the kv table."""
        path = tmp_path / "nested" / "store.db"
        storage = SQLiteLocalStorage(path)
        assert path.exists()

        conn = sqlite3.connect(path)
        cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name='kv_entries'")
        assert cursor.fetchone() is not None
        conn.close()
        storage.close()

    def test_set_and_get(self, sqlite_storage):
        sqlite_storage.set_item("vis_gallery", "[]")
        assert sqlite_storage.get_item("vis_gallery") == "[]"

    def test_set_replaces(self, sqlite_storage):
        sqlite_storage.set_item("k", "one")
        sqlite_storage.set_item("k", "two")
        assert sqlite_storage.get_item("k") == "two"
        assert sqlite_storage.keys() == ["k"]

    def test_remove(self, sqlite_storage):
        sqlite_storage.set_item("k", "v")
        sqlite_storage.remove_item("k")
        assert sqlite_storage.get_item("k") is None

    def test_persists_across_instances(self, tmp_path: Path):
        path = tmp_path / "store.db"
        first = SQLiteLocalStorage(path)
        first.set_item("vis_contacts", '[{"id": "1"}]')
        first.close()

        second = SQLiteLocalStorage(path)
        assert second.get_item("vis_contacts") == '[{"id": "1"}]'
        second.close()

    def test_write_error_is_wrapped(self, sqlite_storage):
        """sqlite3 errors surface as LocalPersistenceError with the key attached."""
        broken = mock.MagicMock()
        broken.execute.side_effect = sqlite3.OperationalError("disk I/O error")
        with mock.patch.object(sqlite_storage, "_get_conn", return_value=broken):
            with pytest.raises(LocalPersistenceError) as exc_info:
                sqlite_storage.set_item("vis_admissions", "[]")
        assert exc_info.value.key == "vis_admissions"
        assert exc_info.value.operation == "write"
