"""
Local durable key-value storage.

String keys map to string values, mirroring browser localStorage. The SQLite
backend uses thread-local connections and WAL mode so the Streamlit script
threads of one server can share a file safely.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path
from typing import Iterator, Optional, Protocol

from vis_site.exceptions import LocalPersistenceError


class LocalStorage(Protocol):
    """Minimal localStorage-like interface."""

    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryLocalStorage:
    """Dict-backed storage for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)


class SQLiteLocalStorage:
    """
    SQLite-backed key-value storage.

    Example:
        storage = SQLiteLocalStorage(Path("data/local_storage.db"))
        storage.set_item("vis_gallery", "[]")
        raw = storage.get_item("vis_gallery")
    """

    def __init__(self, path: Path):
        """
        Initialize the storage.

        Args:
            path: Path to SQLite database file (will be created if needed)
        """
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalPersistenceError(
                "Failed to create storage directory", operation="init", path=str(self.path.parent)
            ) from e
        self._local = threading.local()
        self._init_db()

    def _get_conn(self) -> sqlite3.Connection:
        """Get thread-local SQLite connection."""
        if not hasattr(self._local, "conn"):
            self._local.conn = sqlite3.connect(
                str(self.path),
                check_same_thread=False,
                timeout=10.0,
            )
            self._local.conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn.execute("PRAGMA busy_timeout=10000")
            self._local.conn.execute("PRAGMA synchronous=NORMAL")
        return self._local.conn

    def _init_db(self) -> None:
        try:
            conn = self._get_conn()
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise LocalPersistenceError("Failed to initialize storage", operation="init", path=str(self.path)) from e

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored string or None when the key is absent."""
        try:
            row = self._get_conn().execute("SELECT value FROM kv_entries WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise LocalPersistenceError("Failed to read key", operation="read", key=key, path=str(self.path)) from e
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        """Store `value` under `key`, replacing any previous value."""
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv_entries (key, value, updated_at) VALUES (?, ?, ?)",
                (key, str(value), time.time()),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise LocalPersistenceError("Failed to write key", operation="write", key=key, path=str(self.path)) from e

    def remove_item(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise LocalPersistenceError("Failed to remove key", operation="delete", key=key, path=str(self.path)) from e

    def keys(self) -> list[str]:
        try:
            rows = self._get_conn().execute("SELECT key FROM kv_entries ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise LocalPersistenceError("Failed to list keys", operation="keys", path=str(self.path)) from e
        return [row[0] for row in rows]

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            del self._local.conn
