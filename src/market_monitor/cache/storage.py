from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import TYPE_CHECKING

from market_monitor.exceptions import StorageQuotaExceededError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


class MemoryStorage:
    """Dict-backed storage. ``quota`` caps the number of distinct keys."""

    def __init__(self, quota: int | None = None) -> None:
        self._items: dict[str, str] = {}
        self._quota = quota

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota is not None and key not in self._items and len(self._items) >= self._quota:
            raise StorageQuotaExceededError(f"Storage quota of {self._quota} items exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class SqliteConnectionPool:
    """Thread-safe connection pool for SQLite."""

    def __init__(self, db_path: Path, max_connections: int = 5) -> None:
        self._db_path = db_path
        self._max_connections = max_connections
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=max_connections)
        self._schema_lock = threading.Lock()
        self._schema_initialized = False

    def _ensure_initialized(self, conn: sqlite3.Connection) -> None:
        if self._schema_initialized:
            return
        with self._schema_lock:
            if self._schema_initialized:
                return
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                "CREATE TABLE IF NOT EXISTS storage ("
                "  key TEXT PRIMARY KEY,"
                "  value TEXT NOT NULL"
                ")"
            )
            conn.commit()
            self._schema_initialized = True

    def _create_connection(self) -> sqlite3.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA busy_timeout=5000")
        self._ensure_initialized(conn)
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Acquire a connection from the pool, returning it when done."""
        try:
            conn = self._pool.get_nowait()
        except Empty:
            conn = self._create_connection()

        try:
            yield conn
        finally:
            try:
                self._pool.put_nowait(conn)
            except Exception:
                conn.close()


class SqliteStorage:
    """Persistent key-value storage in a single SQLite table."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._pool = SqliteConnectionPool(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get_item(self, key: str) -> str | None:
        with self._pool.connection() as conn:
            row = conn.execute("SELECT value FROM storage WHERE key = ?", (key,)).fetchone()
            return None if row is None else row[0]

    def set_item(self, key: str, value: str) -> None:
        with self._pool.connection() as conn:
            conn.execute("INSERT OR REPLACE INTO storage (key, value) VALUES (?, ?)", (key, value))
            conn.commit()

    def remove_item(self, key: str) -> None:
        with self._pool.connection() as conn:
            conn.execute("DELETE FROM storage WHERE key = ?", (key,))
            conn.commit()

    def keys(self) -> list[str]:
        with self._pool.connection() as conn:
            return [row[0] for row in conn.execute("SELECT key FROM storage ORDER BY key")]
