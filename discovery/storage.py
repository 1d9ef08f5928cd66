"""
Durable key-value storage for the discovery engine.

The trend cache only needs ``get(key)`` and ``set(key, value)`` on strings;
``KeyValueStorage`` is that port. ``SQLiteStorage`` is the default adapter.

Schema
──────
table: kv_store
  key        TEXT PRIMARY KEY
  value      TEXT NOT NULL
  updated_at TEXT NOT NULL  (ISO-8601 UTC)
"""

from __future__ import annotations

import logging
import os
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(__file__).parent.parent / "data" / "discovery.db"


class KeyValueStorage(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


def _db_path() -> Path:
    """Return the database file path, honouring a DB_PATH env var if set."""
    env = os.getenv("DB_PATH")
    return Path(env) if env else DEFAULT_DB_PATH


class SQLiteStorage:
    """``KeyValueStorage`` backed by a single SQLite table.

    The table is created on first use, so calling ``init_db`` up front is
    optional. Errors from ``sqlite3`` propagate; callers that treat storage
    as a best-effort cache are expected to catch them.
    """

    def __init__(self, path: Optional[Path | str] = None) -> None:
        self._path = Path(path) if path else None
        # path whose table is known to exist
        self._initialised: Optional[Path] = None

    @property
    def path(self) -> Path:
        return self._path or _db_path()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connected sqlite3.Connection, creating the file/dir if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.path))
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the kv_store table if it doesn't exist yet."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
        self._initialised = self.path
        logger.info("Key-value store initialised at %s", self.path)

    def _ensure_table(self) -> None:
        if self._initialised != self.path:
            self.init_db()

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or None if absent."""
        self._ensure_table()
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Insert or overwrite *key*."""
        self._ensure_table()
        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = excluded.updated_at",
                (key, value, now),
            )
        logger.debug("Stored key=%r (%d bytes)", key, len(value))
