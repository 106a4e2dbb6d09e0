"""
Smart Calendar — Key-Value Database.

The local mirror of the organizer state: every collection is stored whole
under a string key, overwritten on every mutation, read once at startup.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path

from smartcal.ports.storage_port import StorageError

logger = logging.getLogger(__name__)


class KeyValueDB:
    """SQLite-backed implementation of KeyValuePort."""

    def __init__(self, db_path: str | None = None) -> None:
        if db_path is None:
            from smartcal.config import settings
            db_path = settings.DATABASE_PATH

        self._db_path = db_path
        # A ":memory:" database only lives as long as its connection
        self._shared_conn: sqlite3.Connection | None = None
        if db_path == ":memory:":
            self._shared_conn = sqlite3.connect(db_path)
            self._shared_conn.row_factory = sqlite3.Row
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        if self._shared_conn is not None:
            return self._shared_conn
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the kv table if it doesn't exist."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key         TEXT PRIMARY KEY,
                    value       TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                )
            """)
        logger.debug("Key-value table initialized at %s", self._db_path)

    def get(self, key: str) -> str | None:
        """Fetch the raw value stored under key, or None."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT value FROM kv WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read '{key}': {exc}") from exc
        if row is None:
            return None
        return row["value"]

    def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under key."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, value, datetime.now().isoformat()),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write '{key}': {exc}") from exc
        logger.debug("Stored %d chars under '%s'", len(value), key)

    def delete(self, key: str) -> None:
        """Remove key; a missing key is not an error."""
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to delete '{key}': {exc}") from exc

