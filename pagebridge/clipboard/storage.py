"""SQLite backup store: last copied payload and the error log."""
from __future__ import annotations

import json
import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pagebridge.core.constants import MAX_ERROR_LOG_ENTRIES
from pagebridge.core.secure_io import secure_create_empty, secure_mkdir

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS error_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    code TEXT NOT NULL,
    technical_message TEXT NOT NULL,
    user_message TEXT NOT NULL,
    created_at REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


@dataclass
class ErrorLogEntry:
    """One recorded failure."""

    code: str
    technical_message: str
    user_message: str
    created_at: float


class BackupStorage:
    """Durable key-value store plus a bounded error log.

    Values are stored as JSON text, so anything json.dumps accepts can be
    saved. The error log keeps only the most recent entries.
    """

    def __init__(self, db_path: Path, max_errors: int = MAX_ERROR_LOG_ENTRIES) -> None:
        """Initialize storage.

        Args:
            db_path: Path to SQLite database file
            max_errors: Error log entries kept after each insert
        """
        self._db_path = db_path
        self._max_errors = max_errors
        self._conn: sqlite3.Connection | None = None
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        secure_mkdir(self._db_path.parent)
        secure_create_empty(self._db_path)

        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA_SQL)

        cur = self._conn.execute(
            "SELECT value FROM metadata WHERE key = 'schema_version'"
        )
        if cur.fetchone() is None:
            self._conn.execute(
                "INSERT INTO metadata (key, value) VALUES (?, ?)",
                ("schema_version", str(SCHEMA_VERSION)),
            )
            self._conn.commit()

    def get(self, key: str) -> Any | None:
        """Get a stored value, or None if the key is unknown or its value unreadable."""
        assert self._conn is not None
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt stored value for %r: %s", key, e)
            return None

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value under key, replacing any previous one."""
        assert self._conn is not None
        self._conn.execute(
            """
            INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            (key, json.dumps(value, ensure_ascii=False), time.time()),
        )
        self._conn.commit()

    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        assert self._conn is not None
        cur = self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()
        return cur.rowcount > 0

    def record_error(self, code: str, technical_message: str, user_message: str) -> None:
        """Append to the error log and drop entries beyond the retention limit."""
        assert self._conn is not None
        self._conn.execute(
            """
            INSERT INTO error_log (code, technical_message, user_message, created_at)
            VALUES (?, ?, ?, ?)
            """,
            (code, technical_message, user_message, time.time()),
        )
        self._conn.execute(
            """
            DELETE FROM error_log WHERE id NOT IN (
                SELECT id FROM error_log ORDER BY id DESC LIMIT ?
            )
            """,
            (self._max_errors,),
        )
        self._conn.commit()

    def recent_errors(self, limit: int | None = None) -> list[ErrorLogEntry]:
        """Most recent errors first."""
        assert self._conn is not None
        cur = self._conn.execute(
            "SELECT * FROM error_log ORDER BY id DESC LIMIT ?",
            (limit if limit is not None else self._max_errors,),
        )
        return [
            ErrorLogEntry(
                code=row["code"],
                technical_message=row["technical_message"],
                user_message=row["user_message"],
                created_at=row["created_at"],
            )
            for row in cur.fetchall()
        ]

    def clear_errors(self) -> int:
        """Empty the error log. Returns number of entries removed."""
        assert self._conn is not None
        cur = self._conn.execute("DELETE FROM error_log")
        self._conn.commit()
        return cur.rowcount

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
