# src/transient/sqlite_store.py — v1
"""SQLite-based transient store (TRANSIENT_BACKEND=sqlite, default).

Uses stdlib sqlite3, no external dependency. All categories share one table;
the autoincrement ``seq`` column is the insertion-order index used for
eviction. INSERT OR REPLACE gives a rewritten key a new, higher ``seq``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from gencache.cache.models import TransientEntry
from gencache.transient.base_transient_store import BaseTransientStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS transient_entries (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    category TEXT NOT NULL,
    key TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at REAL NOT NULL,
    expires_at REAL,
    UNIQUE (category, key)
);
CREATE INDEX IF NOT EXISTS idx_transient_category_seq
    ON transient_entries(category, seq);
"""


class SqliteTransientStore(BaseTransientStore):
    """SQLite-backed transient store, one file per device."""

    def __init__(self, db_path: Path | str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if str(db_path) == ":memory:":
            self._db_path = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            self._db_path = str(path)
        self._conn = sqlite3.connect(self._db_path)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def _write(
        self, category: str, key: str, value: Any, created_at: float, expires_at: float | None
    ) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO transient_entries
               (category, key, data, created_at, expires_at)
               VALUES (?, ?, ?, ?, ?)""",
            (category, key, json.dumps(value), created_at, expires_at),
        )
        self._conn.commit()

    async def _read(self, category: str, key: str) -> TransientEntry | None:
        cursor = self._conn.execute(
            """SELECT key, data, created_at, expires_at FROM transient_entries
               WHERE category = ? AND key = ?""",
            (category, key),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entry(category, row)

    async def _scan(self, category: str) -> list[TransientEntry]:
        cursor = self._conn.execute(
            """SELECT key, data, created_at, expires_at FROM transient_entries
               WHERE category = ? ORDER BY seq ASC""",
            (category,),
        )
        entries: list[TransientEntry] = []
        unreadable: list[str] = []
        for row in cursor.fetchall():
            entry = self._row_to_entry(category, row)
            if entry is None:
                unreadable.append(row[0])
            else:
                entries.append(entry)
        if unreadable:
            await self._delete_many(category, unreadable)
            logger.warning(
                "Dropped %d unreadable transient entries from %s", len(unreadable), category
            )
        return entries

    async def _delete_many(self, category: str, keys: list[str]) -> None:
        self._conn.executemany(
            "DELETE FROM transient_entries WHERE category = ? AND key = ?",
            [(category, k) for k in keys],
        )
        self._conn.commit()

    async def _delete_if_expired(self, category: str, key: str, now: float) -> None:
        self._conn.execute(
            """DELETE FROM transient_entries
               WHERE category = ? AND key = ? AND expires_at IS NOT NULL AND expires_at < ?""",
            (category, key, now),
        )
        self._conn.commit()

    async def delete(self, category: str, key: str) -> None:
        await self._delete_many(category, [key])

    async def clear(self, category: str) -> None:
        self._conn.execute(
            "DELETE FROM transient_entries WHERE category = ?", (category,)
        )
        self._conn.commit()

    async def list_categories(self) -> list[str]:
        cursor = self._conn.execute(
            "SELECT DISTINCT category FROM transient_entries ORDER BY category"
        )
        return [row[0] for row in cursor.fetchall()]

    async def close(self) -> None:
        await super().close()
        self._conn.close()

    @staticmethod
    def _row_to_entry(category: str, row: tuple) -> TransientEntry | None:
        key, data, created_at, expires_at = row
        try:
            value = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Unreadable transient entry %s/%s: %s", category, key, e)
            return None
        return TransientEntry(
            category=category,
            key=key,
            value=value,
            created_at=created_at,
            expires_at=expires_at,
        )
