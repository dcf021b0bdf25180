# src/durable/sqlite_store.py — v1
"""SQLite-based durable store (DURABLE_BACKEND=sqlite, default).

Uses stdlib sqlite3. Suitable for single-host deployments; the document is
kept as JSON alongside indexed lookup columns.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from gencache.cache.models import DurableEntry
from gencache.durable.base_durable_store import BaseDurableStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS content_cache (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT NOT NULL UNIQUE,
    category TEXT NOT NULL,
    prompt TEXT NOT NULL,
    topic TEXT,
    data TEXT NOT NULL,
    views INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_content_lookup ON content_cache(category, prompt);
CREATE INDEX IF NOT EXISTS idx_content_topic ON content_cache(topic);
"""


class SqliteDurableStore(BaseDurableStore):
    """SQLite-backed durable store."""

    def __init__(self, db_path: Path | str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if str(db_path) == ":memory:":
            target = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)
        self._conn = sqlite3.connect(target)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def _find_first(self, category: str, prompt: str) -> DurableEntry | None:
        cursor = self._conn.execute(
            """SELECT data, views FROM content_cache
               WHERE category = ? AND prompt = ? LIMIT 1""",
            (category, prompt),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return self._row_to_entry(row)

    async def insert(self, entry: DurableEntry) -> DurableEntry:
        self._conn.execute(
            """INSERT INTO content_cache (id, category, prompt, topic, data, views)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                entry.id,
                entry.category,
                entry.prompt,
                entry.topic,
                entry.model_dump_json(exclude={"views"}),
                entry.views,
            ),
        )
        self._conn.commit()
        return entry

    async def increment_views(self, entry_id: str) -> None:
        self._conn.execute(
            "UPDATE content_cache SET views = views + 1 WHERE id = ?", (entry_id,)
        )
        self._conn.commit()

    async def delete(self, entry_id: str) -> None:
        self._conn.execute("DELETE FROM content_cache WHERE id = ?", (entry_id,))
        self._conn.commit()

    async def find_by_topic(
        self, topic: str, category: str | None = None
    ) -> list[DurableEntry]:
        if category is None:
            cursor = self._conn.execute(
                "SELECT data, views FROM content_cache WHERE topic = ? ORDER BY seq",
                (topic,),
            )
        else:
            cursor = self._conn.execute(
                """SELECT data, views FROM content_cache
                   WHERE topic = ? AND category = ? ORDER BY seq""",
                (topic, category),
            )
        entries: list[DurableEntry] = []
        for row in cursor.fetchall():
            entry = self._row_to_entry(row)
            if entry is not None:
                entries.append(entry)
        return entries

    async def close(self) -> None:
        await super().close()
        self._conn.close()

    @staticmethod
    def _row_to_entry(row: tuple) -> DurableEntry | None:
        data, views = row
        try:
            return DurableEntry(**json.loads(data), views=views)
        except Exception as e:
            logger.warning("Failed to deserialize durable entry: %s", e)
            return None
