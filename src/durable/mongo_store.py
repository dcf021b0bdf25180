# src/durable/mongo_store.py — v1
"""MongoDB-based durable store (DURABLE_BACKEND=mongodb).

Requires 'pymongo' package: pip install pymongo.
Shared across devices and users; one document per generated artifact in
the ``content_cache`` collection, with the entry id as ``_id``.
"""

from __future__ import annotations

import logging
from typing import Any

from gencache.cache.errors import DurableStoreUnavailableError
from gencache.cache.models import DurableEntry
from gencache.durable.base_durable_store import BaseDurableStore

logger = logging.getLogger(__name__)


class MongoDurableStore(BaseDurableStore):
    """MongoDB-backed durable store for multi-device deployments."""

    def __init__(
        self,
        mongo_url: str,
        database: str = "gencache",
        collection: str = "content_cache",
        server_selection_timeout_ms: int = 5000,
        **kwargs: Any,
    ) -> None:
        try:
            import pymongo
            from pymongo.errors import ConnectionFailure
        except ImportError as e:
            raise ImportError(
                "pymongo package required: pip install pymongo"
            ) from e

        super().__init__(**kwargs)
        self._client = pymongo.MongoClient(
            mongo_url, serverSelectionTimeoutMS=server_selection_timeout_ms
        )
        self._collection = self._client[database][collection]
        self._connection_errors: tuple[type[BaseException], ...] = (ConnectionFailure,)
        self._collection.create_index([("category", 1), ("prompt", 1)])
        self._collection.create_index("topic")

    async def _find_first(self, category: str, prompt: str) -> DurableEntry | None:
        doc = self._collection.find_one({"category": category, "prompt": prompt})
        if doc is None:
            return None
        return self._from_doc(doc)

    async def insert(self, entry: DurableEntry) -> DurableEntry:
        doc = entry.model_dump(exclude={"id"})
        doc["_id"] = entry.id
        try:
            self._collection.insert_one(doc)
        except self._connection_errors as e:
            raise DurableStoreUnavailableError(
                f"Document store unreachable: {type(e).__name__}"
            ) from e
        return entry

    async def increment_views(self, entry_id: str) -> None:
        self._collection.update_one({"_id": entry_id}, {"$inc": {"views": 1}})

    async def delete(self, entry_id: str) -> None:
        self._collection.delete_one({"_id": entry_id})

    async def find_by_topic(
        self, topic: str, category: str | None = None
    ) -> list[DurableEntry]:
        query: dict[str, Any] = {"topic": topic}
        if category is not None:
            query["category"] = category
        entries: list[DurableEntry] = []
        for doc in self._collection.find(query):
            entry = self._from_doc(doc)
            if entry is not None:
                entries.append(entry)
        return entries

    async def close(self) -> None:
        await super().close()
        self._client.close()

    @staticmethod
    def _from_doc(doc: dict[str, Any]) -> DurableEntry | None:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        try:
            return DurableEntry(**doc)
        except Exception as e:
            logger.warning("Failed to deserialize durable document %s: %s", doc["id"], e)
            return None
