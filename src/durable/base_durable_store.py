# src/durable/base_durable_store.py — v1
"""Abstract shared durable store.

System of record for generated content: entries never expire. Lookup is an
exact match on (category, prompt); topic is metadata only. Inserts do not
check for duplicates, so concurrent misses may both land and which one a
later lookup returns is unspecified.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from gencache.cache.models import DurableEntry, TopicStats
from gencache.engine.tasks import TaskSupervisor


class BaseDurableStore(ABC):
    """Unified interface for durable tier backends."""

    def __init__(self, tasks: TaskSupervisor | None = None) -> None:
        self.tasks = tasks or TaskSupervisor()

    async def lookup(self, category: str, prompt: str) -> DurableEntry | None:
        """First entry matching (category, prompt).

        A hit schedules a view increment in the background. Driver errors
        propagate: a failed query is not a miss.
        """
        entry = await self._find_first(category, prompt)
        if entry is not None:
            self.tasks.spawn(
                self.increment_views(entry.id),
                name=f"durable-views:{category}",
            )
        return entry

    async def topic_stats(self, topic: str) -> TopicStats:
        """Item count, total views and per-category counts for a topic."""
        items = await self.find_by_topic(topic)
        by_category: dict[str, int] = {}
        for item in items:
            by_category[item.category] = by_category.get(item.category, 0) + 1
        return TopicStats(
            total_items=len(items),
            total_views=sum(item.views for item in items),
            by_category=by_category,
        )

    @abstractmethod
    async def _find_first(self, category: str, prompt: str) -> DurableEntry | None:
        """Equality query on (category, prompt) with limit 1."""

    @abstractmethod
    async def insert(self, entry: DurableEntry) -> DurableEntry:
        """Append an entry without a duplicate check."""

    @abstractmethod
    async def increment_views(self, entry_id: str) -> None:
        """Atomically add one to the entry's view counter."""

    @abstractmethod
    async def delete(self, entry_id: str) -> None:
        """Remove one entry (explicit invalidation)."""

    @abstractmethod
    async def find_by_topic(
        self, topic: str, category: str | None = None
    ) -> list[DurableEntry]:
        """All entries recorded under a topic, optionally for one category."""

    async def close(self) -> None:
        """Drain background work and release backend resources."""
        await self.tasks.drain()
