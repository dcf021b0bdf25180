# src/transient/base_transient_store.py — v1
"""Abstract per-device transient store.

Category partitions with lazy TTL expiry and capacity eviction by insertion
order. Eviction recency is write time, not last access: an entry read often
but written once can still be evicted.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from gencache.cache.models import StoreConfig
from gencache.config.categories import DEFAULT_CONFIG
from gencache.engine.tasks import TaskSupervisor


class BaseTransientStore(ABC):
    """Unified interface for transient tier backends."""

    def __init__(
        self,
        categories: dict[str, StoreConfig] | None = None,
        tasks: TaskSupervisor | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._categories = dict(categories or {})
        self.tasks = tasks or TaskSupervisor()
        self._clock = clock

    def config_for(self, category: str) -> StoreConfig:
        return self._categories.get(category, DEFAULT_CONFIG)

    async def put(
        self,
        category: str,
        key: str,
        value: Any,
        config: StoreConfig | None = None,
    ) -> None:
        """Store ``value`` and schedule cleanup of the category afterward."""
        cfg = config or self.config_for(category)
        now = self._clock()
        await self._write(category, key, value, now, cfg.expires_at(now))
        self.tasks.spawn(
            self.cleanup(category, cfg.max_entries),
            name=f"transient-cleanup:{category}",
        )

    async def get(self, category: str, key: str) -> Any | None:
        """Return the stored value, or None if missing or expired."""
        entry = await self._read(category, key)
        if entry is None:
            return None
        now = self._clock()
        if entry.is_expired(now):
            self.tasks.spawn(
                self._delete_if_expired(category, key, now),
                name=f"transient-expire:{category}",
            )
            return None
        return entry.value

    async def cleanup(self, category: str, max_entries: int | None = None) -> int:
        """Drop expired entries, then keep only the newest ``max_entries``.

        Returns:
            Number of entries removed.
        """
        limit = max_entries or self.config_for(category).max_entries
        now = self._clock()
        entries = await self._scan(category)  # oldest first

        expired = [e.key for e in entries if e.is_expired(now)]
        valid = [e.key for e in entries if not e.is_expired(now)]
        overflow = valid[: max(0, len(valid) - limit)]

        doomed = expired + overflow
        if doomed:
            await self._delete_many(category, doomed)
        return len(doomed)

    async def list_keys(self, category: str) -> list[str]:
        """Keys of a category in insertion order, oldest first."""
        return [e.key for e in await self._scan(category)]

    async def invalidate_by_prefix(
        self, prefix: str, categories: list[str] | None = None
    ) -> int:
        """Delete every key starting with ``prefix`` across categories.

        Returns:
            Number of entries removed.
        """
        removed = 0
        for category in categories or await self.list_categories():
            keys = [k for k in await self.list_keys(category) if k.startswith(prefix)]
            if keys:
                await self._delete_many(category, keys)
                removed += len(keys)
        return removed

    async def _delete_if_expired(self, category: str, key: str, now: float) -> None:
        """Remove an entry only if it is still expired at ``now``.

        Runs after ``get`` returned; a put in between must survive.
        """
        entry = await self._read(category, key)
        if entry is not None and entry.is_expired(now):
            await self._delete_many(category, [key])

    @abstractmethod
    async def _write(
        self, category: str, key: str, value: Any, created_at: float, expires_at: float | None
    ) -> None:
        """Upsert an entry; a rewritten key becomes the most recent."""

    @abstractmethod
    async def _read(self, category: str, key: str):
        """Return the TransientEntry or None, without expiry checks."""

    @abstractmethod
    async def _scan(self, category: str) -> list:
        """All TransientEntry records of a category, oldest insert first.

        Records that cannot be decoded are deleted rather than skipped.
        """

    @abstractmethod
    async def _delete_many(self, category: str, keys: list[str]) -> None:
        """Remove the given keys from a category."""

    @abstractmethod
    async def delete(self, category: str, key: str) -> None:
        """Remove one entry."""

    @abstractmethod
    async def clear(self, category: str) -> None:
        """Remove every entry of a category."""

    @abstractmethod
    async def list_categories(self) -> list[str]:
        """Categories currently holding at least one entry."""

    async def close(self) -> None:
        """Drain background work and release backend resources."""
        await self.tasks.drain()
