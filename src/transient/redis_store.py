# src/transient/redis_store.py — v1
"""Redis-based transient store (TRANSIENT_BACKEND=redis).

Requires 'redis' package: pip install redis.
Entries are JSON strings; each category keeps a sorted set of its keys
scored by a global insertion counter, which gives the eviction order.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from gencache.cache.models import TransientEntry
from gencache.transient.base_transient_store import BaseTransientStore

logger = logging.getLogger(__name__)

_KEY_PREFIX = "gencache:transient:"
_SEQ_KEY = "gencache:transient:__seq__"
_CATEGORIES_KEY = "gencache:transient:__categories__"


def _entry_key(category: str, key: str) -> str:
    return f"{_KEY_PREFIX}{category}:{key}"


def _order_key(category: str) -> str:
    return f"{_KEY_PREFIX}{category}:__order__"


class RedisTransientStore(BaseTransientStore):
    """Redis-backed transient store for shared-host deployments."""

    def __init__(self, redis_url: str, **kwargs: Any) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        super().__init__(**kwargs)
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def _write(
        self, category: str, key: str, value: Any, created_at: float, expires_at: float | None
    ) -> None:
        entry = TransientEntry(
            category=category,
            key=key,
            value=value,
            created_at=created_at,
            expires_at=expires_at,
        )
        seq = self._client.incr(_SEQ_KEY)
        self._client.set(_entry_key(category, key), entry.model_dump_json())
        self._client.zadd(_order_key(category), {key: seq})
        self._client.sadd(_CATEGORIES_KEY, category)

    async def _read(self, category: str, key: str) -> TransientEntry | None:
        data = self._client.get(_entry_key(category, key))
        if data is None:
            return None
        try:
            return TransientEntry(**json.loads(data))
        except Exception as e:
            logger.warning("Failed to deserialize transient entry %s/%s: %s", category, key, e)
            return None

    async def _scan(self, category: str) -> list[TransientEntry]:
        entries: list[TransientEntry] = []
        stale: list[str] = []
        for key in self._client.zrange(_order_key(category), 0, -1):
            entry = await self._read(category, key)
            if entry is None:
                # Entry key gone or undecodable; drop it from the order index too.
                stale.append(key)
            else:
                entries.append(entry)
        if stale:
            await self._delete_many(category, stale)
            logger.warning("Dropped %d stale transient entries from %s", len(stale), category)
        return entries

    async def _delete_many(self, category: str, keys: list[str]) -> None:
        self._client.delete(*[_entry_key(category, k) for k in keys])
        self._client.zrem(_order_key(category), *keys)

    async def delete(self, category: str, key: str) -> None:
        await self._delete_many(category, [key])

    async def clear(self, category: str) -> None:
        keys = self._client.zrange(_order_key(category), 0, -1)
        if keys:
            self._client.delete(*[_entry_key(category, k) for k in keys])
        self._client.delete(_order_key(category))
        self._client.srem(_CATEGORIES_KEY, category)

    async def list_categories(self) -> list[str]:
        return sorted(self._client.smembers(_CATEGORIES_KEY))

    async def close(self) -> None:
        await super().close()
        self._client.close()
