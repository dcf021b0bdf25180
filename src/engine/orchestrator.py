# src/engine/orchestrator.py — v1
"""get_or_generate: durable lookup, single generation on miss, tier-aware persistence.

Per request: MISS → GENERATING → PERSISTED | DEGRADED | FAILED.

- A durable hit returns the stored content, or the blob URL for media.
- On a miss the generator runs exactly once. Nothing here coordinates
  concurrent callers racing the same key; both may generate and insert.
- Generator exceptions and durable lookup exceptions propagate unchanged.
  A failed lookup is never treated as a miss.
- Persistence failures are degraded (artifact returned uncached) when
  environment-limited and raised as PersistenceFailedError otherwise.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import uuid4

from gencache.blob.base_blob_store import BaseBlobStore
from gencache.blob.payload import PayloadFetcher, is_binary_capable
from gencache.cache.errors import PersistenceFailedError
from gencache.cache.keys import blob_path, lookup_key
from gencache.cache.models import (
    BlobReference,
    CacheResult,
    DurableEntry,
    MediaOptions,
    RequestState,
)
from gencache.durable.base_durable_store import BaseDurableStore
from gencache.engine.degradation import DegradationPolicy
from gencache.logging.context import reset_context, set_request_context

logger = logging.getLogger(__name__)

T = TypeVar("T")
GeneratorFn = Callable[[], Awaitable[T]]


def _is_usable(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


class CacheOrchestrator:
    """Composes the durable and blob tiers around a caller's generator."""

    def __init__(
        self,
        durable: BaseDurableStore,
        blob: BaseBlobStore,
        fetcher: PayloadFetcher,
        policy: DegradationPolicy,
    ) -> None:
        self._durable = durable
        self._blob = blob
        self._fetcher = fetcher
        self._policy = policy

    async def get_or_generate(
        self,
        category: str,
        topic: str,
        prompt: str,
        generator: GeneratorFn[T],
        media: MediaOptions | None = None,
        creator_id: str | None = None,
    ) -> T | str:
        """Cached artifact for (category, prompt), generating it on a miss."""
        result = await self.resolve(category, topic, prompt, generator, media, creator_id)
        return result.value

    async def resolve(
        self,
        category: str,
        topic: str,
        prompt: str,
        generator: GeneratorFn[T],
        media: MediaOptions | None = None,
        creator_id: str | None = None,
    ) -> CacheResult:
        """Like get_or_generate, but also reports state and source tier."""
        key = lookup_key(category, prompt)
        tokens = set_request_context(uuid4().hex[:12], category, key)
        try:
            entry = await self._durable.lookup(category, prompt)
            if entry is not None:
                value = entry.payload if media is not None else entry.content
                if _is_usable(value):
                    logger.info("Cache HIT for %s, topic=%r", category, topic)
                    return CacheResult(value=value, state=RequestState.HIT, tier="durable", key=key)
                logger.warning(
                    "Cached %s entry %s has no usable payload; regenerating", category, entry.id
                )

            logger.info("Cache MISS for %s, topic=%r; generating", category, topic)
            generated = await generator()

            draft = DurableEntry(
                key=key,
                category=category,
                topic=topic,
                prompt=prompt,
                creator_id=creator_id,
            )
            if media is None:
                return await self._persist_content(draft, generated)
            return await self._persist_media(draft, generated, media)
        finally:
            reset_context(tokens)

    async def _persist_content(self, draft: DurableEntry, generated: Any) -> CacheResult:
        entry = draft.model_copy(update={"content": generated})
        try:
            await self._durable.insert(entry)
        except Exception as e:
            if self._policy.is_environment_limited(e):
                return self._degraded(draft, generated, e)
            raise PersistenceFailedError(
                f"Could not persist generated {draft.category} content"
            ) from e
        logger.info("Persisted generated %s content", draft.category)
        return CacheResult(
            value=generated, state=RequestState.PERSISTED, tier="generated", key=draft.key
        )

    async def _persist_media(
        self, draft: DurableEntry, generated: Any, media: MediaOptions
    ) -> CacheResult:
        if not is_binary_capable(generated, media):
            logger.warning(
                "Generated %s payload is not storable as %s; returning it uncached",
                draft.category, media.data_type,
            )
            return CacheResult(
                value=generated, state=RequestState.DEGRADED, tier="generated", key=draft.key
            )

        if not self._policy.persistence_available:
            logger.warning(
                "Blob persistence unavailable (%s); returning %s uncached",
                self._policy.reason, draft.category,
            )
            return CacheResult(
                value=generated, state=RequestState.DEGRADED, tier="generated", key=draft.key
            )

        path = media.path or blob_path(draft.category, draft.key, media.mime_type)
        try:
            data = await self._fetcher.materialize(generated, media)
            url = await self._blob.put(path, data, media.mime_type)
            entry = draft.model_copy(
                update={"blob": BlobReference(key=path, url=url, mime_type=media.mime_type)}
            )
            await self._durable.insert(entry)
        except Exception as e:
            if self._policy.is_environment_limited(e):
                return self._degraded(draft, generated, e)
            raise PersistenceFailedError(
                f"Could not persist generated {draft.category} media"
            ) from e

        logger.info("Persisted generated %s media at %s", draft.category, path)
        return CacheResult(value=url, state=RequestState.PERSISTED, tier="generated", key=draft.key)

    @staticmethod
    def _degraded(draft: DurableEntry, generated: Any, exc: BaseException) -> CacheResult:
        logger.warning(
            "Persistence limited by environment (%s); returning %s uncached",
            exc, draft.category,
        )
        return CacheResult(
            value=generated, state=RequestState.DEGRADED, tier="generated", key=draft.key
        )
