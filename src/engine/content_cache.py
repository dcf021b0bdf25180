# src/engine/content_cache.py — v1
"""Composition root for the generative-content cache.

Usage:
    async with ContentCache(load_settings()) as cache:
        text = await cache.get_or_generate(
            "explanation", "Napoleon", "Explain Napoleon's rise to power", generate
        )

The application constructs one ContentCache, calls ``init()`` once and
passes the instance to consumers. Nothing is created at import time.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from gencache.blob.base_blob_store import BaseBlobStore
from gencache.blob.blob_factory import create_blob_store
from gencache.blob.payload import PayloadFetcher
from gencache.cache.errors import CacheNotInitializedError
from gencache.cache.keys import (
    OFFLINE_ACTIONS_KEY,
    blob_path,
    journey_key,
    lookup_key,
    normalize_params,
    owner_prefix,
    progress_key,
    scene_key,
    tts_key,
)
from gencache.cache.models import (
    CacheResult,
    MediaOptions,
    OfflineAction,
    RequestState,
    SceneRequest,
    StoreConfig,
    TopicStats,
    TTSRequest,
)
from gencache.config.categories import OFFLINE_ACTIONS_MAX_AGE, OWNER_SCOPED_CATEGORIES
from gencache.config.settings import Settings
from gencache.durable.base_durable_store import BaseDurableStore
from gencache.durable.durable_factory import create_durable_store
from gencache.engine.capability import Capabilities, probe_blob_persistence
from gencache.engine.degradation import DegradationPolicy
from gencache.engine.orchestrator import CacheOrchestrator, GeneratorFn
from gencache.engine.tasks import TaskSupervisor
from gencache.transient.base_transient_store import BaseTransientStore
from gencache.transient.transient_factory import create_transient_store

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Results worth keeping in the transient tier. Degraded artifacts are never cached.
_PROMOTABLE = (RequestState.HIT, RequestState.PERSISTED)


class ContentCache:
    """Transient accelerator in front of the durable/blob orchestrator."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transient: BaseTransientStore | None = None,
        durable: BaseDurableStore | None = None,
        blob: BaseBlobStore | None = None,
        fetcher: PayloadFetcher | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.tasks = TaskSupervisor()
        self._transient = transient
        self._durable = durable
        self._blob = blob
        self._fetcher = fetcher
        self._orchestrator: CacheOrchestrator | None = None
        self._closed = False
        self.capabilities: Capabilities | None = None

    # --- Lifecycle ---

    @property
    def initialized(self) -> bool:
        return self._orchestrator is not None

    async def init(self) -> None:
        """Create missing stores, probe blob persistence, build the orchestrator.

        Raises:
            CacheNotInitializedError: If the cache was already closed.
        """
        if self._closed:
            raise CacheNotInitializedError("ContentCache was closed; create a new instance")
        if self.initialized:
            return
        created: list[str] = []
        if self._transient is None:
            self._transient = create_transient_store(self.settings, self.tasks)
            created.append("_transient")
        if self._durable is None:
            self._durable = create_durable_store(self.settings, self.tasks)
            created.append("_durable")
        if self._blob is None:
            self._blob = create_blob_store(self.settings)
            created.append("_blob")
        if self._fetcher is None:
            self._fetcher = PayloadFetcher(
                timeout=self.settings.media_fetch_timeout,
                api_key=self.settings.media_fetch_api_key,
            )
            created.append("_fetcher")

        try:
            self.capabilities = await probe_blob_persistence(
                self._blob, self.settings.blob_persistence
            )
        except Exception:
            logger.error("Blob persistence probe failed; releasing stores created by init()")
            for attr in created:
                await getattr(self, attr).close()
                setattr(self, attr, None)
            raise

        self._orchestrator = CacheOrchestrator(
            durable=self._durable,
            blob=self._blob,
            fetcher=self._fetcher,
            policy=DegradationPolicy(self.capabilities),
        )
        logger.info(
            "Content cache ready (blob persistence: %s)",
            "on" if self.capabilities.blob_persistence else "off",
        )

    async def close(self) -> None:
        """Finish background work and release every store. The cache cannot be reopened."""
        if not self.initialized:
            return
        await self.tasks.close()
        await self._transient.close()
        await self._durable.close()
        await self._blob.close()
        await self._fetcher.close()
        self._orchestrator = None
        self._closed = True
        logger.info("Content cache closed")

    async def __aenter__(self) -> ContentCache:
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _require_init(self) -> CacheOrchestrator:
        if self._orchestrator is None:
            raise CacheNotInitializedError("ContentCache.init() has not been awaited")
        return self._orchestrator

    @property
    def transient(self) -> BaseTransientStore:
        self._require_init()
        return self._transient

    @property
    def durable(self) -> BaseDurableStore:
        self._require_init()
        return self._durable

    @property
    def blob(self) -> BaseBlobStore:
        self._require_init()
        return self._blob

    # --- Generated content ---

    async def get_or_generate(
        self,
        category: str,
        topic: str,
        prompt: str,
        generator: GeneratorFn[T],
        media: MediaOptions | None = None,
        *,
        creator_id: str | None = None,
        use_transient: bool = True,
    ) -> T | str:
        """Cached artifact, checking the transient tier before the durable one."""
        result = await self.resolve(
            category, topic, prompt, generator, media,
            creator_id=creator_id, use_transient=use_transient,
        )
        return result.value

    async def resolve(
        self,
        category: str,
        topic: str,
        prompt: str,
        generator: GeneratorFn[T],
        media: MediaOptions | None = None,
        *,
        creator_id: str | None = None,
        use_transient: bool = True,
    ) -> CacheResult:
        orchestrator = self._require_init()
        key = lookup_key(category, prompt)

        if use_transient:
            cached = await self._transient.get(category, key)
            if cached is not None:
                logger.debug("Transient HIT for %s/%s", category, key)
                return CacheResult(value=cached, state=RequestState.HIT, tier="transient", key=key)

        result = await orchestrator.resolve(category, topic, prompt, generator, media, creator_id)

        if use_transient and result.state in _PROMOTABLE:
            await self._promote(category, key, result.value)
        return result

    async def _promote(self, category: str, key: str, value: Any) -> None:
        try:
            await self._transient.put(category, key, value)
        except (TypeError, ValueError) as e:
            # Value not serializable for the transient backend; durable copy stands.
            logger.warning("Skipping transient copy of %s/%s: %s", category, key, e)

    async def get_tts(
        self,
        request: TTSRequest,
        generator: GeneratorFn[str],
        *,
        topic: str = "",
        creator_id: str | None = None,
        mime_type: str = "audio/mpeg",
    ) -> str:
        """Narrated audio URL (or raw base64 when degraded) for a TTS request."""
        key = tts_key(request)
        media = MediaOptions(
            data_type="base64", mime_type=mime_type, path=blob_path("tts", key, mime_type)
        )
        return await self.get_or_generate(
            "tts", topic, normalize_params(request), generator, media,
            creator_id=creator_id,
        )

    async def get_scene(
        self,
        request: SceneRequest,
        generator: GeneratorFn[str],
        *,
        topic: str = "",
        creator_id: str | None = None,
        mime_type: str = "video/mp4",
    ) -> str:
        """Scene video URL for a scene request; the generator returns a remote URL."""
        key = scene_key(request)
        media = MediaOptions(
            data_type="url", mime_type=mime_type, path=blob_path("scene", key, mime_type)
        )
        return await self.get_or_generate(
            "scene", topic, normalize_params(request), generator, media,
            creator_id=creator_id,
        )

    async def topic_stats(self, topic: str) -> TopicStats:
        return await self.durable.topic_stats(topic)

    # --- Application state in the transient tier ---

    async def get_cached(self, category: str, key: str) -> Any | None:
        return await self.transient.get(category, key)

    async def put_cached(
        self, category: str, key: str, value: Any, config: StoreConfig | None = None
    ) -> None:
        await self.transient.put(category, key, value, config)

    async def invalidate_owner(self, owner_id: str) -> int:
        """Drop every owner-scoped transient entry of one user."""
        removed = await self.transient.invalidate_by_prefix(
            owner_prefix(owner_id), categories=OWNER_SCOPED_CATEGORIES
        )
        logger.info("Invalidated %d transient entries for owner %s", removed, owner_id)
        return removed

    async def invalidate_journey(self, owner_id: str, journey_id: str) -> None:
        """Drop the cached snapshot and progress of one journey."""
        await self.transient.delete("journeys", journey_key(owner_id, journey_id))
        await self.transient.delete("progress", progress_key(owner_id, journey_id))

    # --- Offline actions ---

    async def store_offline_action(self, action: OfflineAction) -> None:
        """Queue an action for sync; the queue lives in ``analytics`` for 7 days."""
        queue = await self.transient.get("analytics", OFFLINE_ACTIONS_KEY) or []
        queue.append(action.model_dump(mode="json"))
        config = self.transient.config_for("analytics").model_copy(
            update={"max_age": OFFLINE_ACTIONS_MAX_AGE}
        )
        await self.transient.put("analytics", OFFLINE_ACTIONS_KEY, queue, config)

    async def get_offline_actions(self) -> list[OfflineAction]:
        queue = await self.transient.get("analytics", OFFLINE_ACTIONS_KEY) or []
        return [OfflineAction(**item) for item in queue]

    async def clear_offline_actions(self) -> None:
        await self.transient.delete("analytics", OFFLINE_ACTIONS_KEY)
