# tests/unit/engine/test_unit_orchestrator.py — v1
"""Tests for engine/orchestrator.py — lookup, generation and persistence outcomes."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from gencache.blob.payload import PayloadFetcher
from gencache.cache.errors import (
    BlobStoreUnavailableError,
    DurableStoreUnavailableError,
    PersistenceFailedError,
)
from gencache.cache.keys import lookup_key
from gencache.cache.models import DurableEntry, MediaOptions, RequestState
from gencache.engine.capability import Capabilities
from gencache.engine.degradation import DegradationPolicy
from gencache.engine.orchestrator import CacheOrchestrator
from gencache.logging.context import get_context

PROMPT = "Explain Napoleon's rise to power"
IMAGE = MediaOptions(data_type="base64", mime_type="image/png")
SCENE = MediaOptions(data_type="url", mime_type="video/mp4")


def _policy(available: bool = True) -> DegradationPolicy:
    return DegradationPolicy(Capabilities(blob_persistence=available, reason="test"))


class TestTextContent:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, orchestrator, generator):
        first = await orchestrator.resolve("explanation", "Napoleon", PROMPT, generator)
        second = await orchestrator.resolve("explanation", "Napoleon", PROMPT, generator)

        assert first.state == RequestState.PERSISTED
        assert first.tier == "generated"
        assert second.state == RequestState.HIT
        assert second.tier == "durable"
        assert second.value == first.value
        assert first.key == lookup_key("explanation", PROMPT)
        generator.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_idempotent_read_ignores_new_generator_output(self, orchestrator):
        gen = AsyncMock(side_effect=["first answer", "second answer"])
        first = await orchestrator.get_or_generate("explanation", "Napoleon", PROMPT, gen)
        second = await orchestrator.get_or_generate("explanation", "Napoleon", PROMPT, gen)
        assert first == second == "first answer"
        gen.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_or_generate_returns_value(self, orchestrator, generator):
        value = await orchestrator.get_or_generate("explanation", "Napoleon", PROMPT, generator)
        assert value == "Napoleon rose through the army."

    @pytest.mark.asyncio
    async def test_topic_does_not_split_cache(self, orchestrator, generator):
        await orchestrator.resolve("explanation", "Napoleon", PROMPT, generator)
        result = await orchestrator.resolve("explanation", "Bonaparte", PROMPT, generator)
        assert result.state == RequestState.HIT
        generator.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_structured_content(self, orchestrator):
        quiz = {"questions": [{"q": "When?", "a": "1799"}]}
        gen = AsyncMock(return_value=quiz)
        await orchestrator.resolve("quiz", "Napoleon", "quiz me", gen)
        result = await orchestrator.resolve("quiz", "Napoleon", "quiz me", gen)
        assert result.value == quiz

    @pytest.mark.asyncio
    async def test_entry_records_creator(self, orchestrator, durable_store, generator):
        await orchestrator.resolve("explanation", "Napoleon", PROMPT, generator, creator_id="u1")
        [entry] = await durable_store.find_by_topic("Napoleon")
        assert entry.creator_id == "u1"
        assert entry.key == lookup_key("explanation", PROMPT)

    @pytest.mark.asyncio
    async def test_unusable_cached_content_regenerated(self, orchestrator, durable_store, generator):
        await durable_store.insert(
            DurableEntry(key="k", category="explanation", prompt=PROMPT, content="   ")
        )
        result = await orchestrator.resolve("explanation", "Napoleon", PROMPT, generator)
        assert result.state == RequestState.PERSISTED
        generator.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_context_reset_after_request(self, orchestrator, generator):
        await orchestrator.resolve("explanation", "Napoleon", PROMPT, generator)
        assert get_context().request_id is None


class TestFailures:
    @pytest.mark.asyncio
    async def test_generator_error_propagates(self, orchestrator, durable_store):
        gen = AsyncMock(side_effect=RuntimeError("model overloaded"))
        with pytest.raises(RuntimeError, match="model overloaded"):
            await orchestrator.resolve("explanation", "Napoleon", PROMPT, gen)
        assert await durable_store.find_by_topic("Napoleon") == []

    @pytest.mark.asyncio
    async def test_lookup_error_propagates_without_generating(self, blob_store, fetcher, generator):
        durable = AsyncMock()
        durable.lookup.side_effect = ConnectionError("document store down")
        orch = CacheOrchestrator(durable, blob_store, fetcher, _policy())
        with pytest.raises(ConnectionError):
            await orch.resolve("explanation", "Napoleon", PROMPT, generator)
        generator.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_insert_failure_raises_persistence_failed(self, blob_store, fetcher, generator):
        durable = AsyncMock()
        durable.lookup.return_value = None
        durable.insert.side_effect = RuntimeError("duplicate key")
        orch = CacheOrchestrator(durable, blob_store, fetcher, _policy())
        with pytest.raises(PersistenceFailedError) as exc_info:
            await orch.resolve("explanation", "Napoleon", PROMPT, generator)
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        generator.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_insert_unreachable_degrades(self, blob_store, fetcher, generator):
        durable = AsyncMock()
        durable.lookup.return_value = None
        durable.insert.side_effect = DurableStoreUnavailableError("unreachable")
        orch = CacheOrchestrator(durable, blob_store, fetcher, _policy())
        result = await orch.resolve("explanation", "Napoleon", PROMPT, generator)
        assert result.state == RequestState.DEGRADED
        assert result.value == "Napoleon rose through the army."


class TestMedia:
    @pytest.mark.asyncio
    async def test_base64_persisted_to_blob(
        self, orchestrator, durable_store, tmp_path, sample_base64, sample_bytes
    ):
        gen = AsyncMock(return_value=sample_base64)
        first = await orchestrator.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        key = lookup_key("image", "portrait")

        assert first.state == RequestState.PERSISTED
        assert first.value == f"https://cdn.test/image/{key}.png"
        assert (tmp_path / "blobs" / "image" / f"{key}.png").read_bytes() == sample_bytes
        [entry] = await durable_store.find_by_topic("Napoleon")
        assert entry.blob.key == f"image/{key}.png"
        assert entry.content is None

        second = await orchestrator.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        assert second.state == RequestState.HIT
        assert second.value == first.value
        gen.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_explicit_path(self, orchestrator, sample_base64):
        media = IMAGE.model_copy(update={"path": "custom/portrait.png"})
        result = await orchestrator.resolve(
            "image", "Napoleon", "portrait", AsyncMock(return_value=sample_base64), media
        )
        assert result.value == "https://cdn.test/custom/portrait.png"

    @pytest.mark.asyncio
    async def test_remote_url_downloaded(self, orchestrator, tmp_path):
        gen = AsyncMock(return_value="https://provider.test/scene.mp4")
        result = await orchestrator.resolve("scene", "castle", "a castle at dusk", gen, SCENE)
        key = lookup_key("scene", "a castle at dusk")
        assert result.state == RequestState.PERSISTED
        assert (tmp_path / "blobs" / "scene" / f"{key}.mp4").read_bytes() == b"video-bytes"

    @pytest.mark.asyncio
    async def test_raw_bytes(self, orchestrator, sample_bytes):
        media = MediaOptions(data_type="bytes", mime_type="image/png")
        result = await orchestrator.resolve(
            "image", "Napoleon", "bytes", AsyncMock(return_value=sample_bytes), media
        )
        assert result.state == RequestState.PERSISTED

    @pytest.mark.asyncio
    async def test_invalid_base64_returned_uncached(self, orchestrator, durable_store):
        gen = AsyncMock(return_value="I could not draw that, sorry!")
        first = await orchestrator.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        second = await orchestrator.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        assert first.state == RequestState.DEGRADED
        assert first.value == "I could not draw that, sorry!"
        assert second.state == RequestState.DEGRADED
        assert gen.await_count == 2
        assert await durable_store.find_by_topic("Napoleon") == []

    @pytest.mark.asyncio
    async def test_persistence_unavailable_regenerates_every_time(
        self, durable_store, blob_store, fetcher, tmp_path, sample_base64
    ):
        orch = CacheOrchestrator(durable_store, blob_store, fetcher, _policy(available=False))
        gen = AsyncMock(return_value=sample_base64)
        first = await orch.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        second = await orch.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        assert first.state == second.state == RequestState.DEGRADED
        assert first.value == sample_base64
        assert gen.await_count == 2
        assert not (tmp_path / "blobs" / "image").exists()

    @pytest.mark.asyncio
    async def test_blob_unavailable_degrades(self, durable_store, fetcher, sample_base64):
        blob = AsyncMock()
        blob.put.side_effect = BlobStoreUnavailableError("network restricted")
        orch = CacheOrchestrator(durable_store, blob, fetcher, _policy())
        gen = AsyncMock(return_value=sample_base64)
        result = await orch.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        assert result.state == RequestState.DEGRADED
        assert result.value == sample_base64
        assert await durable_store.find_by_topic("Napoleon") == []

        await orch.resolve("image", "Napoleon", "portrait", gen, IMAGE)
        assert gen.await_count == 2

    @pytest.mark.asyncio
    async def test_remote_transport_error_degrades(self, durable_store, blob_store):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        fetcher = PayloadFetcher(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        orch = CacheOrchestrator(durable_store, blob_store, fetcher, _policy())
        url = "https://provider.test/scene.mp4"
        result = await orch.resolve("scene", "castle", "dusk", AsyncMock(return_value=url), SCENE)
        assert result.state == RequestState.DEGRADED
        assert result.value == url
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_remote_http_error_fails(self, orchestrator):
        gen = AsyncMock(return_value="https://provider.test/gone.mp4")
        with pytest.raises(PersistenceFailedError) as exc_info:
            await orchestrator.resolve("scene", "castle", "gone", gen, SCENE)
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_blob_write_error_fails(self, durable_store, fetcher, sample_base64):
        blob = AsyncMock()
        blob.put.side_effect = OSError("disk full")
        orch = CacheOrchestrator(durable_store, blob, fetcher, _policy())
        with pytest.raises(PersistenceFailedError):
            await orch.resolve(
                "image", "Napoleon", "portrait", AsyncMock(return_value=sample_base64), IMAGE
            )
