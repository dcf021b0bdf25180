# tests/conftest.py — v1
"""Shared test fixtures for unit and integration tests.

Stores run on temp SQLite files and a temp blob root; remote services are
mocked. No network access is required.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from gencache.blob.local_store import LocalBlobStore
from gencache.blob.payload import PayloadFetcher
from gencache.config.settings import Settings
from gencache.durable.sqlite_store import SqliteDurableStore
from gencache.engine.capability import Capabilities
from gencache.engine.degradation import DegradationPolicy
from gencache.engine.orchestrator import CacheOrchestrator
from gencache.engine.tasks import TaskSupervisor
from gencache.transient.sqlite_store import SqliteTransientStore

SAMPLE_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"
SAMPLE_BASE64 = "iVBORw0KGgpmYWtlLWltYWdlLWJ5dGVz"  # base64 of SAMPLE_BYTES


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# === FIXTURES: Settings ===


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing every tier at tmp_path."""
    return Settings(
        _env_file=None,
        transient_path=tmp_path / "transient.db",
        durable_path=tmp_path / "durable.db",
        blob_root=tmp_path / "blobs",
    )


# === FIXTURES: Stores ===


@pytest.fixture
def tasks() -> TaskSupervisor:
    return TaskSupervisor()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transient_store(tmp_path, tasks, clock) -> SqliteTransientStore:
    return SqliteTransientStore(db_path=tmp_path / "transient.db", tasks=tasks, clock=clock)


@pytest.fixture
def durable_store(tmp_path, tasks) -> SqliteDurableStore:
    return SqliteDurableStore(db_path=tmp_path / "durable.db", tasks=tasks)


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(root=tmp_path / "blobs", public_base_url="https://cdn.test")


@pytest.fixture
def remote_media() -> dict[str, bytes]:
    """URL → body map served by the mocked HTTP transport."""
    return {"https://provider.test/scene.mp4": b"video-bytes"}


@pytest.fixture
def fetcher(remote_media) -> PayloadFetcher:
    def handler(request: httpx.Request) -> httpx.Response:
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if url in remote_media:
            return httpx.Response(200, content=remote_media[url])
        return httpx.Response(404)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return PayloadFetcher(client=client)


@pytest.fixture
def orchestrator(durable_store, blob_store, fetcher) -> CacheOrchestrator:
    policy = DegradationPolicy(Capabilities(blob_persistence=True, reason="test"))
    return CacheOrchestrator(durable_store, blob_store, fetcher, policy)


@pytest.fixture
def generator():
    """AsyncMock generator returning a fixed text artifact."""
    return AsyncMock(return_value="Napoleon rose through the army.")


@pytest.fixture
def sample_bytes() -> bytes:
    return SAMPLE_BYTES


@pytest.fixture
def sample_base64() -> str:
    return SAMPLE_BASE64
