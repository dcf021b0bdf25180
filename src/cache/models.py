# src/cache/models.py — v1
"""Cache domain models: StoreConfig, TransientEntry, DurableEntry, BlobReference.

Entries are created on a cache miss or on promotion of a durable hit into the
transient tier, and are never mutated in place except for the view counter.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class StoreConfig(BaseModel):
    """Per-category TTL and capacity bounds for the transient tier."""

    max_age: float | None = None  # seconds; None = no TTL
    max_entries: int = 100

    @field_validator("max_age")
    @classmethod
    def validate_max_age(cls, v: float | None) -> float | None:  # noqa: N805
        if v is not None and v <= 0:
            raise ValueError("max_age must be > 0")
        return v

    @field_validator("max_entries")
    @classmethod
    def validate_max_entries(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("max_entries must be >= 1")
        return v

    def expires_at(self, now: float) -> float | None:
        """Absolute expiry for an entry written at ``now``."""
        if self.max_age is None:
            return None
        return now + self.max_age


class TransientEntry(BaseModel):
    """Single record in a transient category partition."""

    category: str
    key: str
    value: Any = None
    created_at: float = Field(default_factory=time.time)
    expires_at: float | None = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class BlobReference(BaseModel):
    """Pointer into the blob tier. Not deleted with the document that holds it."""

    key: str
    url: str
    mime_type: str = "application/octet-stream"


class DurableEntry(BaseModel):
    """Shared, cross-device cache document."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    key: str
    category: str
    topic: str = ""
    prompt: str
    content: Any = None
    blob: BlobReference | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    creator_id: str | None = None
    views: int = 1

    @property
    def payload(self) -> Any:
        """Stored blob URL if present, otherwise the stored content."""
        if self.blob is not None and self.blob.url:
            return self.blob.url
        return self.content


class MediaOptions(BaseModel):
    """Describes how a generated binary artifact is materialized and stored.

    ``data_type`` tells how the generator returns the artifact: a base64
    string, a fetchable remote URL, or raw bytes.
    """

    data_type: Literal["base64", "url", "bytes"] = "base64"
    mime_type: str = "application/octet-stream"
    path: str | None = None


class RequestState(str, Enum):
    """Per-request states of ``get_or_generate``."""

    MISS = "miss"
    HIT = "hit"
    GENERATING = "generating"
    PERSISTED = "persisted"
    DEGRADED = "degraded"
    DONE = "done"
    FAILED = "failed"
    ERROR = "error"


class CacheResult(BaseModel):
    """Outcome of a resolved request: value plus where it came from."""

    value: Any = None
    state: RequestState
    tier: Literal["transient", "durable", "generated"]
    key: str

    @property
    def from_cache(self) -> bool:
        return self.tier != "generated"


class TopicStats(BaseModel):
    """Aggregate usage of durable entries for one topic."""

    total_items: int = 0
    total_views: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)


class TTSRequest(BaseModel):
    """Narrated-audio request; every field takes part in the cache key."""

    text: str
    voice: str = "default"
    speed: float = 1.0
    language: str = "en"


class SceneRequest(BaseModel):
    """Scene/video asset request."""

    prompt: str
    style: str = "default"
    dimensions: dict[str, int] = Field(default_factory=dict)


class OfflineAction(BaseModel):
    """User action recorded while offline, replayed once back online."""

    type: str
    payload: Any = None
    timestamp: float = Field(default_factory=time.time)
