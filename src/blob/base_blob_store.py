# src/blob/base_blob_store.py — v1
"""Abstract blob store interface.

A plain path → bytes map for large binary payloads. Callers choose the path
(typically ``category/key.ext``); the store does no content addressing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseBlobStore(ABC):
    """Unified interface for blob tier backends."""

    @abstractmethod
    async def put(self, path: str, data: bytes, mime_type: str | None = None) -> str:
        """Store bytes at ``path`` and return a stable retrieval URL.

        Raises:
            BlobStoreUnavailableError: Store unreachable from this environment.
        """

    @abstractmethod
    async def get_url(self, path: str) -> str:
        """Retrieval URL for an existing object.

        Raises:
            BlobNotFoundError: Nothing stored at ``path``.
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check if an object exists at ``path``."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Remove the object at ``path`` if present."""

    async def close(self) -> None:
        """Release backend resources."""
