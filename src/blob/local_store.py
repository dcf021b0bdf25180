# src/blob/local_store.py — v1
"""Local filesystem blob store (BLOB_BACKEND=local, default)."""

from __future__ import annotations

from pathlib import Path

from gencache.blob.base_blob_store import BaseBlobStore
from gencache.cache.errors import BlobNotFoundError, BlobStoreUnavailableError


class LocalBlobStore(BaseBlobStore):
    """Write blobs under a root directory.

    URLs are ``public_base_url/path`` when a base URL is configured (e.g. a
    static file server in front of the root), otherwise ``file://`` URIs.
    """

    def __init__(self, root: Path | str, public_base_url: str = "") -> None:
        self._root = Path(root).expanduser().resolve()
        self._root.mkdir(parents=True, exist_ok=True)
        self._public_base_url = public_base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        """Resolve ``path`` under the root, rejecting escapes."""
        resolved = (self._root / path.lstrip("/")).resolve()
        if not resolved.is_relative_to(self._root):
            raise ValueError(f"Blob path escapes store root: {path!r}")
        return resolved

    def _url(self, path: str, resolved: Path) -> str:
        if self._public_base_url:
            return f"{self._public_base_url}/{path.lstrip('/')}"
        return resolved.as_uri()

    async def put(self, path: str, data: bytes, mime_type: str | None = None) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except PermissionError as e:
            raise BlobStoreUnavailableError(f"Blob root not writable: {self._root}") from e
        return self._url(path, target)

    async def get_url(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise BlobNotFoundError(path)
        return self._url(path, target)

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    async def delete(self, path: str) -> None:
        target = self._resolve(path)
        if target.is_file():
            target.unlink()
