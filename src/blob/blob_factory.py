# src/blob/blob_factory.py — v1
"""Factory: instantiate blob store from configuration."""

from __future__ import annotations

from gencache.blob.base_blob_store import BaseBlobStore
from gencache.blob.local_store import LocalBlobStore
from gencache.config.settings import Settings


def create_blob_store(settings: Settings | None = None) -> BaseBlobStore:
    """Create the appropriate blob store based on settings.

    Raises:
        ValueError: If the backend is not supported or misconfigured.
    """
    settings = settings or Settings()

    if settings.blob_backend == "local":
        return LocalBlobStore(
            root=settings.blob_root,
            public_base_url=settings.blob_public_base_url,
        )

    if settings.blob_backend == "s3":
        from gencache.blob.s3_store import S3BlobStore
        if not settings.blob_s3_bucket:
            raise ValueError("BLOB_S3_BUCKET must be set when BLOB_BACKEND=s3")
        return S3BlobStore(
            bucket=settings.blob_s3_bucket,
            prefix=settings.blob_s3_prefix,
            region=settings.blob_s3_region or None,
            endpoint_url=settings.blob_s3_endpoint_url or None,
            public_base_url=settings.blob_public_base_url,
        )

    raise ValueError(f"Unsupported blob backend: {settings.blob_backend!r}")
