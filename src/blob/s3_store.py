# src/blob/s3_store.py — v1
"""S3-compatible blob store (BLOB_BACKEND=s3).

Supports AWS S3, MinIO, and other S3-compatible storage.
Requires 'boto3' package: pip install boto3.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from gencache.blob.base_blob_store import BaseBlobStore
from gencache.cache.errors import BlobNotFoundError, BlobStoreUnavailableError

logger = logging.getLogger(__name__)

# ClientError codes meaning "this environment may not write here".
_ACCESS_ERROR_CODES = frozenset(
    {"AccessDenied", "AllAccessDisabled", "InvalidAccessKeyId", "SignatureDoesNotMatch", "403"}
)
_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class S3BlobStore(BaseBlobStore):
    """Store blobs in S3-compatible object storage."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "gencache/",
        region: str | None = None,
        endpoint_url: str | None = None,
        public_base_url: str = "",
    ) -> None:
        """Initialize S3 blob store.

        Args:
            bucket: S3 bucket name.
            prefix: Key prefix for all objects (e.g. "gencache/").
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for MinIO/compatible storage.
            public_base_url: CDN or bucket website URL used to build
                retrieval URLs. Defaults to the virtual-hosted S3 URL.
        """
        try:
            import boto3
            from botocore.exceptions import (
                ClientError,
                ConnectionClosedError,
                ConnectionError as BotoConnectionError,
                NoCredentialsError,
                ReadTimeoutError,
            )
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 blob store: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket
        self._prefix = prefix.rstrip("/") + "/" if prefix else ""
        self._region = region or ""
        self._endpoint_url = (endpoint_url or "").rstrip("/")
        self._public_base_url = public_base_url.rstrip("/")
        self._client_error = ClientError
        self._unreachable_errors = (
            BotoConnectionError,
            ConnectionClosedError,
            ReadTimeoutError,
            NoCredentialsError,
        )

    def _full_key(self, path: str) -> str:
        """Build the full S3 key from a relative path."""
        return f"{self._prefix}{path.lstrip('/')}"

    def _url(self, key: str) -> str:
        quoted = quote(key)
        if self._public_base_url:
            return f"{self._public_base_url}/{quoted}"
        if self._endpoint_url:
            return f"{self._endpoint_url}/{self._bucket}/{quoted}"
        if self._region:
            return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{quoted}"
        return f"https://{self._bucket}.s3.amazonaws.com/{quoted}"

    @staticmethod
    def _error_code(exc: Exception) -> str:
        response = getattr(exc, "response", None) or {}
        return str(response.get("Error", {}).get("Code", ""))

    async def put(self, path: str, data: bytes, mime_type: str | None = None) -> str:
        key = self._full_key(path)
        extra = {"ContentType": mime_type} if mime_type else {}
        try:
            self._s3.put_object(Bucket=self._bucket, Key=key, Body=data, **extra)
        except self._unreachable_errors as e:
            raise BlobStoreUnavailableError(f"S3 unreachable: {type(e).__name__}") from e
        except self._client_error as e:
            if self._error_code(e) in _ACCESS_ERROR_CODES:
                raise BlobStoreUnavailableError(
                    f"S3 write denied for s3://{self._bucket}/{key}"
                ) from e
            raise
        logger.debug("S3 put: s3://%s/%s (%d bytes)", self._bucket, key, len(data))
        return self._url(key)

    async def get_url(self, path: str) -> str:
        if not await self.exists(path):
            raise BlobNotFoundError(path)
        return self._url(self._full_key(path))

    async def exists(self, path: str) -> bool:
        key = self._full_key(path)
        try:
            self._s3.head_object(Bucket=self._bucket, Key=key)
            return True
        except self._client_error as e:
            if self._error_code(e) in _NOT_FOUND_CODES:
                return False
            raise

    async def delete(self, path: str) -> None:
        self._s3.delete_object(Bucket=self._bucket, Key=self._full_key(path))
