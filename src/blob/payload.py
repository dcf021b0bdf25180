# src/blob/payload.py — v1
"""Turn generator output into bytes for the blob tier.

Generators return binary artifacts in one of three shapes: a base64 string
(possibly a ``data:`` URL), a remote URL the provider serves the asset from,
or raw bytes.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Any

import httpx

from gencache.cache.errors import RemoteFetchUnavailableError
from gencache.cache.models import MediaOptions

logger = logging.getLogger(__name__)

_DATA_URL_PREFIX = re.compile(r"^data:.*?;base64,")
_WHITESPACE = re.compile(r"\s+")
_BASE64_ALPHABET = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_MIN_BASE64_LENGTH = 10


def clean_base64(value: str) -> str:
    """Strip a data-URL prefix and all whitespace."""
    return _WHITESPACE.sub("", _DATA_URL_PREFIX.sub("", value or ""))


def is_valid_base64(value: Any) -> bool:
    """True if ``value`` decodes as base64 in full."""
    if not isinstance(value, str):
        return False
    clean = clean_base64(value)
    if len(clean) < _MIN_BASE64_LENGTH or not _BASE64_ALPHABET.match(clean):
        return False
    try:
        base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def decode_base64(value: str) -> bytes:
    """Decode a (possibly data-URL prefixed) base64 string.

    Raises:
        ValueError: If the value is not valid base64.
    """
    if not is_valid_base64(value):
        raise ValueError(f"Invalid base64 data (length: {len(clean_base64(value))})")
    return base64.b64decode(clean_base64(value), validate=True)


def is_remote_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def is_binary_capable(value: Any, media: MediaOptions) -> bool:
    """Whether ``value`` can be materialized into bytes for ``media``."""
    if isinstance(value, (bytes, bytearray)):
        return True
    if media.data_type == "base64":
        return is_valid_base64(value)
    if media.data_type == "url":
        return is_remote_url(value)
    return False


class PayloadFetcher:
    """Materializes generated payloads; downloads remote ones over httpx."""

    def __init__(
        self,
        timeout: float = 30.0,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch(self, url: str) -> bytes:
        """Download a generated asset.

        Raises:
            RemoteFetchUnavailableError: Transport-level failure (network,
                DNS, TLS, timeout).
            httpx.HTTPStatusError: The provider answered with an error status.
        """
        params = {"key": self._api_key} if self._api_key else None
        try:
            response = await self._client.get(url, params=params)
        except httpx.TransportError as e:
            raise RemoteFetchUnavailableError(
                f"Could not download generated asset: {type(e).__name__}"
            ) from e
        response.raise_for_status()
        logger.debug("Fetched %d bytes of generated media", len(response.content))
        return response.content

    async def materialize(self, value: Any, media: MediaOptions) -> bytes:
        """Bytes for a binary-capable ``value``."""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if media.data_type == "url":
            return await self.fetch(value)
        return decode_base64(value)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
