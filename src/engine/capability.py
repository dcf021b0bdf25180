# src/engine/capability.py — v1
"""One-time startup probe of blob persistence.

The result is handed to the DegradationPolicy so that per-request failures
do not have to be diagnosed from error text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal
from uuid import uuid4

from gencache.blob.base_blob_store import BaseBlobStore
from gencache.cache.errors import EnvironmentLimitedError

logger = logging.getLogger(__name__)

_PROBE_PREFIX = "_probe"
_PROBE_BODY = b"gencache-probe"


@dataclass(frozen=True)
class Capabilities:
    """What this runtime can persist."""

    blob_persistence: bool
    reason: str = ""


async def probe_blob_persistence(
    blob_store: BaseBlobStore,
    mode: Literal["auto", "enabled", "disabled"] = "auto",
) -> Capabilities:
    """Decide once whether binary artifacts can be persisted.

    Args:
        blob_store: Blob tier to probe.
        mode: ``enabled``/``disabled`` skip the probe; ``auto`` writes and
            removes a small object.

    Returns:
        Capabilities for the DegradationPolicy.

    Raises:
        Exception: Any non environment-limited failure of the probe write.
    """
    if mode == "enabled":
        return Capabilities(blob_persistence=True, reason="enabled by configuration")
    if mode == "disabled":
        logger.warning("Blob persistence disabled by configuration; media will not be cached")
        return Capabilities(blob_persistence=False, reason="disabled by configuration")

    path = f"{_PROBE_PREFIX}/{uuid4().hex}.bin"
    try:
        await blob_store.put(path, _PROBE_BODY, "application/octet-stream")
    except EnvironmentLimitedError as e:
        logger.warning("Blob persistence unavailable in this environment: %s", e)
        return Capabilities(blob_persistence=False, reason=str(e))

    try:
        await blob_store.delete(path)
    except Exception as e:
        logger.warning("Could not remove blob probe object %s: %s", path, e)

    logger.info("Blob persistence probe succeeded")
    return Capabilities(blob_persistence=True, reason="probe succeeded")
