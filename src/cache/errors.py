# src/cache/errors.py — v1
"""Error taxonomy for the content cache.

Generator exceptions and store lookup exceptions are not wrapped: they
propagate to the caller unchanged. Only persistence outcomes get their own
types, split between environment-limited failures (swallowed, artifact
returned uncached) and everything else (raised as PersistenceFailedError).
"""

from __future__ import annotations

PUBLIC_UNAVAILABLE_MESSAGE = "Content unavailable, please try again."


class CacheError(Exception):
    """Base class for all gencache errors."""


class CacheNotInitializedError(CacheError):
    """Raised when the engine is used before init() or after close()."""


class BlobNotFoundError(CacheError):
    """Raised when no object exists at the requested blob path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Blob not found: {path}")
        self.path = path


class EnvironmentLimitedError(CacheError):
    """A write could not happen because of the runtime environment.

    Network restrictions, missing credentials, denied access or an
    unreachable endpoint. The orchestrator degrades instead of failing.
    """


class BlobStoreUnavailableError(EnvironmentLimitedError):
    """Blob tier unreachable or not writable from this environment."""


class DurableStoreUnavailableError(EnvironmentLimitedError):
    """Document store unreachable from this environment."""


class RemoteFetchUnavailableError(EnvironmentLimitedError):
    """A generated remote asset could not be downloaded (transport error)."""


class PersistenceFailedError(CacheError):
    """Generation succeeded but the result could not be persisted.

    The generated artifact is discarded.
    """


def public_message(exc: BaseException) -> str:
    """Message safe to show to end users for any surfaced error."""
    return PUBLIC_UNAVAILABLE_MESSAGE
