# src/engine/degradation.py — v1
"""Decides when a persistence failure is swallowed or surfaced.

Read-path availability wins over durability only for environment-limited
failures: the artifact is returned uncached. Every other failure is
surfaced.
"""

from __future__ import annotations

from gencache.cache.errors import EnvironmentLimitedError
from gencache.engine.capability import Capabilities


class DegradationPolicy:
    """Classification of persistence failures."""

    def __init__(self, capabilities: Capabilities) -> None:
        self._capabilities = capabilities

    @property
    def persistence_available(self) -> bool:
        return self._capabilities.blob_persistence

    @property
    def reason(self) -> str:
        return self._capabilities.reason

    @staticmethod
    def is_environment_limited(exc: BaseException) -> bool:
        return isinstance(exc, EnvironmentLimitedError)
