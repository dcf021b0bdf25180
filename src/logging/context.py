# src/logging/context.py — v1
"""Contextual logging support: request_id, category and cache_key on log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per cache request.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_category: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "category", default=None
)
_cache_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_key", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    category: str | None = None
    cache_key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        category=_category.get(),
        cache_key=_cache_key.get(),
    )


def set_request_context(
    request_id: str, category: str, cache_key: str
) -> list[contextvars.Token]:
    """Set request-level context (called once per get_or_generate).

    Returns:
        Tokens for reset_context(), restoring the enclosing context.
    """
    return [
        _request_id.set(request_id),
        _category.set(category),
        _cache_key.set(cache_key),
    ]


def reset_context(tokens: list[contextvars.Token]) -> None:
    """Restore the context that was active before set_request_context()."""
    for token in reversed(tokens):
        token.var.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _category.set(None)
    _cache_key.set(None)
