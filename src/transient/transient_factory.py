# src/transient/transient_factory.py — v1
"""Factory for transient store instantiation."""

from __future__ import annotations

from gencache.config.settings import Settings
from gencache.engine.tasks import TaskSupervisor
from gencache.transient.base_transient_store import BaseTransientStore


def create_transient_store(
    settings: Settings | None = None,
    tasks: TaskSupervisor | None = None,
) -> BaseTransientStore:
    """Instantiate the configured transient backend.

    Args:
        settings: Application settings. Defaults to SQLite under ~/.gencache.
        tasks: Supervisor for post-write cleanup tasks.

    Returns:
        Configured BaseTransientStore implementation.
    """
    settings = settings or Settings()
    kwargs = {"categories": settings.categories, "tasks": tasks}

    if settings.transient_backend == "sqlite":
        from gencache.transient.sqlite_store import SqliteTransientStore
        return SqliteTransientStore(db_path=settings.transient_path, **kwargs)

    if settings.transient_backend == "redis":
        from gencache.transient.redis_store import RedisTransientStore
        if not settings.transient_redis_url:
            raise ValueError(
                "TRANSIENT_REDIS_URL must be set when TRANSIENT_BACKEND=redis"
            )
        return RedisTransientStore(redis_url=settings.transient_redis_url, **kwargs)

    raise ValueError(f"Unsupported transient backend: {settings.transient_backend!r}")
