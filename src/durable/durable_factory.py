# src/durable/durable_factory.py — v1
"""Factory for durable store instantiation."""

from __future__ import annotations

from gencache.config.settings import Settings
from gencache.durable.base_durable_store import BaseDurableStore
from gencache.engine.tasks import TaskSupervisor


def create_durable_store(
    settings: Settings | None = None,
    tasks: TaskSupervisor | None = None,
) -> BaseDurableStore:
    """Instantiate the configured durable backend.

    Args:
        settings: Application settings. Defaults to SQLite under ~/.gencache.
        tasks: Supervisor for view-count increments.

    Returns:
        Configured BaseDurableStore implementation.
    """
    settings = settings or Settings()

    if settings.durable_backend == "sqlite":
        from gencache.durable.sqlite_store import SqliteDurableStore
        return SqliteDurableStore(db_path=settings.durable_path, tasks=tasks)

    if settings.durable_backend == "mongodb":
        from gencache.durable.mongo_store import MongoDurableStore
        if not settings.durable_mongo_url:
            raise ValueError(
                "DURABLE_MONGO_URL must be set when DURABLE_BACKEND=mongodb"
            )
        return MongoDurableStore(
            mongo_url=settings.durable_mongo_url,
            database=settings.durable_mongo_database,
            collection=settings.durable_mongo_collection,
            tasks=tasks,
        )

    raise ValueError(f"Unsupported durable backend: {settings.durable_backend!r}")
