# src/engine/tasks.py — v1
"""Supervisor for background cache maintenance.

Transient cleanup and durable view increments run after the caller has its
answer. Failure policy: a failed task is logged at WARNING with its
traceback, counted per task name and handed to ``on_error`` if given. It is
never re-raised into the code that spawned it. Cancelled tasks are not
counted as failures.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, BaseException], None]


class TaskSupervisor:
    """Tracks fire-and-forget tasks and applies one failure policy to all."""

    def __init__(self, on_error: ErrorCallback | None = None) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()
        self._on_error = on_error
        self._closed = False
        self.failures: Counter[str] = Counter()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        """Schedule ``coro`` on the running loop.

        Raises:
            RuntimeError: If the supervisor is closed or no loop is running.
        """
        if self._closed:
            coro.close()
            raise RuntimeError("TaskSupervisor is closed")
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        name = task.get_name()
        self.failures[name] += 1
        logger.warning(
            "Background task %s failed: %s", name, exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        if self._on_error is not None:
            try:
                self._on_error(name, exc)
            except Exception:
                logger.exception("on_error callback failed for task %s", name)

    async def drain(self) -> None:
        """Wait until every task spawned so far (and their follow-ups) finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Drain pending work and refuse new tasks."""
        await self.drain()
        self._closed = True
