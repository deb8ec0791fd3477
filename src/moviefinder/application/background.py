"""Detached best-effort tasks (store write-backs) with an error boundary."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

log = structlog.get_logger(__name__)


class BackgroundTasks:
    """Spawn fire-and-forget tasks that never affect the caller.

    The caller's critical path does not await the task. Strong references
    are kept until the task finishes (the event loop only holds weak ones),
    and any exception is logged instead of propagating.

    Usage::

        tasks = BackgroundTasks()
        tasks.spawn(store.increment_search_count(q, movie), name="search_count")

        # In lifespan finally:
        await tasks.drain(timeout=5.0)
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            log.debug("background_task_cancelled", task=task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            log.warning(
                "background_task_failed",
                task=task.get_name(),
                error=str(exc),
                exc_info=exc,
            )

    async def drain(self, *, timeout: float = 5.0) -> None:
        """Wait for pending tasks, cancelling whatever is left after *timeout*."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        log.info("background_tasks_draining", pending=len(pending))
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            log.warning("background_tasks_cancelled", count=len(still_running))
