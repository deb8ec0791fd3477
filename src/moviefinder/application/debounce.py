"""Debouncer: collapse rapid value changes into one call after a quiet period."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from typing import Awaitable, Callable, Generic, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


class Debouncer(Generic[T]):
    """Call ``callback(value)`` once input stops changing for ``delay`` seconds.

    Only the last value pushed within the quiet window is delivered. Each
    ``push`` restarts the window. The callback runs inside the timer task;
    pushing a new value while a callback is already running does not cancel
    that callback.
    """

    def __init__(self, delay: float, callback: Callable[[T], Awaitable[None]]) -> None:
        self._delay = delay
        self._callback = callback
        self._timer: asyncio.Task[None] | None = None
        self._pending: tuple[T] | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def push(self, value: T) -> None:
        self._pending = (value,)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._wait_then_fire())

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self._delay)
        self._timer = None
        self._fire()

    def _fire(self) -> None:
        if self._pending is None:
            return
        (value,) = self._pending
        self._pending = None
        task = asyncio.create_task(self._run(value))
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run(self, value: T) -> None:
        try:
            await self._callback(value)
        except Exception:
            log.warning("debounced_callback_failed", exc_info=True)

    def flush(self) -> None:
        """Deliver the pending value now, skipping the rest of the window."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._fire()

    async def cancel(self) -> None:
        """Drop the pending value and stop the timer and running callbacks."""
        self._pending = None
        tasks = [t for t in (self._timer, *self._running) if t is not None]
        self._timer = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
