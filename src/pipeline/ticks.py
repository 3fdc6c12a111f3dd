"""
Tick drivers: the injected "call me on the next frame" signal.

A driver schedules one callback per request, the way a display refresh
callback does. The scheduler re-requests after every tick it wants to
continue from.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Protocol, Set

TickCallback = Callable[[float], Awaitable[None]]


class TickHandle:
    """Cancellable reference to one requested tick."""

    def __init__(self) -> None:
        self.cancelled = False
        self.timer: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self.timer is not None:
            self.timer.cancel()


class TickDriver(Protocol):
    def request(self, callback: TickCallback) -> TickHandle:
        ...

    def cancel(self, handle: TickHandle) -> None:
        ...


class AsyncioTickDriver:
    """
    Fires ticks on the running asyncio loop at a fixed refresh rate.

    Tick times are reported in milliseconds from a monotonic clock.
    """

    def __init__(self, refresh_hz: float = 60.0, clock: Callable[[], float] = time.monotonic):
        if refresh_hz <= 0:
            raise ValueError("refresh_hz must be positive")
        self.interval = 1.0 / refresh_hz
        self._clock = clock
        self._tasks: Set[asyncio.Task] = set()

    def now(self) -> float:
        return self._clock() * 1000.0

    def request(self, callback: TickCallback) -> TickHandle:
        handle = TickHandle()
        loop = asyncio.get_running_loop()
        handle.timer = loop.call_later(self.interval, self._fire, handle, callback)
        return handle

    def cancel(self, handle: TickHandle) -> None:
        handle.cancel()

    def _fire(self, handle: TickHandle, callback: TickCallback) -> None:
        if handle.cancelled:
            return
        task = asyncio.get_running_loop().create_task(callback(self.now()))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logging.error(f"Tick callback failed: {task.exception()}")

    async def drain(self) -> None:
        """Wait for ticks that are already running."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
