"""
Cancellable timers for the grace period.

A scheduled callback runs on the event loop after the delay unless it is
cancelled first; cancel() guarantees it will not fire.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AsyncioScheduler:
    """Scheduler backed by loop.call_later."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
