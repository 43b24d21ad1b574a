"""Delayed callbacks for the AI's move."""

import abc
import asyncio
from typing import Any, Callable, Optional


class Timer(abc.ABC):
    @abc.abstractmethod
    def schedule(self, delay: float, callback: Callable[[], None]) -> Any:
        """Run callback after delay seconds and return a handle for cancel()."""

    @abc.abstractmethod
    def cancel(self, handle: Any) -> None:
        ...


class AsyncioTimer(Timer):
    """Schedules on the event loop the caller is running in.

    Must be used from inside the loop (a request or websocket handler).
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()
