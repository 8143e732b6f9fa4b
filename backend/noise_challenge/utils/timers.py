"""Event-loop timers owned by individual game components."""
import asyncio
from typing import Callable, Optional


def resolve_loop(loop: Optional[asyncio.AbstractEventLoop]) -> asyncio.AbstractEventLoop:
    """Use the given loop, or the running one."""
    return loop if loop is not None else asyncio.get_running_loop()


class Ticker:
    """
    Calls a function every `interval` seconds until stopped.

    Each tick re-arms a fresh call_later, so stopping and starting again
    begins a full new interval rather than resuming a partial one.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        loop: Optional[asyncio.AbstractEventLoop] = None
    ):
        self.interval = interval
        self._callback = callback
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._loop = resolve_loop(self._loop)
        self._arm()

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def restart(self) -> None:
        self.stop()
        self.start()

    def _arm(self) -> None:
        self._handle = self._loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        self._arm()
        self._callback()
