"""
Cancelable countdown driven by the asyncio event loop.

Each tick is a separate ``loop.call_later`` handle and only one is pending
at a time, so ``cancel()`` guarantees nothing fires after teardown.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable


class Countdown:
    """Counts ``duration`` ticks down to zero, then calls ``on_finish`` once."""

    def __init__(
        self,
        duration: int,
        interval: float = 1.0,
        on_tick: Callable[[int], None] | None = None,
        on_finish: Callable[[], None] | None = None,
    ):
        if duration < 0:
            raise ValueError("duration must be >= 0")
        self.duration = duration
        self.interval = interval
        self.remaining = duration
        self._on_tick = on_tick
        self._on_finish = on_finish
        self._handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._cancelled = False
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Schedule the first tick. A zero duration finishes immediately."""
        if self._cancelled or self._finished or self._handle is not None:
            return
        self._loop = loop or asyncio.get_running_loop()
        if self.remaining == 0:
            self._finish()
            return
        self._schedule()

    def tick(self) -> None:
        """Advance one step. Safe to call directly (tests, manual driving)."""
        if self._handle is not None:
            # No-op when the loop is the caller; the handle already fired
            self._handle.cancel()
            self._handle = None
        if self._cancelled or self._finished:
            return
        self.remaining = max(self.remaining - 1, 0)
        if self._on_tick is not None:
            self._on_tick(self.remaining)
        if self.remaining == 0:
            self._finish()
        elif self._loop is not None:
            self._schedule()

    def cancel(self) -> None:
        """Drop the pending tick; no callback runs afterwards."""
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        assert self._loop is not None
        self._handle = self._loop.call_later(self.interval, self.tick)

    def _finish(self) -> None:
        self._finished = True
        self._handle = None
        if self._on_finish is not None:
            self._on_finish()
