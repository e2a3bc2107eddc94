"""Fixed-interval ticker anchored at construction time."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class Ticker:
    """Fires every ``interval`` seconds on a grid starting at construction.

    A tick that is already overdue fires immediately. Further grid points
    missed while the caller was busy are dropped, not queued.
    """

    def __init__(self, interval: float, clock: Callable[[], float] = time.monotonic):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._interval = interval
        self._clock = clock
        self._next = clock() + interval

    @property
    def next_deadline(self) -> float:
        return self._next

    def wait(self, stop: threading.Event) -> bool:
        """Block until the next tick. Returns False if ``stop`` was set first."""
        delay = self._next - self._clock()
        if delay > 0:
            if stop.wait(delay):
                return False
        elif stop.is_set():
            return False

        now = self._clock()
        self._next += self._interval
        if self._next <= now:
            missed = int((now - self._next) // self._interval) + 1
            self._next += missed * self._interval
        return True
