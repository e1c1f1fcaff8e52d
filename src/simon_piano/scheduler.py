from __future__ import annotations

import heapq
import itertools
import time
from typing import Callable, List, Optional, Tuple


Clock = Callable[[], float]


class TimerHandle:
    """Returned by :meth:`Scheduler.call_later`; lets the caller cancel the call."""

    __slots__ = ("due_s", "callback", "cancelled")

    def __init__(self, due_s: float, callback: Callable[[], None]) -> None:
        self.due_s = due_s
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class Scheduler:
    """
    Delayed callbacks for a single-threaded game loop.

    Nothing runs on its own: the loop calls :meth:`run_due` once per tick and
    every callback whose due time has passed fires, earliest first. Callbacks
    due at the same time fire in the order they were scheduled.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._heap: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self._clock() + max(0.0, delay_s), callback)
        heapq.heappush(self._heap, (handle.due_s, next(self._counter), handle))
        return handle

    def run_due(self, now_s: Optional[float] = None) -> int:
        """Fire every due callback. Returns how many callbacks ran."""
        now_s = self._clock() if now_s is None else now_s
        fired = 0
        while self._heap and self._heap[0][0] <= now_s:
            _, _, handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.callback()
            fired += 1
        return fired

    def pending(self) -> int:
        return sum(1 for _, _, h in self._heap if not h.cancelled)
