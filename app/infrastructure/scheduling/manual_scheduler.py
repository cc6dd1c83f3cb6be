from __future__ import annotations

import heapq
import itertools
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.application.ports.scheduler import ClockPort, SchedulerPort, TimerHandle


class ManualTimerHandle(TimerHandle):
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(SchedulerPort, ClockPort):
    """
    Virtual time for local runs and tests. Nothing fires until ``advance``
    moves the clock past a deadline; callbacks run in deadline order.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2024, 3, 1, tzinfo=timezone.utc)
        self._queue: list[tuple[datetime, int, ManualTimerHandle, Callable[[], None]]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        handle = ManualTimerHandle()
        deadline = self._now + timedelta(seconds=delay_seconds)
        heapq.heappush(self._queue, (deadline, next(self._seq), handle, callback))
        return handle

    def advance(self, seconds: float) -> int:
        """Move time forward, running due callbacks. Returns how many fired."""
        target = self._now + timedelta(seconds=seconds)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            deadline, _, handle, callback = heapq.heappop(self._queue)
            self._now = deadline
            if handle.cancelled:
                continue
            fired += 1
            callback()
        self._now = target
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if not handle.cancelled)
