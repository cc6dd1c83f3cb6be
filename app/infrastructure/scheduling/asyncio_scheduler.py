from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable

from app.application.ports.scheduler import ClockPort, SchedulerPort, TimerHandle


class AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class AsyncioScheduler(SchedulerPort):
    """Schedules callbacks on the running event loop."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return AsyncioTimerHandle(loop.call_later(delay_seconds, callback))


class SystemClock(ClockPort):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
