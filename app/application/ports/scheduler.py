from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Cancel the timer. Cancelling twice or after it fired is harmless."""
        raise NotImplementedError


class SchedulerPort(ABC):
    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError


class ClockPort(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time, timezone-aware UTC."""
        raise NotImplementedError
