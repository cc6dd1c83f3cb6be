from __future__ import annotations

import itertools
import logging
from typing import Any

from app.application.ports.realtime import EventHandler, RealtimeChannelPort, Subscription


class InMemoryRealtimeChannel(RealtimeChannelPort):
    """In-process pub/sub. Handlers run synchronously on the emitting call."""

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], dict[int, EventHandler]] = {}
        self._ids = itertools.count(1)
        self._logger = logging.getLogger(__name__)

    def subscribe(self, event: str, key: str, handler: EventHandler) -> Subscription:
        subscription = Subscription(id=next(self._ids), event=event, key=key)
        self._handlers.setdefault((event, key), {})[subscription.id] = handler
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        handlers = self._handlers.get((subscription.event, subscription.key))
        if not handlers:
            return
        handlers.pop(subscription.id, None)
        if not handlers:
            del self._handlers[(subscription.event, subscription.key)]

    def emit(self, event: str, key: str, payload: dict[str, Any]) -> None:
        # Handlers may unsubscribe themselves while we dispatch
        handlers = list(self._handlers.get((event, key), {}).values())
        for handler in handlers:
            try:
                handler(payload)
            except Exception as e:
                self._logger.exception(
                    "Realtime handler failed",
                    extra={"reason": event, "error": str(e)},
                )

    def subscriber_count(self, event: str, key: str) -> int:
        return len(self._handlers.get((event, key), {}))
