from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

EventHandler = Callable[[dict[str, Any]], None]

APPOINTMENT_CONFIRMED = "appointment_confirmed"
NOTIFICATION = "notification"
JOIN_CHAT_ROOM = "join_chat_room"
LEAVE_CHAT_ROOM = "leave_chat_room"
CHAT_MESSAGE = "chat_message"
USER_TYPING = "user_typing"
CLIENT_LOCATION_UPDATE = "client_location_update"
CLIENT_PROXIMITY_ALERT = "client_proximity_alert"


@dataclass(frozen=True)
class Subscription:
    id: int
    event: str
    key: str


class RealtimeChannelPort(ABC):
    """Pub/sub transport where every event is scoped by a key (session or appointment id)."""

    @abstractmethod
    def subscribe(self, event: str, key: str, handler: EventHandler) -> Subscription:
        raise NotImplementedError

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription. Unknown or already removed subscriptions are ignored."""
        raise NotImplementedError

    @abstractmethod
    def emit(self, event: str, key: str, payload: dict[str, Any]) -> None:
        raise NotImplementedError
