from __future__ import annotations

from typing import Any

from app.application.ports.realtime import (
    CHAT_MESSAGE,
    JOIN_CHAT_ROOM,
    LEAVE_CHAT_ROOM,
    USER_TYPING,
    RealtimeChannelPort,
)


class ChatRelay:
    """Pass-through for appointment chat events; payloads are not interpreted."""

    def __init__(self, channel: RealtimeChannelPort) -> None:
        self._channel = channel

    def join_room(self, appointment_id: str, user_id: str) -> None:
        self._channel.emit(JOIN_CHAT_ROOM, appointment_id, {"appointmentId": appointment_id, "userId": user_id})

    def leave_room(self, appointment_id: str, user_id: str) -> None:
        self._channel.emit(LEAVE_CHAT_ROOM, appointment_id, {"appointmentId": appointment_id, "userId": user_id})

    def send_message(self, appointment_id: str, user_id: str, message: Any) -> None:
        self._channel.emit(
            CHAT_MESSAGE,
            appointment_id,
            {"appointmentId": appointment_id, "userId": user_id, "message": message},
        )

    def set_typing(self, appointment_id: str, user_id: str, typing: bool) -> None:
        self._channel.emit(
            USER_TYPING,
            appointment_id,
            {"appointmentId": appointment_id, "userId": user_id, "typing": typing},
        )
