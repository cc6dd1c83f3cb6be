from __future__ import annotations

import logging

from app.application.ports.notifier import NotifierPort
from app.application.ports.realtime import NOTIFICATION, RealtimeChannelPort


class ChannelNotifier(NotifierPort):
    """Publishes user-visible notices on the session's realtime channel."""

    def __init__(self, channel: RealtimeChannelPort) -> None:
        self._channel = channel
        self._logger = logging.getLogger(__name__)

    def notify(self, session_id: str, message: str, level: str = "info") -> None:
        self._logger.info(message, extra={"session_id": session_id, "reason": level})
        self._channel.emit(NOTIFICATION, session_id, {"message": message, "level": level})
