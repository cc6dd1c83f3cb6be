from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable

from app.application.ports.notifier import NotifierPort
from app.application.ports.realtime import APPOINTMENT_CONFIRMED, RealtimeChannelPort, Subscription
from app.application.ports.scheduler import ClockPort, SchedulerPort, TimerHandle
from app.domain.entities.confirmation import ConfirmationState, ConfirmationTimer

CONFIRMED_MESSAGE = "Appointment confirmed! You will receive booking details shortly."
EXPIRED_MESSAGE = "Appointment request expired. Please try booking with another stylist."


@dataclass
class _LiveTimer:
    timer: ConfirmationTimer
    subscription: Subscription | None = None
    handles: list[TimerHandle] = field(default_factory=list)


class ConfirmationSupervisor:
    """
    Waits for a stylist to accept a pending appointment.

    The stylist gets a soft window, then a grace window announced to the
    client, then the request expires. An ``appointment_confirmed`` event in
    either window wins. Whichever of event and timer fires second finds the
    timer already resolved and does nothing.
    """

    def __init__(
        self,
        scheduler: SchedulerPort,
        channel: RealtimeChannelPort,
        notifier: NotifierPort,
        clock: ClockPort,
        session_id: str,
        on_resolved: Callable[[ConfirmationTimer], None] | None = None,
        soft_seconds: float = 300.0,
        grace_seconds: float = 300.0,
    ) -> None:
        self._scheduler = scheduler
        self._channel = channel
        self._notifier = notifier
        self._clock = clock
        self._session_id = session_id
        self._on_resolved = on_resolved
        self._soft_seconds = soft_seconds
        self._grace_seconds = grace_seconds
        self._live: dict[str, _LiveTimer] = {}
        self._logger = logging.getLogger(__name__)

    def start(self, appointment_id: str) -> ConfirmationTimer:
        live = self._live.get(appointment_id)
        if live is not None:
            self._logger.warning(
                "Confirmation timers already running",
                extra={"session_id": self._session_id, "appointment_id": appointment_id},
            )
            return live.timer

        submitted_at = self._clock.now()
        soft_deadline = submitted_at + timedelta(seconds=self._soft_seconds)
        timer = ConfirmationTimer(
            appointment_id=appointment_id,
            submitted_at=submitted_at,
            soft_deadline=soft_deadline,
            hard_deadline=soft_deadline + timedelta(seconds=self._grace_seconds),
        )
        live = _LiveTimer(timer=timer)
        self._live[appointment_id] = live

        live.subscription = self._channel.subscribe(APPOINTMENT_CONFIRMED, appointment_id, self.handle_confirmed)
        live.handles.append(
            self._scheduler.call_later(self._soft_seconds, lambda: self._on_soft_elapsed(appointment_id))
        )
        self._logger.info(
            "Awaiting stylist confirmation",
            extra={"session_id": self._session_id, "appointment_id": appointment_id},
        )
        return timer

    def get(self, appointment_id: str) -> ConfirmationTimer | None:
        live = self._live.get(appointment_id)
        return live.timer if live else None

    def handle_confirmed(self, payload: dict[str, Any]) -> None:
        appointment_id = str(payload.get("appointmentId") or payload.get("appointment_id") or "")
        live = self._live.get(appointment_id)
        if live is None or not live.timer.is_live:
            self._logger.info(
                "Ignoring confirmation for resolved appointment",
                extra={"session_id": self._session_id, "appointment_id": appointment_id},
            )
            return

        self._resolve(live, ConfirmationState.confirmed, CONFIRMED_MESSAGE, "success")

    def cancel(self, appointment_id: str | None = None) -> None:
        """Release timers and subscriptions for one appointment, or all of them."""
        ids = [appointment_id] if appointment_id is not None else list(self._live)
        for key in ids:
            live = self._live.get(key)
            if live is None:
                continue
            if live.timer.is_live:
                live.timer.state = ConfirmationState.cancelled
            self._release(live)
            del self._live[key]

    @property
    def active_count(self) -> int:
        return sum(1 for live in self._live.values() if live.handles or live.subscription)

    def _on_soft_elapsed(self, appointment_id: str) -> None:
        live = self._live.get(appointment_id)
        if live is None or live.timer.state != ConfirmationState.awaiting_soft_confirm:
            return

        live.timer.state = ConfirmationState.awaiting_hard_confirm
        minutes = max(1, round(self._grace_seconds / 60))
        self._notifier.notify(self._session_id, f"Stylist has {minutes} more minutes to respond", "info")
        live.handles.append(
            self._scheduler.call_later(self._grace_seconds, lambda: self._on_grace_elapsed(appointment_id))
        )
        self._logger.info(
            "Confirmation grace period started",
            extra={"session_id": self._session_id, "appointment_id": appointment_id},
        )

    def _on_grace_elapsed(self, appointment_id: str) -> None:
        live = self._live.get(appointment_id)
        if live is None or live.timer.state != ConfirmationState.awaiting_hard_confirm:
            return

        self._resolve(live, ConfirmationState.expired, EXPIRED_MESSAGE, "warning")

    def _resolve(self, live: _LiveTimer, state: ConfirmationState, message: str, level: str) -> None:
        live.timer.state = state
        self._release(live)
        self._notifier.notify(self._session_id, message, level)
        self._logger.info(
            "Confirmation resolved",
            extra={
                "session_id": self._session_id,
                "appointment_id": live.timer.appointment_id,
                "reason": state.value,
            },
        )
        if self._on_resolved is not None:
            self._on_resolved(live.timer)

    def _release(self, live: _LiveTimer) -> None:
        for handle in live.handles:
            handle.cancel()
        live.handles.clear()
        if live.subscription is not None:
            self._channel.unsubscribe(live.subscription)
            live.subscription = None
