from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from app.application.ports.realtime import (
    CLIENT_LOCATION_UPDATE,
    CLIENT_PROXIMITY_ALERT,
    RealtimeChannelPort,
)
from app.application.utils.geo_math import blur_location, distance_meters
from app.domain.entities.geo import GeoPoint


@dataclass
class _Tracking:
    stylist_location: GeoPoint | None
    alert_sent: bool = False


class LocationSharingUseCase:
    """
    Relays a client's live position for an appointment.

    Subscribers only ever see a blurred point. The true distance to the
    stylist is used once, to raise a single proximity alert.
    """

    def __init__(
        self,
        channel: RealtimeChannelPort,
        blur_meters: float = 100.0,
        proximity_meters: float = 3000.0,
        rng: random.Random | None = None,
    ) -> None:
        self._channel = channel
        self._blur_meters = blur_meters
        self._proximity_meters = proximity_meters
        self._rng = rng
        self._tracked: dict[str, _Tracking] = {}
        self._logger = logging.getLogger(__name__)

    def start_tracking(self, appointment_id: str, stylist_location: GeoPoint | None) -> None:
        self._tracked[appointment_id] = _Tracking(stylist_location=stylist_location)

    def stop_tracking(self, appointment_id: str) -> None:
        self._tracked.pop(appointment_id, None)

    def is_tracking(self, appointment_id: str) -> bool:
        return appointment_id in self._tracked

    def share_client_location(self, appointment_id: str, location: GeoPoint) -> float | None:
        """Publish a blurred update. Returns the distance to the stylist in metres when known."""
        blurred = blur_location(location, self._blur_meters, self._rng)
        self._channel.emit(
            CLIENT_LOCATION_UPDATE,
            appointment_id,
            {"appointmentId": appointment_id, "lat": blurred.lat, "lng": blurred.lng},
        )

        tracking = self._tracked.get(appointment_id)
        if tracking is None or tracking.stylist_location is None:
            return None

        distance = distance_meters(location, tracking.stylist_location)
        if not tracking.alert_sent and distance <= self._proximity_meters:
            tracking.alert_sent = True
            self._channel.emit(
                CLIENT_PROXIMITY_ALERT,
                appointment_id,
                {"appointmentId": appointment_id, "distance": distance},
            )
            self._logger.info("Proximity alert sent", extra={"appointment_id": appointment_id})
        return distance
