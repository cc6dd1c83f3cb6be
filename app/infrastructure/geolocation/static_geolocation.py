from __future__ import annotations

from app.application.exceptions import GeolocationUnavailable
from app.application.ports.geolocation import GeolocationPort
from app.domain.entities.geo import GeoPoint


class StaticGeolocation(GeolocationPort):
    """Serves a position reported ahead of time, e.g. a stored home address."""

    def __init__(self, point: GeoPoint | None = None) -> None:
        self._point = point

    async def locate(self) -> GeoPoint:
        if self._point is None:
            raise GeolocationUnavailable("No position reported")
        return self._point
