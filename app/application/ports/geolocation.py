from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.geo import GeoPoint


class GeolocationPort(ABC):
    @abstractmethod
    async def locate(self) -> GeoPoint:
        """Current client position. Raises GeolocationUnavailable when unknown."""
        raise NotImplementedError
