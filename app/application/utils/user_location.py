from __future__ import annotations

import asyncio
import logging

from app.application.exceptions import GeolocationUnavailable
from app.application.ports.geolocation import GeolocationPort
from app.domain.entities.geo import GeoPoint

DEFAULT_LOCATION = GeoPoint(lat=40.7128, lng=-74.0060)

logger = logging.getLogger(__name__)


async def resolve_user_location(
    provider: GeolocationPort | None,
    timeout_seconds: float = 5.0,
    default: GeoPoint = DEFAULT_LOCATION,
) -> GeoPoint:
    """Ask the provider for a position, falling back to ``default`` on failure or timeout."""
    if provider is None:
        return default
    try:
        return await asyncio.wait_for(provider.locate(), timeout=timeout_seconds)
    except (GeolocationUnavailable, asyncio.TimeoutError) as e:
        logger.info(
            "Geolocation unavailable, using default location",
            extra={"reason": str(e) or type(e).__name__},
        )
        return default
