from __future__ import annotations

import math
import random

from app.domain.entities.geo import GeoPoint

EARTH_RADIUS_METERS = 6_371_000.0
EARTH_RADIUS_MILES = 3_959.0
METERS_PER_DEGREE = 111_111.0


def haversine(a: GeoPoint, b: GeoPoint, radius: float) -> float:
    """Great-circle distance between two points, in the unit of ``radius``."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    d_phi = math.radians(b.lat - a.lat)
    d_lambda = math.radians(b.lng - a.lng)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return radius * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    return haversine(a, b, EARTH_RADIUS_METERS)


def distance_miles(a: GeoPoint, b: GeoPoint) -> float:
    return haversine(a, b, EARTH_RADIUS_MILES)


def blur_location(point: GeoPoint, radius_meters: float, rng: random.Random | None = None) -> GeoPoint:
    """
    Offset a point by a random angle and distance within ``radius_meters``.
    Only for display to third parties, never for routing math.
    """
    rng = rng or random
    radius_degrees = radius_meters / METERS_PER_DEGREE
    angle = rng.uniform(0, 2 * math.pi)
    offset = rng.uniform(0, radius_degrees)
    return GeoPoint(
        lat=point.lat + offset * math.cos(angle),
        lng=point.lng + offset * math.sin(angle),
    )
