from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time

from app.domain.entities.geo import GeoPoint


@dataclass(frozen=True)
class AvailabilitySlot:
    date: date
    time: time


@dataclass
class CandidateStylist:
    id: str
    display_name: str
    rating_average: float = 0.0  # 0..5
    total_reviews: int = 0
    distance_miles: float | None = None
    created_at: datetime | None = None
    specialties: list[str] = field(default_factory=list)
    availability: list[AvailabilitySlot] = field(default_factory=list)
    bio: str = ""
    location: GeoPoint | None = None
    profile_picture_url: str | None = None
    # Assigned by the ranker, overwritten on every ranking pass
    flexibility_score: float = 0.0
    distance_score: float = 0.0
    rating_score: float = 0.0
    match_score: int = 0
    is_new: bool = False
