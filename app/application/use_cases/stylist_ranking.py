from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Iterable, Sequence

from app.application.ports.scheduler import ClockPort
from app.application.utils.availability import flexibility_score
from app.application.utils.geo_math import distance_miles
from app.domain.entities.geo import GeoPoint
from app.domain.entities.stylist import CandidateStylist

FLEXIBILITY_WEIGHT = 0.40
DISTANCE_WEIGHT = 0.30
RATING_WEIGHT = 0.25
NEW_STYLIST_BONUS = 5
MAX_RATING = 5.0
SECONDS_PER_DAY = 24 * 60 * 60


class SortMode(str, Enum):
    match = "match"
    rating = "rating"
    distance = "distance"
    new = "new"


@dataclass(frozen=True)
class RankingRequest:
    date: date
    time: time


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class StylistRanker:
    def __init__(
        self,
        clock: ClockPort,
        max_distance_miles: float = 25.0,
        new_stylist_days: int = 21,
    ) -> None:
        self._clock = clock
        self._max_distance_miles = max_distance_miles
        self._new_stylist_days = new_stylist_days
        self._logger = logging.getLogger(__name__)

    def rank(
        self,
        candidates: Iterable[CandidateStylist],
        request: RankingRequest,
        user_location: GeoPoint | None,
    ) -> list[CandidateStylist]:
        """
        Score every candidate and order them by match score, best first.
        Candidates with equal scores keep their input order.
        """
        now = self._clock.now()
        scored = [self._score(candidate, request, user_location, now) for candidate in candidates]
        ranked = sorted(scored, key=lambda stylist: -stylist.match_score)
        self._logger.debug(
            "Ranked stylists",
            extra={"count": len(ranked), "top": ranked[0].id if ranked else None},
        )
        return ranked

    def _score(
        self,
        candidate: CandidateStylist,
        request: RankingRequest,
        user_location: GeoPoint | None,
        now: datetime,
    ) -> CandidateStylist:
        if candidate.location is not None and user_location is not None:
            candidate.distance_miles = distance_miles(candidate.location, user_location)

        candidate.flexibility_score = flexibility_score(candidate.availability, request.date, request.time)
        candidate.distance_score = self.distance_score(candidate.distance_miles)
        candidate.rating_score = max(0.0, min(candidate.rating_average, MAX_RATING)) / MAX_RATING * 100
        candidate.is_new = self.is_new(candidate.created_at, now)

        score = (
            candidate.flexibility_score * FLEXIBILITY_WEIGHT
            + candidate.distance_score * DISTANCE_WEIGHT
            + candidate.rating_score * RATING_WEIGHT
        )
        if candidate.is_new:
            score += NEW_STYLIST_BONUS

        candidate.match_score = round_half_up(score)
        return candidate

    def distance_score(self, miles: float | None) -> float:
        if miles is None:
            return 0.0
        return max(0.0, (self._max_distance_miles - miles) / self._max_distance_miles * 100)

    def is_new(self, created_at: datetime | None, now: datetime) -> bool:
        if created_at is None:
            return False
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        days_since_signup = (now - created_at).total_seconds() / SECONDS_PER_DAY
        return days_since_signup <= self._new_stylist_days


def sort_stylists(stylists: Sequence[CandidateStylist], mode: SortMode | str) -> list[CandidateStylist]:
    """Reorder an already scored list. Never re-scores; ties keep their order."""
    mode = SortMode(mode)
    if mode == SortMode.rating:
        return sorted(stylists, key=lambda s: -s.rating_average)
    if mode == SortMode.distance:
        return sorted(
            stylists,
            key=lambda s: (s.distance_miles is None, s.distance_miles or 0.0),
        )
    if mode == SortMode.new:
        return sorted(stylists, key=lambda s: not s.is_new)
    return sorted(stylists, key=lambda s: -s.match_score)


def filter_stylists(stylists: Sequence[CandidateStylist], query: str | None) -> list[CandidateStylist]:
    """Case-insensitive substring match over name, specialties and bio."""
    needle = (query or "").lower()
    if not needle:
        return list(stylists)
    return [
        stylist
        for stylist in stylists
        if needle in f"{stylist.display_name} {' '.join(stylist.specialties)} {stylist.bio or ''}".lower()
    ]
