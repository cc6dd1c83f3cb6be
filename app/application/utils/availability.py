from __future__ import annotations

from datetime import date, time
from typing import Iterable

from app.domain.entities.stylist import AvailabilitySlot

NEAR_SLOT_WINDOW_MINUTES = 30


def minutes_since_midnight(value: time | str) -> int:
    """Accepts a ``datetime.time`` or an ``HH:MM`` string."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    hours, minutes = value.strip().split(":")[:2]
    return int(hours) * 60 + int(minutes)


def flexibility_score(
    availability: Iterable[AvailabilitySlot],
    requested_date: date,
    requested_time: time | str,
    window_minutes: int = NEAR_SLOT_WINDOW_MINUTES,
) -> float:
    """
    Share of the stylist's open slots on the requested date that fall within
    ``window_minutes`` of the requested time, on a 0..100 scale.
    No slots on that date scores 0; the score never excludes a stylist.
    """
    on_date = [slot for slot in availability if slot.date == requested_date]
    if not on_date:
        return 0.0

    requested = minutes_since_midnight(requested_time)
    near = [slot for slot in on_date if abs(minutes_since_midnight(slot.time) - requested) <= window_minutes]
    return min(100.0, len(near) / len(on_date) * 100)
