from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: str = ""
    icon: str | None = None


@dataclass(frozen=True)
class ServiceRef:
    id: str
    name: str
    base_price: float
    duration_minutes: int
    requires_consultation: bool = False
    booking_advance_hours: int = 0
    category: str | None = None
    description: str = ""
