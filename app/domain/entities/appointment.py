from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from app.domain.entities.booking_draft import PaymentMethod


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"


@dataclass(frozen=True)
class SearchRequest:
    category: str | None
    service_id: str
    date: date
    time: time
    flexible_time: bool
    lat: float
    lng: float
    max_distance_miles: float


@dataclass(frozen=True)
class AppointmentRequest:
    service_id: str
    stylist_id: str
    scheduled_at: datetime
    flexible_time: bool
    notes: str
    payment_method: PaymentMethod


@dataclass(frozen=True)
class AppointmentResult:
    status: AppointmentStatus
    appointment_id: str
    appointment: dict[str, Any] = field(default_factory=dict)
