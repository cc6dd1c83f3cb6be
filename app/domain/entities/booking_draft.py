from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum

from app.domain.entities.geo import GeoPoint
from app.domain.entities.service import ServiceRef


class PaymentMethod(str, Enum):
    paypal = "paypal"
    card = "card"


class BookingStep(str, Enum):
    selecting_service = "selecting_service"
    selecting_date_time = "selecting_date_time"
    selecting_stylist = "selecting_stylist"
    confirming = "confirming"
    submitted = "submitted"
    cancelled = "cancelled"


# Forward order of the interactive steps; submitted/cancelled are terminal.
STEP_ORDER: tuple[BookingStep, ...] = (
    BookingStep.selecting_service,
    BookingStep.selecting_date_time,
    BookingStep.selecting_stylist,
    BookingStep.confirming,
)


@dataclass
class BookingDraft:
    category: str | None = None
    service: ServiceRef | None = None
    date: date | None = None
    time: time | None = None
    flexible_time: bool = True  # ±15 min tolerance
    stylist_id: str | None = None
    location: GeoPoint | None = None
    notes: str = ""
    payment_method: PaymentMethod | None = None

    def missing_fields(self, step: BookingStep) -> list[str]:
        """Required fields that block leaving ``step``."""
        if step == BookingStep.selecting_service:
            return [] if self.service else ["service"]
        if step == BookingStep.selecting_date_time:
            return [name for name in ("date", "time") if getattr(self, name) is None]
        if step == BookingStep.selecting_stylist:
            return [] if self.stylist_id else ["stylist_id"]
        if step == BookingStep.confirming:
            missing = [
                *self.missing_fields(BookingStep.selecting_service),
                *self.missing_fields(BookingStep.selecting_date_time),
                *self.missing_fields(BookingStep.selecting_stylist),
            ]
            if self.payment_method is None:
                missing.append("payment_method")
            return missing
        return []
