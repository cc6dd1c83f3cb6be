from __future__ import annotations

import itertools
import logging
from datetime import datetime, time, timedelta, timezone

from app.application.ports.appointments import AppointmentGatewayPort
from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.ports.stylist_search import StylistSearchPort
from app.application.utils.geo_math import distance_miles
from app.domain.entities.appointment import (
    AppointmentRequest,
    AppointmentResult,
    AppointmentStatus,
    SearchRequest,
)
from app.domain.entities.geo import GeoPoint
from app.domain.entities.service import Category, ServiceRef
from app.domain.entities.stylist import AvailabilitySlot, CandidateStylist

MOCK_CATEGORIES = [
    Category(id="hair", name="Hair Services", description="Cuts, styling, coloring, treatments", icon="fas fa-cut"),
    Category(id="makeup", name="Makeup Services", description="Professional makeup for any occasion", icon="fas fa-palette"),
    Category(id="nails", name="Nail Services", description="Complete nail care and artistry", icon="fas fa-hand-sparkles"),
]

MOCK_SERVICES = [
    ServiceRef(id="haircut", name="Haircut & Style", base_price=45.0, duration_minutes=60, category="hair"),
    ServiceRef(id="color", name="Full Color", base_price=120.0, duration_minutes=120, requires_consultation=True, booking_advance_hours=24, category="hair"),
    ServiceRef(id="bridal", name="Bridal Makeup", base_price=150.0, duration_minutes=90, booking_advance_hours=48, category="makeup"),
    ServiceRef(id="manicure", name="Gel Manicure", base_price=35.0, duration_minutes=45, category="nails"),
]

# (id, name, rating, reviews, lat, lng, days since signup, specialties, slot times, bio)
MOCK_STYLISTS = [
    ("st-1", "Maria Lopez", 4.9, 212, 40.7306, -73.9866, 400, ["hair", "color"], ["09:00", "09:30", "14:00"], "Color specialist with 10 years of salon experience."),
    ("st-2", "Jade Kim", 4.6, 87, 40.6782, -73.9442, 10, ["makeup", "bridal"], ["10:00", "11:00"], "Bridal and editorial makeup artist."),
    ("st-3", "Ana Torres", 4.2, 34, 40.7580, -73.9855, 60, ["hair", "nails"], ["09:15", "16:00", "17:00"], "Mobile stylist covering Midtown."),
    ("st-4", "Chloe Martin", 5.0, 9, 41.0534, -73.5387, 5, ["nails"], ["12:00"], "Nail art and gel extensions."),
]


class MockMarketplace(StylistSearchPort, AppointmentGatewayPort, ServiceCatalogPort):
    """In-memory marketplace for local development. Appointments start out pending."""

    def __init__(self, confirm_immediately: bool = False) -> None:
        self._confirm_immediately = confirm_immediately
        self._appointments: dict[str, AppointmentRequest] = {}
        self._ids = itertools.count(1)
        self._logger = logging.getLogger(__name__)

    async def get_service_categories(self) -> list[Category]:
        return list(MOCK_CATEGORIES)

    async def get_services_by_category(self, category: str) -> list[ServiceRef]:
        return [service for service in MOCK_SERVICES if service.category == category]

    async def search_stylists(self, request: SearchRequest) -> list[CandidateStylist]:
        origin = GeoPoint(lat=request.lat, lng=request.lng)
        now = datetime.now(timezone.utc)
        stylists: list[CandidateStylist] = []
        for stylist_id, name, rating, reviews, lat, lng, age_days, specialties, slot_times, bio in MOCK_STYLISTS:
            location = GeoPoint(lat=lat, lng=lng)
            miles = distance_miles(origin, location)
            if miles > request.max_distance_miles:
                continue
            if request.category and request.category not in specialties:
                continue
            stylists.append(
                CandidateStylist(
                    id=stylist_id,
                    display_name=name,
                    rating_average=rating,
                    total_reviews=reviews,
                    distance_miles=miles,
                    created_at=now - timedelta(days=age_days),
                    specialties=list(specialties),
                    availability=[
                        AvailabilitySlot(date=request.date, time=time.fromisoformat(slot)) for slot in slot_times
                    ],
                    bio=bio,
                    location=location,
                )
            )
        return stylists

    async def create_appointment(self, request: AppointmentRequest) -> AppointmentResult:
        appointment_id = f"mock_appt_{next(self._ids)}"
        self._appointments[appointment_id] = request
        status = AppointmentStatus.confirmed if self._confirm_immediately else AppointmentStatus.pending
        self._logger.info(
            "Mock appointment created",
            extra={"appointment_id": appointment_id, "stylist_id": request.stylist_id, "reason": status.value},
        )
        return AppointmentResult(
            status=status,
            appointment_id=appointment_id,
            appointment={
                "id": appointment_id,
                "service_id": request.service_id,
                "stylist_id": request.stylist_id,
                "scheduled_at": request.scheduled_at.isoformat(),
                "status": status.value,
            },
        )
