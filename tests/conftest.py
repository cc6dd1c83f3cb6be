from __future__ import annotations

import copy
from datetime import date, datetime, time, timezone

import pytest

from app.application.exceptions import MarketplaceUpstreamError
from app.application.ports.appointments import AppointmentGatewayPort
from app.application.ports.notifier import NotifierPort
from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.ports.stylist_search import StylistSearchPort
from app.application.use_cases.booking_workflow import BookingWorkflow, WorkflowConfig
from app.domain.entities.appointment import (
    AppointmentRequest,
    AppointmentResult,
    AppointmentStatus,
    SearchRequest,
)
from app.domain.entities.service import Category, ServiceRef
from app.domain.entities.stylist import AvailabilitySlot, CandidateStylist
from app.infrastructure.realtime.memory_channel import InMemoryRealtimeChannel
from app.infrastructure.scheduling.manual_scheduler import ManualScheduler

NOW = datetime(2024, 3, 1, tzinfo=timezone.utc)
BOOKING_DATE = date(2024, 3, 5)
BOOKING_TIME = time(9, 15)

HAIRCUT = ServiceRef(id="haircut", name="Haircut & Style", base_price=45.0, duration_minutes=60, category="hair")


def make_stylist(stylist_id: str, **overrides) -> CandidateStylist:
    fields = {
        "display_name": f"Stylist {stylist_id}",
        "rating_average": 4.0,
        "total_reviews": 10,
        "distance_miles": 5.0,
        "created_at": datetime(2023, 1, 1, tzinfo=timezone.utc),
        "specialties": ["hair"],
        "availability": [AvailabilitySlot(BOOKING_DATE, time(9, 0))],
        "bio": "",
    }
    fields.update(overrides)
    return CandidateStylist(id=stylist_id, **fields)


class RecordingNotifier(NotifierPort):
    def __init__(self) -> None:
        self.notices: list[tuple[str, str, str]] = []

    def notify(self, session_id: str, message: str, level: str = "info") -> None:
        self.notices.append((session_id, message, level))

    def messages(self) -> list[str]:
        return [message for _, message, _ in self.notices]


class FakeMarketplace(StylistSearchPort, AppointmentGatewayPort, ServiceCatalogPort):
    def __init__(self) -> None:
        self.stylists: list[CandidateStylist] = [
            make_stylist("a", rating_average=4.5),
            make_stylist("b", rating_average=5.0, distance_miles=1.0),
        ]
        self.services = [HAIRCUT]
        self.status = AppointmentStatus.pending
        self.fail_search = False
        self.fail_submit = False
        self.fail_catalog = False
        self.search_requests: list[SearchRequest] = []
        self.appointment_requests: list[AppointmentRequest] = []

    async def get_service_categories(self) -> list[Category]:
        if self.fail_catalog:
            raise MarketplaceUpstreamError("catalog down")
        return [Category(id="hair", name="Hair Services")]

    async def get_services_by_category(self, category: str) -> list[ServiceRef]:
        if self.fail_catalog:
            raise MarketplaceUpstreamError("catalog down")
        return [s for s in self.services if s.category == category]

    async def search_stylists(self, request: SearchRequest) -> list[CandidateStylist]:
        self.search_requests.append(request)
        if self.fail_search:
            raise MarketplaceUpstreamError("search down")
        # Fresh instances per search, like a real response
        return copy.deepcopy(self.stylists)

    async def create_appointment(self, request: AppointmentRequest) -> AppointmentResult:
        self.appointment_requests.append(request)
        if self.fail_submit:
            raise MarketplaceUpstreamError("appointments down")
        appointment_id = f"appt-{len(self.appointment_requests)}"
        return AppointmentResult(
            status=self.status,
            appointment_id=appointment_id,
            appointment={"id": appointment_id, "status": self.status.value},
        )


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler(start=NOW)


@pytest.fixture
def channel() -> InMemoryRealtimeChannel:
    return InMemoryRealtimeChannel()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def marketplace() -> FakeMarketplace:
    return FakeMarketplace()


@pytest.fixture
def workflow(marketplace, channel, scheduler, notifier) -> BookingWorkflow:
    wf = BookingWorkflow(
        session_id="session-1",
        stylist_search=marketplace,
        appointments=marketplace,
        catalog=marketplace,
        channel=channel,
        scheduler=scheduler,
        clock=scheduler,
        notifier=notifier,
        config=WorkflowConfig(geolocation_timeout_seconds=0.05),
    )
    wf.start("hair")
    return wf
