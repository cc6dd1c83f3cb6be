from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable

from app.application.exceptions import (
    InvalidTransition,
    MarketplaceContractError,
    MarketplaceUpstreamError,
    SearchFailure,
    SubmissionFailure,
    ValidationError,
)
from app.application.ports.appointments import AppointmentGatewayPort
from app.application.ports.geolocation import GeolocationPort
from app.application.ports.notifier import NotifierPort
from app.application.ports.realtime import RealtimeChannelPort
from app.application.ports.scheduler import ClockPort, SchedulerPort
from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.ports.stylist_search import StylistSearchPort
from app.application.use_cases.confirmation import CONFIRMED_MESSAGE, ConfirmationSupervisor
from app.application.use_cases.stylist_ranking import (
    RankingRequest,
    SortMode,
    StylistRanker,
    filter_stylists,
    sort_stylists,
)
from app.application.utils.pricing import calculate_total_price
from app.application.utils.user_location import DEFAULT_LOCATION, resolve_user_location
from app.domain.entities.appointment import (
    AppointmentRequest,
    AppointmentResult,
    AppointmentStatus,
    SearchRequest,
)
from app.domain.entities.booking_draft import STEP_ORDER, BookingDraft, BookingStep, PaymentMethod
from app.domain.entities.confirmation import ConfirmationState, ConfirmationTimer
from app.domain.entities.geo import GeoPoint
from app.domain.entities.price import PriceBreakdown
from app.domain.entities.service import Category, ServiceRef
from app.domain.entities.stylist import CandidateStylist

DEFAULT_CATEGORIES = (
    Category(id="hair", name="Hair Services", description="Cuts, styling, coloring, treatments", icon="fas fa-cut"),
    Category(id="makeup", name="Makeup Services", description="Professional makeup for any occasion", icon="fas fa-palette"),
    Category(id="nails", name="Nail Services", description="Complete nail care and artistry", icon="fas fa-hand-sparkles"),
    Category(id="skincare", name="Skincare Services", description="Rejuvenating facial treatments", icon="fas fa-spa"),
)

VALIDATION_MESSAGES = {
    "service": "Please select a service",
    "date": "Please select date and time",
    "time": "Please select date and time",
    "stylist_id": "Please select a stylist",
    "payment_method": "Please select a payment method",
}

SEARCH_FAILED_MESSAGE = "Failed to load stylists. Please try again."
SERVICES_FAILED_MESSAGE = "Failed to load services. Please try again."
SUBMISSION_FAILED_MESSAGE = "Booking failed. Please try again."
PENDING_MESSAGE = "Appointment request sent! Waiting for stylist confirmation..."

TERMINAL_STEPS = frozenset({BookingStep.submitted, BookingStep.cancelled})
ACTIVE_CONFIRMATION_STATES = frozenset(
    {ConfirmationState.awaiting_soft_confirm, ConfirmationState.awaiting_hard_confirm, ConfirmationState.confirmed}
)


@dataclass(frozen=True)
class WorkflowConfig:
    search_radius_miles: float = 25.0
    default_location: GeoPoint = DEFAULT_LOCATION
    geolocation_timeout_seconds: float = 5.0
    confirmation_soft_seconds: float = 300.0
    confirmation_grace_seconds: float = 300.0
    new_stylist_days: int = 21
    travel_fee: float = 10.0
    platform_fee_rate: float = 0.10


class BookingWorkflow:
    """
    One client's booking attempt: service, date/time, stylist, confirm.

    Every forward step is gated on the draft fields it needs. Entering the
    stylist step searches and ranks stylists; advancing from the confirm step
    submits the appointment and, for pending requests, supervises the
    stylist's confirmation window until it resolves.
    """

    def __init__(
        self,
        session_id: str,
        stylist_search: StylistSearchPort,
        appointments: AppointmentGatewayPort,
        catalog: ServiceCatalogPort,
        channel: RealtimeChannelPort,
        scheduler: SchedulerPort,
        clock: ClockPort,
        notifier: NotifierPort,
        geolocation: GeolocationPort | None = None,
        config: WorkflowConfig | None = None,
        on_closed: Callable[["BookingWorkflow"], None] | None = None,
    ) -> None:
        self.session_id = session_id
        self._stylist_search = stylist_search
        self._appointments = appointments
        self._catalog = catalog
        self._notifier = notifier
        self._geolocation = geolocation
        self._config = config or WorkflowConfig()
        self._on_closed = on_closed
        self._ranker = StylistRanker(
            clock=clock,
            max_distance_miles=self._config.search_radius_miles,
            new_stylist_days=self._config.new_stylist_days,
        )
        self._confirmation = ConfirmationSupervisor(
            scheduler=scheduler,
            channel=channel,
            notifier=notifier,
            clock=clock,
            session_id=session_id,
            on_resolved=self._on_confirmation_resolved,
            soft_seconds=self._config.confirmation_soft_seconds,
            grace_seconds=self._config.confirmation_grace_seconds,
        )
        self._logger = logging.getLogger(__name__)

        self.step = BookingStep.selecting_service
        self.draft = BookingDraft()
        self.services: list[ServiceRef] = []
        self.working_set: list[CandidateStylist] = []
        self.search_error: SearchFailure | None = None
        self.selected_stylist: CandidateStylist | None = None
        self.result: AppointmentResult | None = None
        self.confirmation: ConfirmationTimer | None = None

    # Lifecycle

    def start(self, category: str | None = None) -> None:
        """Begin a fresh attempt, optionally pre-seeded with a category."""
        self._confirmation.cancel()
        if self.result is not None and self._on_closed is not None:
            self._on_closed(self)
        self.step = BookingStep.selecting_service
        self.draft = BookingDraft(category=category)
        self.services = []
        self.working_set = []
        self.search_error = None
        self.selected_stylist = None
        self.result = None
        self.confirmation = None
        self._logger.info("Booking started", extra={"session_id": self.session_id, "step": self.step.value})

    def close(self) -> None:
        """Tear down the attempt: stop timers, drop channel subscriptions, discard the draft."""
        self._confirmation.cancel()
        self.draft = BookingDraft()
        self.working_set = []
        self.step = BookingStep.cancelled
        self._logger.info("Booking closed", extra={"session_id": self.session_id, "step": self.step.value})
        if self._on_closed is not None:
            self._on_closed(self)

    # Navigation

    async def advance(self, location: GeoPoint | None = None) -> BookingStep:
        self._ensure_interactive()
        self._validate(self.step)

        if self.step == BookingStep.confirming:
            await self.submit()
            return self.step

        self.step = STEP_ORDER[STEP_ORDER.index(self.step) + 1]
        self._logger.info("Booking step advanced", extra={"session_id": self.session_id, "step": self.step.value})

        if self.step == BookingStep.selecting_stylist:
            await self.load_stylists(location)
        return self.step

    def back(self) -> BookingStep:
        self._ensure_interactive()
        index = STEP_ORDER.index(self.step)
        if index > 0:
            self.step = STEP_ORDER[index - 1]
        return self.step

    # Service step

    async def load_categories(self) -> list[Category]:
        try:
            categories = await self._catalog.get_service_categories()
        except (MarketplaceUpstreamError, MarketplaceContractError) as e:
            self._logger.warning(
                "Failed to load service categories, using defaults",
                extra={"session_id": self.session_id, "error": str(e)},
            )
            return list(DEFAULT_CATEGORIES)
        return categories or list(DEFAULT_CATEGORIES)

    async def load_services(self, category: str) -> list[ServiceRef]:
        self._ensure_interactive()
        self.draft.category = category
        try:
            self.services = await self._catalog.get_services_by_category(category)
        except (MarketplaceUpstreamError, MarketplaceContractError) as e:
            self._logger.error(
                "Failed to load services",
                extra={"session_id": self.session_id, "error": str(e)},
            )
            self._notifier.notify(self.session_id, SERVICES_FAILED_MESSAGE, "error")
            self.services = []
        return self.services

    async def choose_service(self, service_id: str, category: str | None = None) -> ServiceRef:
        self._ensure_interactive()
        category = category or self.draft.category
        if not category:
            raise ValidationError("category", "Please select a category")

        if category != self.draft.category or not self.services:
            await self.load_services(category)

        service = next((s for s in self.services if s.id == service_id), None)
        if service is None:
            raise ValidationError("service", VALIDATION_MESSAGES["service"])

        self.draft.service = service
        return service

    # Date/time step and free-form fields

    def set_date_time(self, on: date, at: time) -> None:
        self._ensure_interactive()
        self.draft.date = on
        self.draft.time = at

    def set_flexible_time(self, enabled: bool) -> None:
        self._ensure_interactive()
        self.draft.flexible_time = enabled

    def set_notes(self, notes: str) -> None:
        self._ensure_interactive()
        self.draft.notes = notes

    def set_location(self, location: GeoPoint | None) -> None:
        self._ensure_interactive()
        self.draft.location = location

    def set_payment_method(self, method: PaymentMethod | str) -> None:
        self._ensure_interactive()
        self.draft.payment_method = PaymentMethod(method)

    # Stylist step

    async def load_stylists(self, location: GeoPoint | None = None) -> list[CandidateStylist]:
        """
        Search and rank stylists for the draft. Safe to call again to retry.

        A failed search is recorded on ``search_error`` rather than raised.
        """
        if self.step != BookingStep.selecting_stylist:
            raise InvalidTransition(f"Cannot load stylists from step {self.step.value}")

        user_location = location or self.draft.location
        if user_location is None:
            user_location = await resolve_user_location(
                self._geolocation,
                timeout_seconds=self._config.geolocation_timeout_seconds,
                default=self._config.default_location,
            )
        self.draft.location = user_location

        service = self.draft.service
        request = SearchRequest(
            category=self.draft.category,
            service_id=service.id if service else "",
            date=self.draft.date,
            time=self.draft.time,
            flexible_time=self.draft.flexible_time,
            lat=user_location.lat,
            lng=user_location.lng,
            max_distance_miles=self._config.search_radius_miles,
        )

        try:
            candidates = await self._stylist_search.search_stylists(request)
        except (MarketplaceUpstreamError, MarketplaceContractError) as e:
            self._logger.error(
                "Failed to load stylists",
                extra={"session_id": self.session_id, "error": str(e)},
            )
            self.working_set = []
            self.search_error = SearchFailure(SEARCH_FAILED_MESSAGE)
            self.search_error.__cause__ = e
            self._notifier.notify(self.session_id, SEARCH_FAILED_MESSAGE, "error")
            return []

        self.search_error = None
        self.working_set = self._ranker.rank(
            candidates,
            RankingRequest(date=self.draft.date, time=self.draft.time),
            user_location,
        )
        if self.draft.stylist_id and self._find_stylist(self.draft.stylist_id) is None:
            self.draft.stylist_id = None
        self._logger.info(
            "Stylists loaded",
            extra={"session_id": self.session_id, "count": len(self.working_set)},
        )
        return self.working_set

    def stylists(self, sort: SortMode | str | None = None, query: str | None = None) -> list[CandidateStylist]:
        """Filtered and/or re-sorted view over the ranked working set."""
        view = filter_stylists(self.working_set, query)
        if sort:
            view = sort_stylists(view, sort)
        return view

    def select_stylist(self, stylist_id: str) -> CandidateStylist:
        self._ensure_interactive()
        stylist = self._find_stylist(stylist_id)
        if stylist is None:
            raise ValidationError("stylist_id", f"Unknown stylist: {stylist_id}")
        self.draft.stylist_id = stylist.id
        return stylist

    # Confirm step

    def price_breakdown(self) -> PriceBreakdown:
        return calculate_total_price(
            self.draft.service,
            travel_fee=self._config.travel_fee,
            platform_fee_rate=self._config.platform_fee_rate,
        )

    async def submit(self) -> AppointmentResult:
        if self.step != BookingStep.confirming:
            raise InvalidTransition(f"Cannot submit from step {self.step.value}")
        self._validate(BookingStep.confirming)

        draft = self.draft
        request = AppointmentRequest(
            service_id=draft.service.id,
            stylist_id=draft.stylist_id,
            scheduled_at=datetime.combine(draft.date, draft.time),
            flexible_time=draft.flexible_time,
            notes=draft.notes,
            payment_method=draft.payment_method,
        )

        try:
            result = await self._appointments.create_appointment(request)
        except (MarketplaceUpstreamError, MarketplaceContractError) as e:
            self._logger.error(
                "Booking failed",
                extra={"session_id": self.session_id, "stylist_id": draft.stylist_id, "error": str(e)},
            )
            self._notifier.notify(self.session_id, SUBMISSION_FAILED_MESSAGE, "error")
            raise SubmissionFailure(SUBMISSION_FAILED_MESSAGE) from e

        self.selected_stylist = self._find_stylist(draft.stylist_id)
        self.result = result
        self.step = BookingStep.submitted
        self.draft = BookingDraft()
        self._logger.info(
            "Appointment submitted",
            extra={
                "session_id": self.session_id,
                "appointment_id": result.appointment_id,
                "reason": result.status.value,
            },
        )

        if result.status == AppointmentStatus.pending:
            self.confirmation = self._confirmation.start(result.appointment_id)
            self._notifier.notify(self.session_id, PENDING_MESSAGE, "info")
        else:
            self._notifier.notify(self.session_id, CONFIRMED_MESSAGE, "success")
        return result

    @property
    def appointment_id(self) -> str | None:
        return self.result.appointment_id if self.result else None

    @property
    def appointment_active(self) -> bool:
        """Submitted, not torn down, and not expired or cancelled by the confirmation window."""
        if self.result is None or self.step == BookingStep.cancelled:
            return False
        return self.confirmation is None or self.confirmation.state in ACTIVE_CONFIRMATION_STATES

    # Internals

    def _on_confirmation_resolved(self, timer: ConfirmationTimer) -> None:
        if timer.state == ConfirmationState.expired:
            self.close()

    def _validate(self, step: BookingStep) -> None:
        missing = self.draft.missing_fields(step)
        if missing:
            field = missing[0]
            raise ValidationError(field, VALIDATION_MESSAGES.get(field))

    def _ensure_interactive(self) -> None:
        if self.step in TERMINAL_STEPS:
            raise InvalidTransition(f"Booking is {self.step.value}; start a new booking")

    def _find_stylist(self, stylist_id: str) -> CandidateStylist | None:
        return next((s for s in self.working_set if s.id == stylist_id), None)
