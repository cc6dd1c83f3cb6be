from __future__ import annotations

import asyncio
from datetime import datetime
from decimal import Decimal

import pytest

from app.application.exceptions import (
    InvalidTransition,
    SearchFailure,
    SubmissionFailure,
    ValidationError,
)
from app.application.ports.geolocation import GeolocationPort
from app.application.ports.realtime import APPOINTMENT_CONFIRMED
from app.application.use_cases.booking_workflow import (
    DEFAULT_CATEGORIES,
    PENDING_MESSAGE,
    SEARCH_FAILED_MESSAGE,
    SUBMISSION_FAILED_MESSAGE,
    BookingWorkflow,
    WorkflowConfig,
)
from app.application.use_cases.confirmation import CONFIRMED_MESSAGE, EXPIRED_MESSAGE
from app.domain.entities.appointment import AppointmentStatus
from app.domain.entities.booking_draft import BookingStep, PaymentMethod
from app.domain.entities.confirmation import ConfirmationState
from app.domain.entities.geo import GeoPoint
from app.infrastructure.geolocation.static_geolocation import StaticGeolocation
from app.application.utils.user_location import DEFAULT_LOCATION
from conftest import BOOKING_DATE, BOOKING_TIME, HAIRCUT

BROOKLYN = GeoPoint(lat=40.6782, lng=-73.9442)


class SlowGeolocation(GeolocationPort):
    async def locate(self) -> GeoPoint:
        await asyncio.sleep(1)
        return BROOKLYN


def _to_stylist_step(workflow: BookingWorkflow, location: GeoPoint | None = None) -> None:
    asyncio.run(workflow.choose_service("haircut"))
    asyncio.run(workflow.advance())
    workflow.set_date_time(BOOKING_DATE, BOOKING_TIME)
    asyncio.run(workflow.advance(location))


def _to_confirming(workflow: BookingWorkflow) -> None:
    _to_stylist_step(workflow)
    workflow.select_stylist("a")
    asyncio.run(workflow.advance())
    workflow.set_payment_method("card")


def _workflow(marketplace, channel, scheduler, notifier, geolocation) -> BookingWorkflow:
    wf = BookingWorkflow(
        session_id="session-2",
        stylist_search=marketplace,
        appointments=marketplace,
        catalog=marketplace,
        channel=channel,
        scheduler=scheduler,
        clock=scheduler,
        notifier=notifier,
        geolocation=geolocation,
        config=WorkflowConfig(geolocation_timeout_seconds=0.05),
    )
    wf.start("hair")
    return wf


def test_start_seeds_category(workflow):
    assert workflow.step == BookingStep.selecting_service
    assert workflow.draft.category == "hair"
    assert workflow.draft.flexible_time is True


def test_cannot_leave_service_step_without_service(workflow):
    with pytest.raises(ValidationError) as exc:
        asyncio.run(workflow.advance())
    assert exc.value.field == "service"
    assert str(exc.value) == "Please select a service"
    assert workflow.step == BookingStep.selecting_service


def test_cannot_leave_date_step_without_time(workflow):
    asyncio.run(workflow.choose_service("haircut"))
    asyncio.run(workflow.advance())
    workflow.draft.date = BOOKING_DATE

    with pytest.raises(ValidationError) as exc:
        asyncio.run(workflow.advance())
    assert exc.value.field == "time"
    assert workflow.step == BookingStep.selecting_date_time


def test_entering_stylist_step_searches_and_ranks(workflow, marketplace):
    _to_stylist_step(workflow)

    assert workflow.step == BookingStep.selecting_stylist
    assert [s.id for s in workflow.working_set] == ["b", "a"]
    assert [s.match_score for s in workflow.working_set] == [94, 87]

    request = marketplace.search_requests[0]
    assert request.service_id == "haircut"
    assert request.category == "hair"
    assert request.date == BOOKING_DATE
    assert request.time == BOOKING_TIME
    assert request.max_distance_miles == 25.0
    assert (request.lat, request.lng) == (DEFAULT_LOCATION.lat, DEFAULT_LOCATION.lng)


def test_explicit_location_is_used_for_search(workflow, marketplace):
    _to_stylist_step(workflow, location=BROOKLYN)
    request = marketplace.search_requests[0]
    assert (request.lat, request.lng) == (BROOKLYN.lat, BROOKLYN.lng)
    assert workflow.draft.location == BROOKLYN


def test_geolocation_provider_location(marketplace, channel, scheduler, notifier):
    wf = _workflow(marketplace, channel, scheduler, notifier, StaticGeolocation(BROOKLYN))
    _to_stylist_step(wf)
    assert marketplace.search_requests[0].lat == BROOKLYN.lat


def test_geolocation_failure_falls_back_to_default(marketplace, channel, scheduler, notifier):
    wf = _workflow(marketplace, channel, scheduler, notifier, StaticGeolocation(None))
    _to_stylist_step(wf)
    assert wf.draft.location == DEFAULT_LOCATION
    assert len(wf.working_set) == 2


def test_geolocation_timeout_falls_back_to_default(marketplace, channel, scheduler, notifier):
    wf = _workflow(marketplace, channel, scheduler, notifier, SlowGeolocation())
    _to_stylist_step(wf)
    assert wf.draft.location == DEFAULT_LOCATION


def test_cannot_leave_stylist_step_without_selection(workflow):
    _to_stylist_step(workflow)
    with pytest.raises(ValidationError) as exc:
        asyncio.run(workflow.advance())
    assert str(exc.value) == "Please select a stylist"


def test_unknown_stylist_is_rejected(workflow):
    _to_stylist_step(workflow)
    with pytest.raises(ValidationError):
        workflow.select_stylist("zzz")
    assert workflow.draft.stylist_id is None


def test_search_failure_leaves_empty_list_and_can_retry(workflow, marketplace, notifier):
    marketplace.fail_search = True
    _to_stylist_step(workflow)

    assert workflow.step == BookingStep.selecting_stylist
    assert workflow.working_set == []
    assert isinstance(workflow.search_error, SearchFailure)
    assert str(workflow.search_error) == SEARCH_FAILED_MESSAGE
    assert notifier.notices == [("session-1", SEARCH_FAILED_MESSAGE, "error")]

    marketplace.fail_search = False
    asyncio.run(workflow.load_stylists())

    assert workflow.search_error is None
    assert len(workflow.working_set) == 2


def test_reload_drops_selection_of_missing_stylist(workflow, marketplace):
    _to_stylist_step(workflow)
    workflow.select_stylist("a")

    marketplace.stylists = [s for s in marketplace.stylists if s.id != "a"]
    asyncio.run(workflow.load_stylists())

    assert workflow.draft.stylist_id is None


def test_load_stylists_outside_stylist_step(workflow):
    with pytest.raises(InvalidTransition):
        asyncio.run(workflow.load_stylists())


def test_confirm_requires_payment_method(workflow):
    _to_confirming(workflow)
    workflow.draft.payment_method = None
    with pytest.raises(ValidationError) as exc:
        asyncio.run(workflow.advance())
    assert exc.value.field == "payment_method"
    assert workflow.step == BookingStep.confirming


def test_price_breakdown(workflow):
    asyncio.run(workflow.choose_service("haircut"))
    price = workflow.price_breakdown()
    assert price.base_price == Decimal("45.00")
    assert price.travel_fee == Decimal("10.00")
    assert price.platform_fee == Decimal("4.50")
    assert price.total == Decimal("59.50")


def test_confirmed_submission(workflow, marketplace, notifier, scheduler):
    marketplace.status = AppointmentStatus.confirmed
    _to_confirming(workflow)
    workflow.set_notes("Bring extensions")

    asyncio.run(workflow.advance())

    request = marketplace.appointment_requests[0]
    assert request.service_id == "haircut"
    assert request.stylist_id == "a"
    assert request.scheduled_at == datetime(2024, 3, 5, 9, 15)
    assert request.payment_method == PaymentMethod.card
    assert request.notes == "Bring extensions"

    assert workflow.step == BookingStep.submitted
    assert workflow.appointment_id == "appt-1"
    assert workflow.selected_stylist.id == "a"
    assert workflow.confirmation is None
    assert workflow.draft.service is None
    assert notifier.notices[-1] == ("session-1", CONFIRMED_MESSAGE, "success")
    assert scheduler.pending == 0


def test_pending_submission_then_stylist_confirms(workflow, channel, notifier, scheduler):
    _to_confirming(workflow)
    asyncio.run(workflow.advance())

    assert workflow.step == BookingStep.submitted
    assert workflow.confirmation.state == ConfirmationState.awaiting_soft_confirm
    assert notifier.messages()[-1] == PENDING_MESSAGE

    scheduler.advance(240)
    channel.emit(APPOINTMENT_CONFIRMED, "appt-1", {"appointmentId": "appt-1", "appointment": {}})

    assert workflow.confirmation.state == ConfirmationState.confirmed
    assert workflow.step == BookingStep.submitted
    assert notifier.messages()[-1] == CONFIRMED_MESSAGE
    assert scheduler.pending == 0


def test_pending_submission_expires_and_closes(workflow, notifier, scheduler, channel):
    _to_confirming(workflow)
    asyncio.run(workflow.advance())

    scheduler.advance(600)

    assert workflow.confirmation.state == ConfirmationState.expired
    assert workflow.step == BookingStep.cancelled
    assert notifier.messages().count(EXPIRED_MESSAGE) == 1
    assert channel.subscriber_count(APPOINTMENT_CONFIRMED, "appt-1") == 0


def test_submission_failure_stays_on_confirm_step(workflow, marketplace, notifier):
    marketplace.fail_submit = True
    _to_confirming(workflow)

    with pytest.raises(SubmissionFailure):
        asyncio.run(workflow.advance())

    assert workflow.step == BookingStep.confirming
    assert workflow.draft.stylist_id == "a"
    assert notifier.notices[-1] == ("session-1", SUBMISSION_FAILED_MESSAGE, "error")

    marketplace.fail_submit = False
    asyncio.run(workflow.advance())
    assert workflow.step == BookingStep.submitted


def test_close_stops_timers_and_subscriptions(workflow, scheduler, channel, notifier):
    _to_confirming(workflow)
    asyncio.run(workflow.advance())

    workflow.close()

    assert workflow.step == BookingStep.cancelled
    assert workflow.confirmation.state == ConfirmationState.cancelled
    assert scheduler.pending == 0
    assert channel.subscriber_count(APPOINTMENT_CONFIRMED, "appt-1") == 0
    scheduler.advance(1000)
    assert EXPIRED_MESSAGE not in notifier.messages()


def test_terminal_steps_reject_navigation(workflow):
    workflow.close()
    with pytest.raises(InvalidTransition):
        asyncio.run(workflow.advance())
    with pytest.raises(InvalidTransition):
        workflow.back()
    with pytest.raises(InvalidTransition):
        workflow.set_notes("late")


def test_restart_after_close(workflow):
    workflow.close()
    workflow.start("nails")
    assert workflow.step == BookingStep.selecting_service
    assert workflow.draft.category == "nails"


def test_back_keeps_draft(workflow):
    _to_stylist_step(workflow)
    assert workflow.back() == BookingStep.selecting_date_time
    assert workflow.back() == BookingStep.selecting_service
    assert workflow.back() == BookingStep.selecting_service
    assert workflow.draft.service == HAIRCUT
    assert workflow.draft.time == BOOKING_TIME


def test_choose_unknown_service(workflow):
    with pytest.raises(ValidationError) as exc:
        asyncio.run(workflow.choose_service("perm"))
    assert exc.value.field == "service"


def test_choose_service_without_category(workflow):
    workflow.start()
    with pytest.raises(ValidationError) as exc:
        asyncio.run(workflow.choose_service("haircut"))
    assert exc.value.field == "category"


def test_categories_fall_back_to_defaults(workflow, marketplace):
    assert [c.id for c in asyncio.run(workflow.load_categories())] == ["hair"]

    marketplace.fail_catalog = True
    categories = asyncio.run(workflow.load_categories())
    assert [c.id for c in categories] == [c.id for c in DEFAULT_CATEGORIES]


def test_services_failure_notifies(workflow, marketplace, notifier):
    marketplace.fail_catalog = True
    assert asyncio.run(workflow.load_services("hair")) == []
    assert notifier.notices[-1][2] == "error"


def test_sorted_and_filtered_views(workflow):
    _to_stylist_step(workflow)
    assert [s.id for s in workflow.stylists(sort="distance")] == ["b", "a"]
    assert [s.id for s in workflow.stylists(query="stylist a")] == ["a"]
    # The ranked working set itself is untouched
    assert [s.id for s in workflow.working_set] == ["b", "a"]


def _hooked_workflow(marketplace, channel, scheduler, notifier, closed: list) -> BookingWorkflow:
    wf = BookingWorkflow(
        session_id="session-3",
        stylist_search=marketplace,
        appointments=marketplace,
        catalog=marketplace,
        channel=channel,
        scheduler=scheduler,
        clock=scheduler,
        notifier=notifier,
        on_closed=lambda workflow: closed.append(workflow.appointment_id),
    )
    wf.start("hair")
    return wf


def test_close_hook_runs_on_cancel(marketplace, channel, scheduler, notifier):
    closed = []
    wf = _hooked_workflow(marketplace, channel, scheduler, notifier, closed)
    _to_confirming(wf)
    asyncio.run(wf.advance())
    assert wf.appointment_active is True

    wf.close()

    assert closed == ["appt-1"]
    assert wf.appointment_active is False


def test_close_hook_runs_on_expiry(marketplace, channel, scheduler, notifier):
    closed = []
    wf = _hooked_workflow(marketplace, channel, scheduler, notifier, closed)
    _to_confirming(wf)
    asyncio.run(wf.advance())

    scheduler.advance(600)

    assert wf.confirmation.state == ConfirmationState.expired
    assert closed == ["appt-1"]
    assert wf.appointment_active is False


def test_close_hook_runs_when_restarting_after_submission(marketplace, channel, scheduler, notifier):
    closed = []
    marketplace.status = AppointmentStatus.confirmed
    wf = _hooked_workflow(marketplace, channel, scheduler, notifier, closed)
    _to_confirming(wf)
    asyncio.run(wf.advance())
    assert wf.appointment_active is True

    wf.start("hair")

    assert closed == ["appt-1"]
    assert wf.appointment_active is False


def test_appointment_active_follows_confirmation(workflow, channel, scheduler):
    assert workflow.appointment_active is False
    _to_confirming(workflow)
    asyncio.run(workflow.advance())
    assert workflow.appointment_active is True

    scheduler.advance(240)
    channel.emit(APPOINTMENT_CONFIRMED, "appt-1", {"appointmentId": "appt-1", "appointment": {}})
    assert workflow.confirmation.state == ConfirmationState.confirmed
    assert workflow.appointment_active is True
