from functools import lru_cache
import logging
import uuid

from app.core.config import settings
from app.application.ports.appointments import AppointmentGatewayPort
from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.ports.stylist_search import StylistSearchPort
from app.application.use_cases.booking_workflow import BookingWorkflow, WorkflowConfig
from app.application.use_cases.chat_relay import ChatRelay
from app.application.use_cases.location_sharing import LocationSharingUseCase
from app.domain.entities.geo import GeoPoint
from app.infrastructure.geolocation.static_geolocation import StaticGeolocation
from app.infrastructure.marketplace.marketplace_api import MarketplaceApi
from app.infrastructure.marketplace.marketplace_client import MarketplaceClient
from app.infrastructure.marketplace.mock_marketplace import MockMarketplace
from app.infrastructure.notifications.channel_notifier import ChannelNotifier
from app.infrastructure.realtime.memory_channel import InMemoryRealtimeChannel
from app.infrastructure.scheduling.asyncio_scheduler import AsyncioScheduler, SystemClock
from app.infrastructure.store.workflow_store import MemoryWorkflowStore


_channel: InMemoryRealtimeChannel | None = None
_workflow_store: MemoryWorkflowStore | None = None
_marketplace: MarketplaceApi | MockMarketplace | None = None


def get_realtime_channel() -> InMemoryRealtimeChannel:
    global _channel
    if _channel is None:
        _channel = InMemoryRealtimeChannel()
    return _channel


def get_workflow_store() -> MemoryWorkflowStore:
    global _workflow_store
    if _workflow_store is None:
        _workflow_store = MemoryWorkflowStore()
    return _workflow_store


def get_marketplace() -> MarketplaceApi | MockMarketplace:
    global _marketplace
    if _marketplace is None:
        logger = logging.getLogger(__name__)
        if not settings.MARKETPLACE_API_TOKEN and settings.ENV.lower() in {"dev", "local"}:
            logger.info("Using MockMarketplace (token missing, ENV=dev/local)")
            _marketplace = MockMarketplace()
        else:
            logger.info("Using MarketplaceApi", extra={"reason": settings.MARKETPLACE_API_BASE_URL})
            client = MarketplaceClient(
                base_url=settings.MARKETPLACE_API_BASE_URL,
                api_token=settings.MARKETPLACE_API_TOKEN,
                timeout=settings.MARKETPLACE_TIMEOUT_SECONDS,
            )
            _marketplace = MarketplaceApi(client=client)
    return _marketplace


async def close_marketplace() -> None:
    """Release the marketplace HTTP client; a later call to get_marketplace builds a new one."""
    global _marketplace
    if isinstance(_marketplace, MarketplaceApi):
        await _marketplace.aclose()
    _marketplace = None


def get_stylist_search() -> StylistSearchPort:
    return get_marketplace()


def get_appointment_gateway() -> AppointmentGatewayPort:
    return get_marketplace()


def get_service_catalog() -> ServiceCatalogPort:
    return get_marketplace()


@lru_cache
def get_scheduler() -> AsyncioScheduler:
    return AsyncioScheduler()


@lru_cache
def get_clock() -> SystemClock:
    return SystemClock()


@lru_cache
def get_workflow_config() -> WorkflowConfig:
    return WorkflowConfig(
        search_radius_miles=settings.SEARCH_RADIUS_MILES,
        default_location=GeoPoint(lat=settings.DEFAULT_LATITUDE, lng=settings.DEFAULT_LONGITUDE),
        geolocation_timeout_seconds=settings.GEOLOCATION_TIMEOUT_SECONDS,
        confirmation_soft_seconds=settings.CONFIRMATION_SOFT_SECONDS,
        confirmation_grace_seconds=settings.CONFIRMATION_GRACE_SECONDS,
        new_stylist_days=settings.NEW_STYLIST_DAYS,
        travel_fee=settings.TRAVEL_FEE,
        platform_fee_rate=settings.PLATFORM_FEE_RATE,
    )


def create_booking_workflow(
    category: str | None = None,
    reported_location: GeoPoint | None = None,
) -> BookingWorkflow:
    channel = get_realtime_channel()
    workflow = BookingWorkflow(
        session_id=uuid.uuid4().hex,
        stylist_search=get_stylist_search(),
        appointments=get_appointment_gateway(),
        catalog=get_service_catalog(),
        channel=channel,
        scheduler=get_scheduler(),
        clock=get_clock(),
        notifier=ChannelNotifier(channel),
        geolocation=StaticGeolocation(reported_location),
        config=get_workflow_config(),
        on_closed=_stop_location_tracking,
    )
    workflow.start(category)
    get_workflow_store().put(workflow)
    return workflow


def _stop_location_tracking(workflow: BookingWorkflow) -> None:
    if workflow.appointment_id:
        get_location_sharing().stop_tracking(workflow.appointment_id)


@lru_cache
def get_location_sharing() -> LocationSharingUseCase:
    return LocationSharingUseCase(
        channel=get_realtime_channel(),
        blur_meters=settings.LOCATION_BLUR_METERS,
        proximity_meters=settings.PROXIMITY_ALERT_METERS,
    )


@lru_cache
def get_chat_relay() -> ChatRelay:
    return ChatRelay(channel=get_realtime_channel())
