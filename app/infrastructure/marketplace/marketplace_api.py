from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.application.dto.marketplace import (
    AppointmentResponseDTO,
    CategoryDTO,
    ServiceDTO,
    StylistSearchResponseDTO,
)
from app.application.exceptions import MarketplaceContractError
from app.application.ports.appointments import AppointmentGatewayPort
from app.application.ports.service_catalog import ServiceCatalogPort
from app.application.ports.stylist_search import StylistSearchPort
from app.domain.entities.appointment import AppointmentRequest, AppointmentResult, SearchRequest
from app.domain.entities.service import Category, ServiceRef
from app.domain.entities.stylist import CandidateStylist
from app.infrastructure.marketplace.marketplace_client import MarketplaceClient


class MarketplaceApi(StylistSearchPort, AppointmentGatewayPort, ServiceCatalogPort):
    """Marketplace REST API: stylist search, appointment creation and the service catalog."""

    def __init__(self, client: MarketplaceClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search_stylists(self, request: SearchRequest) -> list[CandidateStylist]:
        params: dict[str, Any] = {
            "service_id": request.service_id,
            "date": request.date.isoformat(),
            "time": request.time.strftime("%H:%M"),
            "flexible_time": str(request.flexible_time).lower(),
            "latitude": request.lat,
            "longitude": request.lng,
            "max_distance": request.max_distance_miles,
            "priority_flexibility": "true",
        }
        if request.category:
            params["category"] = request.category

        data = await self._client.get_json("/stylists", params=params)
        try:
            response = StylistSearchResponseDTO.model_validate(data)
        except PydanticValidationError as e:
            raise MarketplaceContractError(f"Unexpected stylist search payload: {e}") from e
        return [stylist.to_entity() for stylist in response.stylists]

    async def create_appointment(self, request: AppointmentRequest) -> AppointmentResult:
        payload = {
            "service_id": request.service_id,
            "stylist_id": request.stylist_id,
            "scheduled_at": request.scheduled_at.strftime("%Y-%m-%dT%H:%M"),
            "flexible_time": request.flexible_time,
            "notes": request.notes,
            "payment_method": request.payment_method.value,
        }
        data = await self._client.post_json("/appointments", payload)
        try:
            result = AppointmentResponseDTO.model_validate(data).to_entity()
        except (PydanticValidationError, ValueError) as e:
            raise MarketplaceContractError(f"Unexpected appointment payload: {e}") from e

        self._logger.info(
            "Appointment created",
            extra={"appointment_id": result.appointment_id, "reason": result.status.value},
        )
        return result

    async def get_service_categories(self) -> list[Category]:
        data = await self._client.get_json("/services/categories")
        items = _unwrap(data, "categories")
        try:
            return [CategoryDTO.model_validate(item).to_entity() for item in items]
        except PydanticValidationError as e:
            raise MarketplaceContractError(f"Unexpected categories payload: {e}") from e

    async def get_services_by_category(self, category: str) -> list[ServiceRef]:
        data = await self._client.get_json(f"/services/category/{category}")
        items = _unwrap(data, "services")
        try:
            return [ServiceDTO.model_validate(item).to_entity() for item in items]
        except PydanticValidationError as e:
            raise MarketplaceContractError(f"Unexpected services payload: {e}") from e


def _unwrap(data: Any, key: str) -> list[Any]:
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise MarketplaceContractError(f"Expected a list of {key}")
    return data
