from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.appointment import AppointmentRequest, AppointmentResult


class AppointmentGatewayPort(ABC):
    @abstractmethod
    async def create_appointment(self, request: AppointmentRequest) -> AppointmentResult:
        """Create an appointment request. Status is either pending or confirmed."""
        raise NotImplementedError
