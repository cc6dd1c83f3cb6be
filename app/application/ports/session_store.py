from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.application.use_cases.booking_workflow import BookingWorkflow


class WorkflowStorePort(ABC):
    @abstractmethod
    def put(self, workflow: "BookingWorkflow") -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, session_id: str) -> "BookingWorkflow":
        """Raises SessionNotFound for unknown sessions."""
        raise NotImplementedError

    @abstractmethod
    def remove(self, session_id: str) -> "BookingWorkflow | None":
        raise NotImplementedError

    @abstractmethod
    def find_by_appointment(self, appointment_id: str) -> "BookingWorkflow | None":
        raise NotImplementedError
