from __future__ import annotations

import logging

from app.application.exceptions import SessionNotFound
from app.application.ports.session_store import WorkflowStorePort
from app.application.use_cases.booking_workflow import BookingWorkflow
from app.domain.entities.booking_draft import BookingStep


class MemoryWorkflowStore(WorkflowStorePort):
    """
    Session id to workflow map.

    Cancelled workflows (closed by the client or expired) are evicted the
    next time a session is stored. Submitted sessions stay until DELETE.
    """

    def __init__(self) -> None:
        self._workflows: dict[str, BookingWorkflow] = {}
        self._logger = logging.getLogger(__name__)

    def put(self, workflow: BookingWorkflow) -> None:
        self.prune()
        self._workflows[workflow.session_id] = workflow

    def get(self, session_id: str) -> BookingWorkflow:
        workflow = self._workflows.get(session_id)
        if workflow is None:
            raise SessionNotFound(f"Unknown booking session: {session_id}")
        return workflow

    def remove(self, session_id: str) -> BookingWorkflow | None:
        """Forget a session after releasing its timers and subscriptions."""
        workflow = self._workflows.pop(session_id, None)
        if workflow is not None:
            workflow.close()
        return workflow

    def find_by_appointment(self, appointment_id: str) -> BookingWorkflow | None:
        for workflow in self._workflows.values():
            if workflow.appointment_id == appointment_id:
                return workflow
        return None

    def prune(self) -> int:
        """Drop cancelled sessions. Returns how many were evicted."""
        stale = [sid for sid, wf in self._workflows.items() if wf.step == BookingStep.cancelled]
        for session_id in stale:
            del self._workflows[session_id]
        if stale:
            self._logger.info("Evicted cancelled sessions", extra={"count": len(stale)})
        return len(stale)

    def __len__(self) -> int:
        return len(self._workflows)
