from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ConfirmationState(str, Enum):
    awaiting_soft_confirm = "awaiting_soft_confirm"
    awaiting_hard_confirm = "awaiting_hard_confirm"
    confirmed = "confirmed"
    expired = "expired"
    cancelled = "cancelled"


AWAITING_STATES = frozenset(
    {ConfirmationState.awaiting_soft_confirm, ConfirmationState.awaiting_hard_confirm}
)


@dataclass
class ConfirmationTimer:
    appointment_id: str
    submitted_at: datetime
    soft_deadline: datetime
    hard_deadline: datetime
    state: ConfirmationState = ConfirmationState.awaiting_soft_confirm

    @property
    def is_live(self) -> bool:
        return self.state in AWAITING_STATES
