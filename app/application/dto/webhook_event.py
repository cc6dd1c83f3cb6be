from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator


class AppointmentConfirmedEventDTO(BaseModel):
    """Stylist-side confirmation pushed by the marketplace."""

    appointment_id: str = Field(validation_alias=AliasChoices("appointmentId", "appointment_id"))
    appointment: dict[str, Any] = Field(default_factory=dict)

    @field_validator("appointment_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    def to_payload(self) -> dict[str, Any]:
        return {"appointmentId": self.appointment_id, "appointment": dict(self.appointment)}
