from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.entities.appointment import AppointmentResult, AppointmentStatus
from app.domain.entities.geo import GeoPoint
from app.domain.entities.service import Category, ServiceRef
from app.domain.entities.stylist import AvailabilitySlot, CandidateStylist


class SlotDTO(BaseModel):
    date: dt.date
    time: dt.time


class StylistDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    display_name: str
    rating_average: float = 0.0
    total_reviews: int = 0
    distance: float | None = None
    created_at: dt.datetime | None = None
    specialties: list[str] = Field(default_factory=list)
    availability: list[SlotDTO] = Field(default_factory=list)
    bio: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    profile_picture_url: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("rating_average", mode="before")
    @classmethod
    def _default_rating(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    def to_entity(self) -> CandidateStylist:
        location = None
        if self.latitude is not None and self.longitude is not None:
            location = GeoPoint(lat=self.latitude, lng=self.longitude)
        return CandidateStylist(
            id=self.id,
            display_name=self.display_name,
            rating_average=self.rating_average,
            total_reviews=self.total_reviews,
            distance_miles=self.distance,
            created_at=self.created_at,
            specialties=list(self.specialties),
            availability=[AvailabilitySlot(date=slot.date, time=slot.time) for slot in self.availability],
            bio=self.bio or "",
            location=location,
            profile_picture_url=self.profile_picture_url,
        )


class StylistSearchResponseDTO(BaseModel):
    stylists: list[StylistDTO] = Field(default_factory=list)


class CategoryDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str = ""
    icon: str | None = None

    def to_entity(self) -> Category:
        return Category(id=self.id, name=self.name, description=self.description, icon=self.icon)


class ServiceDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    base_price: float = 0.0
    duration_minutes: int = 60
    requires_consultation: bool = False
    booking_advance_hours: int = 0
    category: str | None = None
    description: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    def to_entity(self) -> ServiceRef:
        return ServiceRef(
            id=self.id,
            name=self.name,
            base_price=self.base_price,
            duration_minutes=self.duration_minutes,
            requires_consultation=self.requires_consultation,
            booking_advance_hours=self.booking_advance_hours,
            category=self.category,
            description=self.description or "",
        )


class AppointmentResponseDTO(BaseModel):
    status: AppointmentStatus
    appointment: dict[str, Any]

    def to_entity(self) -> AppointmentResult:
        appointment_id = self.appointment.get("id")
        if appointment_id is None:
            raise ValueError("appointment.id missing")
        return AppointmentResult(
            status=self.status,
            appointment_id=str(appointment_id),
            appointment=dict(self.appointment),
        )
