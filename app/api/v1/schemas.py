from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from app.application.use_cases.booking_workflow import BookingWorkflow
from app.domain.entities.booking_draft import BookingStep, PaymentMethod
from app.domain.entities.confirmation import ConfirmationState
from app.domain.entities.geo import GeoPoint
from app.domain.entities.service import Category, ServiceRef
from app.domain.entities.stylist import CandidateStylist


class GeoPointSchema(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

    def to_entity(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


class CreateBookingRequestSchema(BaseModel):
    category: str | None = None
    location: GeoPointSchema | None = None


class DraftUpdateSchema(BaseModel):
    category: str | None = None
    service_id: str | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    flexible_time: bool | None = None
    notes: str | None = None
    payment_method: PaymentMethod | None = None
    stylist_id: str | None = None
    location: GeoPointSchema | None = None


class AdvanceRequestSchema(BaseModel):
    location: GeoPointSchema | None = None


class CategorySchema(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: str | None = None

    @classmethod
    def from_entity(cls, category: Category) -> "CategorySchema":
        return cls(id=category.id, name=category.name, description=category.description, icon=category.icon)


class ServiceSchema(BaseModel):
    id: str
    name: str
    base_price: float
    duration_minutes: int
    requires_consultation: bool = False
    booking_advance_hours: int = 0
    category: str | None = None
    description: str = ""

    @classmethod
    def from_entity(cls, service: ServiceRef) -> "ServiceSchema":
        return cls(
            id=service.id,
            name=service.name,
            base_price=service.base_price,
            duration_minutes=service.duration_minutes,
            requires_consultation=service.requires_consultation,
            booking_advance_hours=service.booking_advance_hours,
            category=service.category,
            description=service.description,
        )


class StylistSchema(BaseModel):
    id: str
    display_name: str
    rating_average: float
    total_reviews: int
    distance_miles: float | None = None
    specialties: list[str] = Field(default_factory=list)
    bio: str = ""
    profile_picture_url: str | None = None
    flexibility_score: float
    distance_score: float
    match_score: int
    is_new: bool
    selected: bool = False

    @classmethod
    def from_entity(cls, stylist: CandidateStylist, selected_id: str | None = None) -> "StylistSchema":
        return cls(
            id=stylist.id,
            display_name=stylist.display_name,
            rating_average=stylist.rating_average,
            total_reviews=stylist.total_reviews,
            distance_miles=stylist.distance_miles,
            specialties=list(stylist.specialties),
            bio=stylist.bio,
            profile_picture_url=stylist.profile_picture_url,
            flexibility_score=stylist.flexibility_score,
            distance_score=stylist.distance_score,
            match_score=stylist.match_score,
            is_new=stylist.is_new,
            selected=stylist.id == selected_id,
        )


class DraftSchema(BaseModel):
    category: str | None = None
    service: ServiceSchema | None = None
    date: dt.date | None = None
    time: dt.time | None = None
    flexible_time: bool = True
    stylist_id: str | None = None
    location: GeoPointSchema | None = None
    notes: str = ""
    payment_method: PaymentMethod | None = None


class PriceSchema(BaseModel):
    base_price: Decimal
    travel_fee: Decimal
    platform_fee: Decimal
    total: Decimal


class ConfirmationSchema(BaseModel):
    appointment_id: str
    state: ConfirmationState
    soft_deadline: dt.datetime
    hard_deadline: dt.datetime


class BookingSessionSchema(BaseModel):
    session_id: str
    step: BookingStep
    draft: DraftSchema
    stylists: list[StylistSchema] = Field(default_factory=list)
    search_error: str | None = None
    price: PriceSchema | None = None
    appointment_id: str | None = None
    appointment_status: str | None = None
    confirmation: ConfirmationSchema | None = None

    @classmethod
    def from_workflow(cls, workflow: BookingWorkflow) -> "BookingSessionSchema":
        draft = workflow.draft
        price = None
        if draft.service is not None:
            breakdown = workflow.price_breakdown()
            price = PriceSchema(
                base_price=breakdown.base_price,
                travel_fee=breakdown.travel_fee,
                platform_fee=breakdown.platform_fee,
                total=breakdown.total,
            )
        confirmation = None
        if workflow.confirmation is not None:
            timer = workflow.confirmation
            confirmation = ConfirmationSchema(
                appointment_id=timer.appointment_id,
                state=timer.state,
                soft_deadline=timer.soft_deadline,
                hard_deadline=timer.hard_deadline,
            )
        return cls(
            session_id=workflow.session_id,
            step=workflow.step,
            draft=DraftSchema(
                category=draft.category,
                service=ServiceSchema.from_entity(draft.service) if draft.service else None,
                date=draft.date,
                time=draft.time,
                flexible_time=draft.flexible_time,
                stylist_id=draft.stylist_id,
                location=GeoPointSchema(lat=draft.location.lat, lng=draft.location.lng) if draft.location else None,
                notes=draft.notes,
                payment_method=draft.payment_method,
            ),
            stylists=[StylistSchema.from_entity(s, draft.stylist_id) for s in workflow.working_set],
            search_error=str(workflow.search_error) if workflow.search_error else None,
            price=price,
            appointment_id=workflow.appointment_id,
            appointment_status=workflow.result.status.value if workflow.result else None,
            confirmation=confirmation,
        )


class LocationUpdateResponseSchema(BaseModel):
    appointment_id: str
    distance_meters: float | None = None


class ChatMessageSchema(BaseModel):
    user_id: str
    message: Any


class TypingSchema(BaseModel):
    user_id: str
    typing: bool = True


class ChatRoomSchema(BaseModel):
    user_id: str
