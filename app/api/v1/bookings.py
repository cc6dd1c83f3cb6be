from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.v1.schemas import (
    AdvanceRequestSchema,
    BookingSessionSchema,
    CategorySchema,
    CreateBookingRequestSchema,
    DraftUpdateSchema,
    ServiceSchema,
    StylistSchema,
)
from app.application.exceptions import (
    InvalidTransition,
    SessionNotFound,
    SubmissionFailure,
    ValidationError,
)
from app.application.use_cases.booking_workflow import BookingWorkflow
from app.application.use_cases.stylist_ranking import SortMode
from app.infrastructure.store.workflow_store import MemoryWorkflowStore
from app.wiring.dependencies import create_booking_workflow, get_workflow_store

router = APIRouter()
logger = logging.getLogger(__name__)


def _get_workflow(session_id: str, store: MemoryWorkflowStore) -> BookingWorkflow:
    try:
        return store.get(session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/bookings", response_model=BookingSessionSchema, status_code=201)
def create_booking(req: CreateBookingRequestSchema | None = None):
    req = req or CreateBookingRequestSchema()
    workflow = create_booking_workflow(
        category=req.category,
        reported_location=req.location.to_entity() if req.location else None,
    )
    return BookingSessionSchema.from_workflow(workflow)


@router.get("/bookings/{session_id}", response_model=BookingSessionSchema)
def get_booking(session_id: str, store: MemoryWorkflowStore = Depends(get_workflow_store)):
    return BookingSessionSchema.from_workflow(_get_workflow(session_id, store))


@router.get("/bookings/{session_id}/categories", response_model=list[CategorySchema])
async def list_categories(session_id: str, store: MemoryWorkflowStore = Depends(get_workflow_store)):
    workflow = _get_workflow(session_id, store)
    return [CategorySchema.from_entity(c) for c in await workflow.load_categories()]


@router.get("/bookings/{session_id}/services", response_model=list[ServiceSchema])
async def list_services(
    session_id: str,
    category: str = Query(...),
    store: MemoryWorkflowStore = Depends(get_workflow_store),
):
    workflow = _get_workflow(session_id, store)
    try:
        services = await workflow.load_services(category)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [ServiceSchema.from_entity(s) for s in services]


@router.patch("/bookings/{session_id}/draft", response_model=BookingSessionSchema)
async def update_draft(
    session_id: str,
    req: DraftUpdateSchema,
    store: MemoryWorkflowStore = Depends(get_workflow_store),
):
    workflow = _get_workflow(session_id, store)
    try:
        if req.service_id is not None:
            await workflow.choose_service(req.service_id, category=req.category)
        elif req.category is not None:
            await workflow.load_services(req.category)
        if req.date is not None or req.time is not None:
            workflow.set_date_time(req.date or workflow.draft.date, req.time or workflow.draft.time)
        if req.flexible_time is not None:
            workflow.set_flexible_time(req.flexible_time)
        if req.notes is not None:
            workflow.set_notes(req.notes)
        if req.location is not None:
            workflow.set_location(req.location.to_entity())
        if req.payment_method is not None:
            workflow.set_payment_method(req.payment_method)
        if req.stylist_id is not None:
            workflow.select_stylist(req.stylist_id)
    except (ValidationError, InvalidTransition) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookingSessionSchema.from_workflow(workflow)


@router.post("/bookings/{session_id}/advance", response_model=BookingSessionSchema)
async def advance_booking(
    session_id: str,
    req: AdvanceRequestSchema | None = None,
    store: MemoryWorkflowStore = Depends(get_workflow_store),
):
    workflow = _get_workflow(session_id, store)
    location = req.location.to_entity() if req and req.location else None
    try:
        await workflow.advance(location)
    except (ValidationError, InvalidTransition) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SubmissionFailure as e:
        raise HTTPException(status_code=502, detail=str(e))
    return BookingSessionSchema.from_workflow(workflow)


@router.post("/bookings/{session_id}/back", response_model=BookingSessionSchema)
def back_booking(session_id: str, store: MemoryWorkflowStore = Depends(get_workflow_store)):
    workflow = _get_workflow(session_id, store)
    try:
        workflow.back()
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookingSessionSchema.from_workflow(workflow)


@router.post("/bookings/{session_id}/stylists/reload", response_model=BookingSessionSchema)
async def reload_stylists(
    session_id: str,
    req: AdvanceRequestSchema | None = None,
    store: MemoryWorkflowStore = Depends(get_workflow_store),
):
    workflow = _get_workflow(session_id, store)
    location = req.location.to_entity() if req and req.location else None
    try:
        await workflow.load_stylists(location)
    except InvalidTransition as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BookingSessionSchema.from_workflow(workflow)


@router.get("/bookings/{session_id}/stylists", response_model=list[StylistSchema])
def list_stylists(
    session_id: str,
    sort: SortMode | None = None,
    q: str | None = None,
    store: MemoryWorkflowStore = Depends(get_workflow_store),
):
    workflow = _get_workflow(session_id, store)
    selected = workflow.draft.stylist_id
    return [StylistSchema.from_entity(s, selected) for s in workflow.stylists(sort=sort, query=q)]


@router.post("/bookings/{session_id}/cancel", response_model=BookingSessionSchema)
async def cancel_booking(session_id: str, store: MemoryWorkflowStore = Depends(get_workflow_store)):
    workflow = _get_workflow(session_id, store)
    workflow.close()
    logger.info("Booking cancelled by client", extra={"session_id": session_id})
    return BookingSessionSchema.from_workflow(workflow)


@router.delete("/bookings/{session_id}", status_code=204)
async def delete_booking(session_id: str, store: MemoryWorkflowStore = Depends(get_workflow_store)):
    if store.remove(session_id) is None:
        raise HTTPException(status_code=404, detail=f"Unknown booking session: {session_id}")
