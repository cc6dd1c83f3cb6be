from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from app.api.v1.schemas import (
    ChatMessageSchema,
    ChatRoomSchema,
    GeoPointSchema,
    LocationUpdateResponseSchema,
    TypingSchema,
)
from app.application.use_cases.chat_relay import ChatRelay
from app.application.use_cases.location_sharing import LocationSharingUseCase
from app.infrastructure.store.workflow_store import MemoryWorkflowStore
from app.wiring.dependencies import get_chat_relay, get_location_sharing, get_workflow_store

router = APIRouter()


@router.post("/appointments/{appointment_id}/location", response_model=LocationUpdateResponseSchema)
async def share_location(
    appointment_id: str,
    req: GeoPointSchema,
    store: MemoryWorkflowStore = Depends(get_workflow_store),
    sharing: LocationSharingUseCase = Depends(get_location_sharing),
):
    workflow = store.find_by_appointment(appointment_id)
    if workflow is None or not workflow.appointment_active:
        sharing.stop_tracking(appointment_id)
        raise HTTPException(status_code=404, detail=f"Unknown appointment: {appointment_id}")

    if not sharing.is_tracking(appointment_id):
        stylist = workflow.selected_stylist
        sharing.start_tracking(appointment_id, stylist.location if stylist else None)

    distance = sharing.share_client_location(appointment_id, req.to_entity())
    return LocationUpdateResponseSchema(appointment_id=appointment_id, distance_meters=distance)


@router.post("/appointments/{appointment_id}/chat/join", status_code=204)
async def join_chat(appointment_id: str, req: ChatRoomSchema, relay: ChatRelay = Depends(get_chat_relay)):
    relay.join_room(appointment_id, req.user_id)


@router.post("/appointments/{appointment_id}/chat/leave", status_code=204)
async def leave_chat(appointment_id: str, req: ChatRoomSchema, relay: ChatRelay = Depends(get_chat_relay)):
    relay.leave_room(appointment_id, req.user_id)


@router.post("/appointments/{appointment_id}/chat", status_code=202)
async def send_chat_message(
    appointment_id: str,
    req: ChatMessageSchema,
    relay: ChatRelay = Depends(get_chat_relay),
) -> dict[str, str]:
    relay.send_message(appointment_id, req.user_id, req.message)
    return {"status": "sent"}


@router.post("/appointments/{appointment_id}/typing", status_code=204)
async def typing(appointment_id: str, req: TypingSchema, relay: ChatRelay = Depends(get_chat_relay)):
    relay.set_typing(appointment_id, req.user_id, req.typing)
