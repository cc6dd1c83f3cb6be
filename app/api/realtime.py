from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any

from fastapi import APIRouter, Request, Response, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from app.application.dto.webhook_event import AppointmentConfirmedEventDTO
from app.application.exceptions import SessionNotFound
from app.application.ports.realtime import APPOINTMENT_CONFIRMED, NOTIFICATION
from app.core.config import settings
from app.infrastructure.marketplace.webhook_verify import verify_marketplace_signature
from app.wiring.dependencies import get_realtime_channel, get_workflow_store


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/webhooks/appointments/confirmed")
async def appointment_confirmed_webhook(request: Request) -> Response:
    body = await request.body()
    if not verify_marketplace_signature(
        body,
        request.headers.get("X-Marketplace-Signature"),
        request.headers.get("X-Marketplace-Timestamp"),
        settings.MARKETPLACE_WEBHOOK_SECRET,
        settings.ENV,
    ):
        return Response(status_code=403)

    try:
        payload = json.loads(body.decode("utf-8")) if body else {}
        event = AppointmentConfirmedEventDTO.model_validate(payload)
    except (ValueError, PydanticValidationError):
        logger.exception("Failed to parse confirmation webhook")
        return Response(status_code=400)

    logger.info("Appointment confirmed by stylist", extra={"appointment_id": event.appointment_id})
    get_realtime_channel().emit(APPOINTMENT_CONFIRMED, event.appointment_id, event.to_payload())
    return Response(status_code=200)


@router.websocket("/ws/bookings/{session_id}")
async def booking_events(websocket: WebSocket, session_id: str) -> None:
    try:
        get_workflow_store().get(session_id)
    except SessionNotFound:
        await websocket.close(code=4404)
        return

    channel = get_realtime_channel()
    queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    # Subscribed before the handshake so notices raised right after it are queued
    subscription = channel.subscribe(NOTIFICATION, session_id, queue.put_nowait)
    try:
        await websocket.accept()
        receiver = asyncio.create_task(_drain(websocket))
        sender = asyncio.create_task(_forward(websocket, queue))
        # Whichever side stops first ends the session
        done, pending = await asyncio.wait({receiver, sender}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        for task in done:
            error = task.exception()
            if isinstance(error, WebSocketDisconnect):
                logger.info("Booking socket disconnected", extra={"session_id": session_id})
            elif error is not None:
                logger.error(
                    "Booking socket failed",
                    exc_info=error,
                    extra={"session_id": session_id, "error": str(error)},
                )
    finally:
        channel.unsubscribe(subscription)


async def _drain(websocket: WebSocket) -> None:
    while True:
        await websocket.receive_text()


async def _forward(websocket: WebSocket, queue: "asyncio.Queue[dict[str, Any]]") -> None:
    while True:
        payload = await queue.get()
        await websocket.send_json({"event": NOTIFICATION, **payload})
