from __future__ import annotations

import random

import pytest

from app.application.ports.realtime import (
    CHAT_MESSAGE,
    CLIENT_LOCATION_UPDATE,
    CLIENT_PROXIMITY_ALERT,
    JOIN_CHAT_ROOM,
    LEAVE_CHAT_ROOM,
    USER_TYPING,
)
from app.application.use_cases.chat_relay import ChatRelay
from app.application.use_cases.location_sharing import LocationSharingUseCase
from app.application.utils.geo_math import distance_meters
from app.domain.entities.geo import GeoPoint

SALON = GeoPoint(lat=40.7580, lng=-73.9855)
NEARBY = GeoPoint(lat=40.7500, lng=-73.9900)  # under 1 km
FAR_AWAY = GeoPoint(lat=40.6500, lng=-73.9500)  # over 10 km


def _record(channel, event, key):
    received = []
    channel.subscribe(event, key, received.append)
    return received


@pytest.fixture
def sharing(channel) -> LocationSharingUseCase:
    return LocationSharingUseCase(channel, rng=random.Random(7))


def test_updates_are_blurred(sharing, channel):
    updates = _record(channel, CLIENT_LOCATION_UPDATE, "appt-1")

    sharing.share_client_location("appt-1", FAR_AWAY)

    assert len(updates) == 1
    payload = updates[0]
    assert payload["appointmentId"] == "appt-1"
    shared = GeoPoint(lat=payload["lat"], lng=payload["lng"])
    assert shared != FAR_AWAY
    assert distance_meters(shared, FAR_AWAY) <= 101.0


def test_untracked_appointment_has_no_distance(sharing, channel):
    alerts = _record(channel, CLIENT_PROXIMITY_ALERT, "appt-1")
    assert sharing.share_client_location("appt-1", NEARBY) is None
    assert alerts == []


def test_single_proximity_alert(sharing, channel):
    alerts = _record(channel, CLIENT_PROXIMITY_ALERT, "appt-1")
    sharing.start_tracking("appt-1", SALON)

    far = sharing.share_client_location("appt-1", FAR_AWAY)
    assert far > 3000
    assert alerts == []

    near = sharing.share_client_location("appt-1", NEARBY)
    assert near < 3000
    sharing.share_client_location("appt-1", SALON)

    assert len(alerts) == 1
    assert alerts[0]["appointmentId"] == "appt-1"
    assert alerts[0]["distance"] == pytest.approx(near)


def test_stop_tracking(sharing, channel):
    alerts = _record(channel, CLIENT_PROXIMITY_ALERT, "appt-1")
    sharing.start_tracking("appt-1", SALON)
    sharing.stop_tracking("appt-1")

    assert not sharing.is_tracking("appt-1")
    assert sharing.share_client_location("appt-1", NEARBY) is None
    assert alerts == []


def test_events_are_scoped_to_appointment(sharing, channel):
    other = _record(channel, CLIENT_LOCATION_UPDATE, "appt-2")
    sharing.share_client_location("appt-1", NEARBY)
    assert other == []


def test_chat_relay_passes_payloads_through(channel):
    relay = ChatRelay(channel)
    joined = _record(channel, JOIN_CHAT_ROOM, "appt-1")
    left = _record(channel, LEAVE_CHAT_ROOM, "appt-1")
    messages = _record(channel, CHAT_MESSAGE, "appt-1")
    typing = _record(channel, USER_TYPING, "appt-1")

    relay.join_room("appt-1", "client-9")
    relay.send_message("appt-1", "client-9", {"text": "Running 5 minutes late"})
    relay.set_typing("appt-1", "client-9", False)
    relay.leave_room("appt-1", "client-9")

    assert joined == [{"appointmentId": "appt-1", "userId": "client-9"}]
    assert messages == [
        {"appointmentId": "appt-1", "userId": "client-9", "message": {"text": "Running 5 minutes late"}}
    ]
    assert typing == [{"appointmentId": "appt-1", "userId": "client-9", "typing": False}]
    assert left == [{"appointmentId": "appt-1", "userId": "client-9"}]


def test_channel_survives_failing_handler(channel):
    def broken(payload):
        raise RuntimeError("boom")

    received = []
    channel.subscribe(CHAT_MESSAGE, "appt-1", broken)
    channel.subscribe(CHAT_MESSAGE, "appt-1", received.append)

    channel.emit(CHAT_MESSAGE, "appt-1", {"message": "hi"})

    assert received == [{"message": "hi"}]


def test_unsubscribe_is_idempotent(channel):
    subscription = channel.subscribe(CHAT_MESSAGE, "appt-1", lambda payload: None)
    channel.unsubscribe(subscription)
    channel.unsubscribe(subscription)
    assert channel.subscriber_count(CHAT_MESSAGE, "appt-1") == 0
