# tests/domain/test_streaming_values.py
"""
Unit tests for the streaming value objects: Endpoint, OutboundEvent, ScoreEvent
and ConnectionState.
"""
import pytest

from pose_stream.domain.streaming.connection_state import ConnectionState
from pose_stream.domain.streaming.endpoint import Endpoint
from pose_stream.domain.streaming.events import OutboundEvent, ScoreEvent


def test_endpoint_renders_socketio_url():
    endpoint = Endpoint(host="192.168.1.20", port=5000)

    assert endpoint.url == "ws://192.168.1.20:5000/socket.io/?EIO=4&transport=websocket"
    assert str(endpoint) == endpoint.url


def test_endpoint_without_query():
    assert Endpoint(host="h", port=80, path="/ws", query=()).url == "ws://h:80/ws"


@pytest.mark.parametrize("kwargs", [
    {"host": "", "port": 5000},
    {"host": "   ", "port": 5000},
    {"host": "h", "port": 0},
    {"host": "h", "port": 70000},
    {"host": "h", "port": 5000, "scheme": "http"},
    {"host": "h", "port": 5000, "path": "socket.io"},
])
def test_endpoint_validation(kwargs):
    with pytest.raises(ValueError):
        Endpoint(**kwargs)


def test_endpoint_is_hashable_and_compared_by_value():
    assert Endpoint(host="h", port=1) == Endpoint(host="h", port=1)
    assert len({Endpoint(host="h", port=1), Endpoint(host="h", port=1)}) == 1


def test_camera_action_payload():
    event = OutboundEvent.camera_action("video_stopped", "ios", timestamp_ms=1700000000123)

    assert event.event_name == "camera_action"
    assert event.payload == {"timestamp": 1700000000123, "action": "video_stopped", "client": "ios"}


def test_camera_action_defaults_timestamp_to_now(mocker):
    mocker.patch("pose_stream.domain.streaming.events.time.time", return_value=1700000000.5)

    event = OutboundEvent.camera_action("video_stopped", "ios")

    assert event.payload["timestamp"] == 1700000000500


def test_outbound_event_requires_name():
    with pytest.raises(ValueError):
        OutboundEvent("", {})


def test_score_event_to_dict():
    event = ScoreEvent(score=90, received_at=12.5)

    assert event.to_dict() == {"score": 90, "received_at": 12.5}


@pytest.mark.parametrize("state, active", [
    (ConnectionState.DISCONNECTED, False),
    (ConnectionState.SOCKET_OPENING, True),
    (ConnectionState.ENGINE_HANDSHAKE_RECEIVED, True),
    (ConnectionState.NAMESPACE_CONNECTED, True),
    (ConnectionState.ERROR, False),
])
def test_connection_state_activity(state, active):
    assert state.is_active is active
