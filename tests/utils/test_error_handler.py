# tests/utils/test_error_handler.py
"""
Unit tests for transport error classification in pose_stream.utils.error_handler.
"""
import asyncio

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK, InvalidURI

from pose_stream.utils.error_handler import (
    TransportErrorKind,
    TransportErrorStats,
    classify_transport_error,
)


@pytest.mark.parametrize("error, while_opening, expected", [
    (None, False, TransportErrorKind.PEER_CLOSED),
    (ConnectionClosedOK(None, None), False, TransportErrorKind.PEER_CLOSED),
    (ConnectionClosedError(None, None), False, TransportErrorKind.SOCKET_ERROR),
    (asyncio.TimeoutError(), True, TransportErrorKind.CONNECT_TIMEOUT),
    (InvalidURI("nope", "bad uri"), True, TransportErrorKind.CONNECT_FAILURE),
    (OSError("refused"), True, TransportErrorKind.CONNECT_FAILURE),
    (OSError("reset"), False, TransportErrorKind.SOCKET_ERROR),
])
def test_classify_transport_error(error, while_opening, expected):
    assert classify_transport_error(error, while_opening=while_opening) == expected


def test_reconnect_triggering_kinds():
    assert TransportErrorKind.PEER_CLOSED.triggers_reconnect
    assert TransportErrorKind.CONNECT_TIMEOUT.triggers_reconnect
    assert not TransportErrorKind.MALFORMED_FRAME.triggers_reconnect
    assert not TransportErrorKind.SEND_DROPPED.triggers_reconnect


def test_stats_record_and_export(mocker):
    mocker.patch("pose_stream.utils.error_handler.time.time", return_value=100.0)
    stats = TransportErrorStats()

    stats.record(TransportErrorKind.MALFORMED_FRAME, "hello")
    stats.record(TransportErrorKind.SOCKET_ERROR, "reset")

    assert stats.total == 2
    assert stats.counts[TransportErrorKind.MALFORMED_FRAME] == 1
    exported = stats.to_dict()
    assert exported["last_kind"] == "socket_error"
    assert exported["last_message"] == "reset"
    assert exported["last_error_at"] == 100.0
    assert exported["counts"]["connect_timeout"] == 0
