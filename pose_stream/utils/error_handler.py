"""
Transport error classification and bookkeeping.

Nothing in the streaming path is fatal: connect failures and socket drops
are retried by the reconnect policy, malformed frames are discarded and
sends while disconnected are dropped. This module gives those outcomes a
name so they can be logged and counted consistently.
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedOK,
    InvalidHandshake,
    InvalidURI,
)


class TransportErrorKind(Enum):
    """Error classes of the streaming transport."""
    CONNECT_FAILURE = "connect_failure"
    CONNECT_TIMEOUT = "connect_timeout"
    PEER_CLOSED = "peer_closed"
    SOCKET_ERROR = "socket_error"
    MALFORMED_FRAME = "malformed_frame"
    SEND_DROPPED = "send_dropped"

    @property
    def triggers_reconnect(self) -> bool:
        return self in (
            TransportErrorKind.CONNECT_FAILURE,
            TransportErrorKind.CONNECT_TIMEOUT,
            TransportErrorKind.PEER_CLOSED,
            TransportErrorKind.SOCKET_ERROR,
        )


def classify_transport_error(error: Optional[BaseException], while_opening: bool = False) -> TransportErrorKind:
    """
    Map an exception raised by the websocket layer to a TransportErrorKind.

    Args:
        error: Exception raised, or None when the peer ended the stream cleanly
        while_opening: True if the error happened before the socket was open

    Returns:
        The matching error kind
    """
    if error is None or isinstance(error, ConnectionClosedOK):
        return TransportErrorKind.PEER_CLOSED
    if isinstance(error, asyncio.TimeoutError):
        return TransportErrorKind.CONNECT_TIMEOUT
    if isinstance(error, (InvalidURI, InvalidHandshake)):
        return TransportErrorKind.CONNECT_FAILURE
    if isinstance(error, ConnectionClosed):
        return TransportErrorKind.SOCKET_ERROR
    if while_opening:
        return TransportErrorKind.CONNECT_FAILURE
    return TransportErrorKind.SOCKET_ERROR


@dataclass
class TransportErrorStats:
    """Per-kind error counters for one transport session."""
    counts: Dict[TransportErrorKind, int] = field(
        default_factory=lambda: {kind: 0 for kind in TransportErrorKind}
    )
    last_kind: Optional[TransportErrorKind] = None
    last_message: Optional[str] = None
    last_error_at: Optional[float] = None

    def record(self, kind: TransportErrorKind, message: Optional[str] = None) -> None:
        self.counts[kind] += 1
        self.last_kind = kind
        self.last_message = message
        self.last_error_at = time.time()

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def to_dict(self) -> Dict[str, object]:
        return {
            "counts": {kind.value: count for kind, count in self.counts.items()},
            "total": self.total,
            "last_kind": self.last_kind.value if self.last_kind else None,
            "last_message": self.last_message,
            "last_error_at": self.last_error_at,
        }
