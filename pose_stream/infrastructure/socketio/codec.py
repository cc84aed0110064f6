"""
Engine.IO / Socket.IO text framing for the streaming channel.

Only the subset the scoring server uses is supported:

    in   0{...}               engine open (handshake)
    out  40                   connect to the default namespace
    in   40 / 40,... / 40{..} namespace connect acknowledgment
    both 42["event",payload]  application event
    both 2 / 3                engine ping / pong

Decoding never raises; anything that cannot be classified comes back as
an UNKNOWN frame carrying the raw text.
"""
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pose_stream.domain.streaming.events import SCORE_EVENT, OutboundEvent, ScoreEvent

logger = logging.getLogger(__name__)

ENGINE_OPEN_PREFIX = "0{"
ENGINE_PING = "2"
ENGINE_PONG = "3"
NAMESPACE_CONNECT = "40"
NAMESPACE_CONNECT_ACK_PREFIX = "40"
EVENT_PREFIX = "42"
EVENT_ARRAY_PREFIX = "42["


class FrameKind(Enum):
    """Classification of an inbound text frame."""
    ENGINE_OPEN = "engine_open"
    NAMESPACE_CONNECT_ACK = "namespace_connect_ack"
    APPLICATION_EVENT = "application_event"
    ENGINE_PING = "engine_ping"
    ENGINE_PONG = "engine_pong"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class InboundFrame:
    """
    A decoded inbound frame.

    For application events `event_name` and `payload` hold the decoded
    array elements and `feedback_text` the raw bracket content used for
    diagnostic display. `score_event` is set only for score events.
    """
    kind: FrameKind
    raw: str
    event_name: Optional[str] = None
    payload: Any = None
    feedback_text: Optional[str] = None
    score_event: Optional[ScoreEvent] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_score(self) -> bool:
        return self.score_event is not None


def encode_event(event: OutboundEvent) -> str:
    """
    Encode an application event as `42["name",payload]`.

    Raises:
        TypeError/ValueError: If the payload is not JSON-serializable
    """
    return EVENT_PREFIX + json.dumps([event.event_name, event.payload], separators=(",", ":"))


def decode_frame(text: str) -> InboundFrame:
    """
    Classify raw socket text. Prefixes are checked in protocol precedence
    order: engine open, ping, pong, namespace ack, application event.
    """
    if not isinstance(text, str):
        logger.warning(f"Ignoring non-text frame of type {type(text).__name__}")
        return InboundFrame(kind=FrameKind.UNKNOWN, raw=repr(text))

    if text.startswith(ENGINE_OPEN_PREFIX):
        return _decode_engine_open(text)
    if text == ENGINE_PING:
        return InboundFrame(kind=FrameKind.ENGINE_PING, raw=text)
    if text == ENGINE_PONG:
        return InboundFrame(kind=FrameKind.ENGINE_PONG, raw=text)
    if text.startswith(NAMESPACE_CONNECT_ACK_PREFIX):
        return InboundFrame(kind=FrameKind.NAMESPACE_CONNECT_ACK, raw=text)
    if text.startswith(EVENT_ARRAY_PREFIX):
        return _decode_application_event(text)

    logger.warning(f"Unknown frame ignored: {text[:80]!r}")
    return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)


def _decode_engine_open(text: str) -> InboundFrame:
    try:
        metadata = json.loads(text[1:])
    except ValueError as e:
        logger.warning(f"Malformed engine open frame: {e}")
        return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)
    if not isinstance(metadata, dict):
        return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)
    return InboundFrame(kind=FrameKind.ENGINE_OPEN, raw=text, metadata=metadata)


def _decode_application_event(text: str) -> InboundFrame:
    start = text.find("[")
    end = text.rfind("]")
    if end <= start:
        logger.warning(f"Event frame without closing bracket: {text[:80]!r}")
        return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)

    # Parsed as one JSON array so brackets inside string values stay intact.
    try:
        elements = json.loads(text[len(EVENT_PREFIX):])
    except ValueError as e:
        logger.warning(f"Malformed event payload: {e}")
        return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)

    if not isinstance(elements, list) or not elements or not isinstance(elements[0], str):
        logger.warning(f"Event frame without a name: {text[:80]!r}")
        return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)

    event_name = elements[0]
    payload = elements[1] if len(elements) > 1 else None
    feedback_text = text[start + 1:end]

    if SCORE_EVENT in event_name:
        score = parse_score(payload)
        if score is None:
            logger.warning(f"Score event with unusable payload: {feedback_text[:80]!r}")
            return InboundFrame(kind=FrameKind.UNKNOWN, raw=text)
        return InboundFrame(
            kind=FrameKind.APPLICATION_EVENT,
            raw=text,
            event_name=event_name,
            payload=payload,
            feedback_text=feedback_text,
            score_event=ScoreEvent(score=score),
        )

    return InboundFrame(
        kind=FrameKind.APPLICATION_EVENT,
        raw=text,
        event_name=event_name,
        payload=payload,
        feedback_text=feedback_text,
    )


def parse_score(payload: Any) -> Optional[int]:
    """
    Extract an integer score from a bare number or a {"score": n} object.
    Returns None when the payload carries no integral score.
    """
    if isinstance(payload, dict):
        payload = payload.get("score")
    if isinstance(payload, bool):
        return None
    if isinstance(payload, int):
        return payload
    if isinstance(payload, float) and payload.is_integer():
        return int(payload)
    return None
