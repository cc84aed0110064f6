"""
Application events exchanged with the scoring server.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pose_stream.domain.pose.value_objects.keypoint import PoseObservation
from pose_stream.domain.shared.value_objects.base_value_object import BaseValueObject

POSE_LANDMARKS_EVENT = "pose_landmarks"
CAMERA_ACTION_EVENT = "camera_action"
CONNECT_ACK_EVENT = "connect_ack"
SCORE_EVENT = "score"

VIDEO_STOPPED_ACTION = "video_stopped"


def epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class OutboundEvent(BaseValueObject):
    """
    Event emitted by the client. The payload must be JSON-serializable.
    """

    event_name: str
    payload: Any = None

    def _validate(self) -> None:
        if not self.event_name:
            raise ValueError("Event name cannot be empty")

    @classmethod
    def pose_landmarks(cls, observation: PoseObservation) -> "OutboundEvent":
        return cls(POSE_LANDMARKS_EVENT, observation.to_payload())

    @classmethod
    def camera_action(cls, action: str, client: str, timestamp_ms: Optional[int] = None) -> "OutboundEvent":
        return cls(
            CAMERA_ACTION_EVENT,
            {
                "timestamp": epoch_ms() if timestamp_ms is None else int(timestamp_ms),
                "action": action,
                "client": client,
            },
        )

    @classmethod
    def connect_ack(cls, client: str) -> "OutboundEvent":
        return cls(CONNECT_ACK_EVENT, {"client": client})


@dataclass(frozen=True)
class ScoreEvent(BaseValueObject):
    """Score pushed by the server, stamped with the local receive time (epoch seconds)."""

    score: int
    received_at: float = field(default_factory=time.time)
