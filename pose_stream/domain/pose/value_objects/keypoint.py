"""
Keypoint and pose observation value objects.

A pose observation is the output of the upstream pose model for one video
frame: an ordered set of body landmarks whose index order is fixed by the
model and must be preserved on the wire.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from pose_stream.domain.shared.value_objects.base_value_object import BaseValueObject

POSE_LANDMARK_COUNT = 33
VALUES_PER_KEYPOINT = 4

KeypointLike = Union["Keypoint", Sequence[float]]


@dataclass(frozen=True)
class Keypoint(BaseValueObject):
    """
    One tracked body-joint position plus its visibility confidence.

    Coordinates are normalized image-space (x, y) with a relative depth z;
    visibility is a probability in [0, 1].
    """

    x: float
    y: float
    z: float
    visibility: float = 1.0

    def _validate(self) -> None:
        for name in ("x", "y", "z", "visibility"):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f"Keypoint {name} must be finite")
        if not 0.0 <= self.visibility <= 1.0:
            raise ValueError(f"Keypoint visibility must be within [0, 1], got {self.visibility}")

    @classmethod
    def coerce(cls, value: KeypointLike) -> "Keypoint":
        """
        Accept a Keypoint, or an (x, y, z[, visibility]) sequence from the model.
        """
        if isinstance(value, Keypoint):
            return value
        if len(value) not in (3, VALUES_PER_KEYPOINT):
            raise ValueError(f"Keypoint sequence needs 3 or 4 values, got {len(value)}")
        return cls(*(float(v) for v in value))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.visibility)


def flatten_keypoints(keypoints: Iterable[Keypoint]) -> List[float]:
    """Flatten keypoints into [x0, y0, z0, v0, x1, ...] keeping model order."""
    flat: List[float] = []
    for kp in keypoints:
        flat.extend(kp.as_tuple())
    return flat


@dataclass(frozen=True)
class PoseObservation(BaseValueObject):
    """
    Keypoints detected on a single frame at a given image timestamp.

    World keypoints (metric, hip-centred) are optional and follow the same
    landmark ordering as the image-space keypoints.
    """

    timestamp_ms: int
    keypoints: Tuple[Keypoint, ...]
    world_keypoints: Optional[Tuple[Keypoint, ...]] = None

    def _validate(self) -> None:
        if self.timestamp_ms < 0:
            raise ValueError("Pose timestamp must be non-negative")
        if len(self.keypoints) != POSE_LANDMARK_COUNT:
            raise ValueError(
                f"Pose observation requires exactly {POSE_LANDMARK_COUNT} keypoints, got {len(self.keypoints)}"
            )
        if self.world_keypoints is not None and len(self.world_keypoints) != POSE_LANDMARK_COUNT:
            raise ValueError(
                f"World keypoints must also contain {POSE_LANDMARK_COUNT} entries, got {len(self.world_keypoints)}"
            )

    @classmethod
    def create(
        cls,
        timestamp_ms: int,
        keypoints: Sequence[KeypointLike],
        world_keypoints: Optional[Sequence[KeypointLike]] = None,
    ) -> "PoseObservation":
        """
        Build an observation from model output.

        Args:
            timestamp_ms: Image timestamp in epoch milliseconds
            keypoints: 33 keypoints in landmark index order
            world_keypoints: Optional 33 world-space keypoints

        Returns:
            PoseObservation instance
        """
        world = None
        if world_keypoints is not None:
            world = tuple(Keypoint.coerce(kp) for kp in world_keypoints)
        return cls(
            timestamp_ms=int(timestamp_ms),
            keypoints=tuple(Keypoint.coerce(kp) for kp in keypoints),
            world_keypoints=world,
        )

    def to_payload(self) -> Dict[str, Any]:
        """Wire payload for the pose_landmarks event."""
        payload: Dict[str, Any] = {
            "timestamp": self.timestamp_ms,
            "landmarks": flatten_keypoints(self.keypoints),
        }
        if self.world_keypoints is not None:
            payload["world_landmarks"] = flatten_keypoints(self.world_keypoints)
        return payload
