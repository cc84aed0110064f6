"""
Base value object for the streaming domain.

Keypoints, pose observations, endpoints and events are immutable and
compared by value. `to_dict()` yields plain JSON-ready data so any value
object can be logged or reported in a status summary as-is.
"""
from abc import ABC
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict


def _plain(value: Any) -> Any:
    if isinstance(value, BaseValueObject):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class BaseValueObject(ABC):
    """
    Frozen dataclass base; subclasses put their checks in `_validate()`,
    which runs on every construction and raises ValueError.
    """

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Field values with nested value objects, tuples and enums unfolded."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
