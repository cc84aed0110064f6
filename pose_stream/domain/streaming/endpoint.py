"""
Server endpoint value object.
"""
from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urlencode

from pose_stream.domain.shared.value_objects.base_value_object import BaseValueObject

DEFAULT_QUERY: Tuple[Tuple[str, str], ...] = (("EIO", "4"), ("transport", "websocket"))


@dataclass(frozen=True)
class Endpoint(BaseValueObject):
    """
    Immutable websocket address of the scoring server.

    Query parameters are kept as ordered pairs so the rendered URL is stable.
    """

    host: str
    port: int
    path: str = "/socket.io/"
    query: Tuple[Tuple[str, str], ...] = DEFAULT_QUERY
    scheme: str = "ws"

    def _validate(self) -> None:
        if not self.host or not self.host.strip():
            raise ValueError("Endpoint host cannot be empty")
        if not 1 <= self.port <= 65535:
            raise ValueError(f"Endpoint port out of range: {self.port}")
        if self.scheme not in ("ws", "wss"):
            raise ValueError(f"Unsupported websocket scheme: {self.scheme}")
        if not self.path.startswith("/"):
            raise ValueError("Endpoint path must start with '/'")

    @property
    def url(self) -> str:
        base = f"{self.scheme}://{self.host}:{self.port}{self.path}"
        if not self.query:
            return base
        return f"{base}?{urlencode(self.query)}"

    def __str__(self) -> str:
        return self.url
