"""
Websocket opening seam.

The transport session never imports the websocket library directly; it is
handed a connector coroutine returning an open connection object that
supports `send(text)`, `close()` and async iteration over inbound messages.
Tests substitute a scripted connection here.
"""
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol, Union

import websockets

logger = logging.getLogger(__name__)

Message = Union[str, bytes]


class WebSocketConnection(Protocol):
    """Minimal surface of an open websocket used by the session."""

    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[Message]: ...


Connector = Callable[[str], Awaitable[WebSocketConnection]]


async def websockets_connector(url: str, **kwargs: Any) -> WebSocketConnection:
    """
    Open a websocket with the `websockets` library.

    The library's own keepalive pings are disabled since Engine.IO pings
    travel as text frames. Timeouts are enforced by the caller.
    """
    logger.debug(f"Opening websocket to {url}")
    return await websockets.connect(url, ping_interval=None, open_timeout=None, **kwargs)
