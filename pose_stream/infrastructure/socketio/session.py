"""
Transport session: one websocket driven through the two-stage handshake.

Lifecycle:
    DISCONNECTED --connect()--> SOCKET_OPENING
    SOCKET_OPENING --engine open "0{..}"--> ENGINE_HANDSHAKE_RECEIVED  (writes "40")
    ENGINE_HANDSHAKE_RECEIVED --namespace ack "40"--> NAMESPACE_CONNECTED  (keepalive on, connect_ack sent)
    any --socket error / timeout--> ERROR          (reconnect scheduled)
    opening --no namespace ack within connect_timeout--> ERROR  (reconnect scheduled)
    any --clean peer close--> DISCONNECTED         (reconnect scheduled)
    any --disconnect()--> DISCONNECTED             (nothing scheduled)

All state lives on the event loop that called `connect()`; listeners and the
event handler are invoked synchronously on that loop.
"""
import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from pose_stream.domain.streaming.connection_state import ConnectionState
from pose_stream.domain.streaming.endpoint import Endpoint
from pose_stream.domain.streaming.events import OutboundEvent
from pose_stream.infrastructure.socketio.codec import (
    ENGINE_PING,
    ENGINE_PONG,
    NAMESPACE_CONNECT,
    FrameKind,
    InboundFrame,
    decode_frame,
    encode_event,
)
from pose_stream.infrastructure.socketio.connector import Connector, WebSocketConnection, websockets_connector
from pose_stream.infrastructure.socketio.keepalive import KeepaliveManager, Sleeper
from pose_stream.infrastructure.socketio.reconnect import ReconnectPolicy
from pose_stream.utils.error_handler import (
    TransportErrorKind,
    TransportErrorStats,
    classify_transport_error,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[ConnectionState], None]
EventHandler = Callable[[InboundFrame], None]


class TransportSession:
    """
    Owns the websocket to the scoring server.

    Application events may only be sent in NAMESPACE_CONNECTED; anything
    sent earlier or after a disconnect is dropped, never queued.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        connector: Optional[Connector] = None,
        connect_timeout: float = 5.0,
        ping_interval: float = 25.0,
        reconnect_delay: float = 2.0,
        client_name: str = "ios",
        sleep: Sleeper = asyncio.sleep,
    ):
        self.endpoint = endpoint
        self.connect_timeout = connect_timeout
        self.client_name = client_name
        self._connector: Connector = connector or websockets_connector

        self._state = ConnectionState.DISCONNECTED
        self._ws: Optional[WebSocketConnection] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._closing = False

        self._keepalive = KeepaliveManager(self._send_ping, ping_interval, sleep=sleep)
        self._reconnect = ReconnectPolicy(reconnect_delay, sleep=sleep)

        self._state_listeners: List[StateListener] = []
        self._event_handler: Optional[EventHandler] = None

        self.error_stats = TransportErrorStats()
        self.performance_stats = {
            "connect_attempts": 0,
            "messages_sent": 0,
            "messages_dropped": 0,
            "frames_received": 0,
        }

    @classmethod
    def from_settings(cls, settings, **kwargs: Any) -> "TransportSession":
        """Build a session from application Settings; kwargs override them."""
        params = dict(
            endpoint=settings.endpoint,
            connect_timeout=settings.CONNECT_TIMEOUT_SECONDS,
            ping_interval=settings.PING_INTERVAL_SECONDS,
            reconnect_delay=settings.RECONNECT_DELAY_SECONDS,
            client_name=settings.CLIENT_NAME,
        )
        params.update(kwargs)
        return cls(**params)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.NAMESPACE_CONNECTED

    @property
    def keepalive(self) -> KeepaliveManager:
        return self._keepalive

    @property
    def reconnect_policy(self) -> ReconnectPolicy:
        return self._reconnect

    def add_state_listener(self, listener: StateListener) -> None:
        if listener not in self._state_listeners:
            self._state_listeners.append(listener)

    def remove_state_listener(self, listener: StateListener) -> None:
        if listener in self._state_listeners:
            self._state_listeners.remove(listener)

    def set_event_handler(self, handler: Optional[EventHandler]) -> None:
        """Register the single receiver of decoded application events."""
        self._event_handler = handler

    def get_status(self) -> Dict[str, Any]:
        return {
            "state": self._state.value,
            "endpoint": self.endpoint.url,
            "keepalive_running": self._keepalive.is_running,
            "reconnect_pending": self._reconnect.pending,
            "reconnect_attempts": self._reconnect.attempts,
            "stats": dict(self.performance_stats),
            "errors": self.error_stats.to_dict(),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Start a connection attempt. No-op while an attempt or session is active.
        """
        if self._state.is_active:
            logger.debug(f"connect() ignored in state {self._state.value}")
            return

        self._closing = False
        self._reconnect.cancel()
        self.performance_stats["connect_attempts"] += 1
        self._set_state(ConnectionState.SOCKET_OPENING)
        self._reader_task = asyncio.get_running_loop().create_task(self._run())

    async def disconnect(self) -> None:
        """
        Close the session from any state. Cancels keepalive and any pending
        reconnect; no reconnect is scheduled afterwards.
        """
        self._closing = True
        self._reconnect.cancel()
        self._keepalive.stop()

        task = self._reader_task
        self._reader_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        ws = self._ws
        self._ws = None
        await self._close_socket(ws)

        if self._state is not ConnectionState.DISCONNECTED:
            logger.info(f"Disconnected from {self.endpoint.url}")
        self._set_state(ConnectionState.DISCONNECTED)

    async def send(self, event: OutboundEvent) -> bool:
        """
        Emit an application event. Returns False when the event was dropped.
        """
        if self._state is not ConnectionState.NAMESPACE_CONNECTED:
            logger.debug(f"Dropped '{event.event_name}' while {self._state.value}")
            self._record_drop(event, f"not connected ({self._state.value})")
            return False

        try:
            text = encode_event(event)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot encode '{event.event_name}' payload: {e}")
            self._record_drop(event, f"unencodable payload: {e}")
            return False

        if await self._write(text):
            self.performance_stats["messages_sent"] += 1
            return True
        self._record_drop(event, "write failed")
        return False

    def _record_drop(self, event: OutboundEvent, reason: str) -> None:
        self.performance_stats["messages_dropped"] += 1
        self.error_stats.record(TransportErrorKind.SEND_DROPPED, f"{event.event_name}: {reason}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        url = self.endpoint.url
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.connect_timeout
        logger.info(f"Connecting to {url} (timeout={self.connect_timeout}s)")
        try:
            ws = await asyncio.wait_for(self._connector(url), timeout=self.connect_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._on_connection_lost(e, while_opening=True)
            return

        self._ws = ws
        logger.info("Websocket open, waiting for engine handshake")

        # connect_timeout bounds the whole attempt, up to the namespace ack
        messages = ws.__aiter__()
        error: Optional[BaseException] = None
        try:
            remaining = max(deadline - loop.time(), 0.0)
            if await asyncio.wait_for(self._read_handshake(messages), timeout=remaining):
                async for message in messages:
                    await self._handle_message(message)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning(f"Handshake not completed within {self.connect_timeout}s (state {self._state.value})")
            error = e
        except Exception as e:
            error = e
        await self._on_connection_lost(error)

    async def _read_handshake(self, messages: AsyncIterator[Any]) -> bool:
        """Consume frames until NAMESPACE_CONNECTED. Returns False if the stream ended first."""
        while self._state is not ConnectionState.NAMESPACE_CONNECTED:
            try:
                message = await messages.__anext__()
            except StopAsyncIteration:
                return False
            await self._handle_message(message)
        return True

    async def _handle_message(self, message: Any) -> None:
        self.performance_stats["frames_received"] += 1
        frame = decode_frame(message)

        if frame.kind is FrameKind.ENGINE_OPEN:
            if self._state is not ConnectionState.SOCKET_OPENING:
                logger.debug(f"Engine open ignored in state {self._state.value}")
                return
            logger.info(f"Engine handshake received (sid={frame.metadata.get('sid')})")
            self._set_state(ConnectionState.ENGINE_HANDSHAKE_RECEIVED)
            await self._write(NAMESPACE_CONNECT)

        elif frame.kind is FrameKind.NAMESPACE_CONNECT_ACK:
            if self._state is not ConnectionState.ENGINE_HANDSHAKE_RECEIVED:
                logger.debug(f"Namespace ack ignored in state {self._state.value}")
                return
            self._set_state(ConnectionState.NAMESPACE_CONNECTED)
            self._reconnect.reset()
            self._keepalive.start()
            await self.send(OutboundEvent.connect_ack(self.client_name))

        elif frame.kind is FrameKind.ENGINE_PING:
            logger.debug("Engine ping received, answering pong")
            await self._write(ENGINE_PONG)

        elif frame.kind is FrameKind.ENGINE_PONG:
            logger.debug("Engine pong received")

        elif frame.kind is FrameKind.APPLICATION_EVENT:
            self._dispatch_event(frame)

        else:
            self.error_stats.record(TransportErrorKind.MALFORMED_FRAME, frame.raw[:200])

    def _dispatch_event(self, frame: InboundFrame) -> None:
        if self._event_handler is None:
            logger.debug(f"No handler for event '{frame.event_name}'")
            return
        try:
            self._event_handler(frame)
        except Exception as e:
            logger.error(f"Event handler failed for '{frame.event_name}': {e}", exc_info=True)

    async def _on_connection_lost(self, error: Optional[BaseException], while_opening: bool = False) -> None:
        kind = classify_transport_error(error, while_opening=while_opening)
        self.error_stats.record(kind, repr(error) if error is not None else "closed by peer")
        self._keepalive.stop()

        ws = self._ws
        self._ws = None
        await self._close_socket(ws)

        if self._closing:
            return

        logger.warning(f"Connection lost ({kind.value}): {error!r}")
        if kind is TransportErrorKind.PEER_CLOSED:
            self._set_state(ConnectionState.DISCONNECTED)
        else:
            self._set_state(ConnectionState.ERROR)
        if kind.triggers_reconnect:
            self._reconnect.schedule(self.connect)

    async def _send_ping(self) -> None:
        if not await self._write(ENGINE_PING):
            raise ConnectionError("ping not written")

    async def _write(self, text: str) -> bool:
        ws = self._ws
        if ws is None:
            return False
        try:
            await ws.send(text)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Websocket write failed: {e}")
            return False

    async def _close_socket(self, ws: Optional[WebSocketConnection]) -> None:
        if ws is None:
            return
        try:
            await ws.close()
        except Exception as e:
            logger.debug(f"Error while closing websocket: {e}")

    def _set_state(self, new_state: ConnectionState) -> None:
        if new_state is self._state:
            return
        old_state = self._state
        self._state = new_state
        logger.info(f"Connection state: {old_state.value} -> {new_state.value}")
        for listener in list(self._state_listeners):
            try:
                listener(new_state)
            except Exception as e:
                logger.error(f"State listener failed: {e}", exc_info=True)
