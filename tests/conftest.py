"""
Global fixtures for the pose stream client test suite.

The transport is exercised against a scripted in-memory websocket and a
manual sleeper so handshake, keepalive and reconnect timing are driven
explicitly by each test instead of wall-clock time.
"""
import asyncio
from typing import Any, Dict, List, Optional

import pytest

from pose_stream.core.config import Settings
from pose_stream.domain.pose.value_objects.keypoint import POSE_LANDMARK_COUNT
from pose_stream.domain.streaming.endpoint import Endpoint
from pose_stream.infrastructure.socketio.session import TransportSession

_CLOSED = object()


class FakeWebSocket:
    """In-memory websocket: tests feed inbound text and inspect what was sent."""

    def __init__(self):
        self.sent: List[str] = []
        self.closed = False
        self.close_calls = 0
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        if self.closed:
            raise RuntimeError("send on closed socket")
        self.sent.append(message)

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(_CLOSED)

    def feed(self, text: Any) -> None:
        self._inbox.put_nowait(text)

    def peer_close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(_CLOSED)

    def fail(self, error: BaseException) -> None:
        self._inbox.put_nowait(error)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._inbox.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


class FakeConnector:
    """Connector double recording every opening attempt."""

    def __init__(self):
        self.urls: List[str] = []
        self.sockets: List[FakeWebSocket] = []
        self.errors: List[BaseException] = []
        self.hang = False

    @property
    def calls(self) -> int:
        return len(self.urls)

    @property
    def last_socket(self) -> FakeWebSocket:
        return self.sockets[-1]

    async def __call__(self, url: str) -> FakeWebSocket:
        self.urls.append(url)
        if self.errors:
            raise self.errors.pop(0)
        if self.hang:
            await asyncio.Event().wait()
        ws = FakeWebSocket()
        self.sockets.append(ws)
        return ws


class ManualSleeper:
    """
    Stand-in for asyncio.sleep. Every sleeper blocks until `tick()` releases
    it, so one tick equals one elapsed timer interval.
    """

    def __init__(self):
        self.delays: List[float] = []
        self._waiters: List[asyncio.Future] = []

    @property
    def pending(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        await waiter

    async def tick(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
        await settle()


async def settle(rounds: int = 20) -> None:
    """Let scheduled tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_keypoints(count: int = POSE_LANDMARK_COUNT) -> List[List[float]]:
    return [[i / 100.0, 1.0 - i / 100.0, -0.1 * (i % 3), 0.9] for i in range(count)]


@pytest.fixture(scope="session")
def mock_settings_base_values() -> Dict[str, Any]:
    """
    Base values for a test Settings object. Tests can override these through
    the mock_settings factory.
    """
    return {
        "APP_NAME": "Pose Stream Test Client",
        "LOG_LEVEL": "DEBUG",
        "SERVER_HOST": "testserver",
        "SERVER_PORT": 5050,
        "CLIENT_NAME": "ios",
        "CONNECT_TIMEOUT_SECONDS": 0.05,
        "PING_INTERVAL_SECONDS": 25.0,
        "RECONNECT_DELAY_SECONDS": 2.0,
        "MANUAL_RECONNECT_DELAY_SECONDS": 0.5,
    }


@pytest.fixture
def mock_settings(mock_settings_base_values):
    def _factory(overrides: Optional[Dict[str, Any]] = None) -> Settings:
        values = dict(mock_settings_base_values)
        values.update(overrides or {})
        return Settings(_env_file=None, **values)
    return _factory


@pytest.fixture
def endpoint() -> Endpoint:
    return Endpoint(host="testserver", port=5050)


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def sleeper() -> ManualSleeper:
    return ManualSleeper()


@pytest.fixture
def keypoints() -> List[List[float]]:
    return make_keypoints()


@pytest.fixture
def transport_session(endpoint, fake_connector, sleeper) -> TransportSession:
    return TransportSession(
        endpoint=endpoint,
        connector=fake_connector,
        connect_timeout=0.05,
        ping_interval=25.0,
        reconnect_delay=2.0,
        client_name="ios",
        sleep=sleeper,
    )


@pytest.fixture
def complete_handshake():
    """Drive a session from DISCONNECTED to NAMESPACE_CONNECTED; returns the socket."""
    async def _handshake(session: TransportSession, connector: FakeConnector) -> FakeWebSocket:
        await session.connect()
        await settle()
        ws = connector.last_socket
        ws.feed('0{"sid":"abc","pingInterval":25000,"pingTimeout":20000}')
        await settle()
        ws.feed("40")
        await settle()
        return ws
    return _handshake


@pytest.fixture
def settle_tasks():
    return settle
