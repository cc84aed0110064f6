"""
Periodic client pings for an established session.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class KeepaliveManager:
    """
    Sends a ping every `interval` seconds while running.

    At most one timer task exists per manager; `start()` on a running
    manager is a no-op and `stop()` cancels the task synchronously so no
    ping can be written after it returns control to the event loop.
    """

    def __init__(
        self,
        send_ping: Callable[[], Awaitable[None]],
        interval: float,
        sleep: Sleeper = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError("Keepalive interval must be positive")
        self._send_ping = send_ping
        self.interval = interval
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.pings_sent = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            logger.debug("Keepalive already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._ping_loop())
        logger.info(f"Keepalive started (interval={self.interval}s)")

    def stop(self) -> None:
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
            logger.info("Keepalive stopped")
        self._task = None

    async def _ping_loop(self) -> None:
        while True:
            await self._sleep(self.interval)
            try:
                await self._send_ping()
                self.pings_sent += 1
                logger.debug("Keepalive ping sent")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # The reader notices a dead socket; keep the timer alive until stopped.
                logger.warning(f"Keepalive ping failed: {e}")
