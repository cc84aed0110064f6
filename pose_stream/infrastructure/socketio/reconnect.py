"""
Delayed reconnection after an unexpected disconnect.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from pose_stream.infrastructure.socketio.keepalive import Sleeper

logger = logging.getLogger(__name__)


class ReconnectPolicy:
    """
    Schedules a single reconnect attempt after a fixed delay.

    Scheduling again replaces the pending attempt instead of stacking a
    second one; `cancel()` guarantees the pending callback never runs.
    """

    def __init__(self, delay: float, sleep: Sleeper = asyncio.sleep):
        if delay < 0:
            raise ValueError("Reconnect delay cannot be negative")
        self.delay = delay
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None
        self.attempts = 0

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, reconnect: Callable[[], Awaitable[None]]) -> None:
        """
        Run `reconnect` once after `delay` seconds.

        Args:
            reconnect: Coroutine function that reopens the session
        """
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(reconnect))
        logger.info(f"Reconnect scheduled in {self.delay}s")

    def cancel(self) -> None:
        if self._task is None:
            return
        if not self._task.done() and self._task is not asyncio.current_task():
            self._task.cancel()
            logger.info("Pending reconnect cancelled")
        self._task = None

    def reset(self) -> None:
        """Forget the attempt counter once a session is fully established."""
        self.attempts = 0

    async def _run(self, reconnect: Callable[[], Awaitable[None]]) -> None:
        await self._sleep(self.delay)
        self.attempts += 1
        logger.info(f"Reconnect attempt {self.attempts}")
        try:
            await reconnect()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Reconnect attempt failed: {e}", exc_info=True)
