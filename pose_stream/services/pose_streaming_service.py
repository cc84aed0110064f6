"""
Pose streaming client used by the frame feed and the UI layer.

The frame feed calls `submit_pose()` for every processed frame (or
`submit_pose_threadsafe()` from a capture thread). Delivery is best-effort
and at-most-once: poses produced while the channel is not fully connected
are dropped since stale keypoints are worthless to the scorer.
"""
import asyncio
import concurrent.futures
import logging
from typing import Any, Dict, Optional, Sequence

from pose_stream.domain.pose.value_objects.keypoint import KeypointLike, PoseObservation
from pose_stream.domain.streaming.connection_state import ConnectionState
from pose_stream.domain.streaming.events import VIDEO_STOPPED_ACTION, OutboundEvent
from pose_stream.infrastructure.socketio.keepalive import Sleeper
from pose_stream.infrastructure.socketio.session import StateListener, TransportSession
from pose_stream.services.score_feedback import ScoreCallback, ScoreFeedbackSink

logger = logging.getLogger(__name__)

RECONNECTING_FEEDBACK = "Reconnecting..."


class PoseStreamingClient:
    """
    Couples a TransportSession with the score feedback sink and exposes the
    operations the camera/pose pipeline and the UI need.
    """

    def __init__(
        self,
        session: TransportSession,
        sink: Optional[ScoreFeedbackSink] = None,
        manual_reconnect_delay: float = 0.5,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.session = session
        self.sink = sink or ScoreFeedbackSink()
        self.manual_reconnect_delay = manual_reconnect_delay
        self._sleep = sleep
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._video_stop_sent = False
        self._stop_generation = 0
        self.session.set_event_handler(self.sink.handle_frame)

    @classmethod
    def from_settings(cls, settings, **session_kwargs: Any) -> "PoseStreamingClient":
        session = TransportSession.from_settings(settings, **session_kwargs)
        return cls(
            session=session,
            manual_reconnect_delay=settings.MANUAL_RECONNECT_DELAY_SECONDS,
            sleep=session_kwargs.get("sleep", asyncio.sleep),
        )

    # --- UI-facing views -------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self.session.state

    @property
    def is_connected(self) -> bool:
        return self.session.is_connected

    @property
    def latest_score(self) -> Optional[int]:
        event = self.sink.latest_score
        return event.score if event is not None else None

    @property
    def feedback_text(self) -> str:
        return self.sink.feedback_text

    def get_status(self) -> Dict[str, Any]:
        status = self.session.get_status()
        status["latest_score"] = self.sink.latest_score.to_dict() if self.sink.latest_score else None
        status["feedback_text"] = self.sink.feedback_text
        return status

    def add_state_listener(self, listener: StateListener) -> None:
        self.session.add_state_listener(listener)

    def set_score_callback(self, callback: Optional[ScoreCallback]) -> None:
        self.sink.set_callback(callback)

    def clear_score_callback(self) -> None:
        self.sink.clear_callback()

    # --- Lifecycle -------------------------------------------------------

    async def start(self) -> None:
        """Bind to the running loop and open the channel."""
        self._loop = asyncio.get_running_loop()
        await self.session.connect()

    async def stop(self) -> None:
        """Close the channel. A manual reconnect still in its pause is abandoned."""
        self._stop_generation += 1
        await self.session.disconnect()

    async def reconnect(self) -> None:
        """
        Manual reconnect: force-close, show a diagnostic message, pause
        briefly and reopen. Independent of the automatic reconnect policy.
        """
        logger.info("Manual reconnect requested")
        await self.session.disconnect()
        generation = self._stop_generation
        self.sink.publish_feedback(RECONNECTING_FEEDBACK)
        await self._sleep(self.manual_reconnect_delay)
        if generation != self._stop_generation:
            logger.info("Manual reconnect abandoned: client stopped during the pause")
            return
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        await self.session.connect()

    # --- Frame feed --------------------------------------------------------

    async def submit_pose(
        self,
        timestamp_ms: int,
        keypoints: Optional[Sequence[KeypointLike]],
        world_keypoints: Optional[Sequence[KeypointLike]] = None,
    ) -> bool:
        """
        Send one frame's keypoints as a pose_landmarks event.

        Args:
            timestamp_ms: Image timestamp in epoch milliseconds
            keypoints: 33 keypoints in model order, or None when nothing was detected
            world_keypoints: Optional world-space keypoints in the same order

        Returns:
            True if the event reached the socket
        """
        if keypoints is None:
            return False
        observation = PoseObservation.create(timestamp_ms, keypoints, world_keypoints)
        return await self.session.send(OutboundEvent.pose_landmarks(observation))

    def submit_pose_threadsafe(
        self,
        timestamp_ms: int,
        keypoints: Optional[Sequence[KeypointLike]],
        world_keypoints: Optional[Sequence[KeypointLike]] = None,
    ) -> Optional[concurrent.futures.Future]:
        """
        Fire-and-forget variant for capture threads. The send runs on the
        loop that owns the session; the returned future may be ignored.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("Pose submitted before the client was started; dropped")
            return None
        return asyncio.run_coroutine_threadsafe(
            self.submit_pose(timestamp_ms, keypoints, world_keypoints), loop
        )

    def notify_video_started(self) -> None:
        self._video_stop_sent = False

    async def notify_video_stopped(self, timestamp_ms: Optional[int] = None) -> bool:
        """Send camera_action/video_stopped once per capture stop."""
        if self._video_stop_sent:
            logger.debug("video_stopped already reported for this capture")
            return False
        self._video_stop_sent = True
        event = OutboundEvent.camera_action(VIDEO_STOPPED_ACTION, self.session.client_name, timestamp_ms)
        return await self.session.send(event)
