"""
Score feedback sink: relays server scores to a single UI callback.
"""
import logging
from typing import Callable, Optional

from pose_stream.domain.streaming.events import ScoreEvent
from pose_stream.infrastructure.socketio.codec import InboundFrame

logger = logging.getLogger(__name__)

ScoreCallback = Callable[[int], None]


class ScoreFeedbackSink:
    """
    Holds at most one score callback (registering replaces the previous one)
    plus the latest score and diagnostic feedback text for display.
    No score history is kept.
    """

    def __init__(self):
        self._callback: Optional[ScoreCallback] = None
        self.latest_score: Optional[ScoreEvent] = None
        self.feedback_text: str = ""
        self.scores_delivered = 0

    @property
    def has_callback(self) -> bool:
        return self._callback is not None

    def set_callback(self, callback: Optional[ScoreCallback]) -> None:
        if callback is not None and self._callback is not None:
            logger.debug("Replacing registered score callback")
        self._callback = callback

    def clear_callback(self) -> None:
        self._callback = None

    def publish_feedback(self, text: str) -> None:
        self.feedback_text = text

    def handle_frame(self, frame: InboundFrame) -> None:
        """Route a decoded application event: scores to the callback, the rest to feedback text."""
        if frame.score_event is not None:
            self.deliver(frame.score_event)
        elif frame.feedback_text is not None:
            logger.debug(f"Server feedback: {frame.feedback_text[:80]}")
            self.publish_feedback(frame.feedback_text)

    def deliver(self, event: ScoreEvent) -> None:
        self.latest_score = event
        self.feedback_text = f"Score: {event.score}"
        if self._callback is None:
            logger.debug(f"Score {event.score} received with no callback registered")
            return
        try:
            self._callback(event.score)
            self.scores_delivered += 1
        except Exception as e:
            logger.error(f"Score callback failed: {e}", exc_info=True)
