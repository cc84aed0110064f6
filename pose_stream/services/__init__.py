from .pose_streaming_service import PoseStreamingClient
from .score_feedback import ScoreFeedbackSink

__all__ = [
    'PoseStreamingClient',
    'ScoreFeedbackSink',
]
