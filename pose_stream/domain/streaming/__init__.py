from .connection_state import ConnectionState
from .endpoint import Endpoint
from .events import OutboundEvent, ScoreEvent

__all__ = [
    'ConnectionState',
    'Endpoint',
    'OutboundEvent',
    'ScoreEvent',
]
