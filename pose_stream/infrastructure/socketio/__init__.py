"""
Engine.IO / Socket.IO subset client for the scoring channel.

This module provides:
- Text frame encoding and classification
- The handshake-driven transport session
- Keepalive pings and delayed reconnection
"""

from .codec import FrameKind, InboundFrame, decode_frame, encode_event
from .keepalive import KeepaliveManager
from .reconnect import ReconnectPolicy
from .session import TransportSession

__all__ = [
    'FrameKind',
    'InboundFrame',
    'decode_frame',
    'encode_event',
    'KeepaliveManager',
    'ReconnectPolicy',
    'TransportSession',
]
