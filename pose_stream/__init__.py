"""
Realtime pose keypoint streaming client.

Streams per-frame body keypoints to a scoring server over a Socket.IO-style
websocket channel and relays the score the server sends back.
"""

__version__ = "0.1.0"
