from enum import Enum


class ConnectionState(Enum):
    """Handshake / connectivity phase of a transport session."""
    DISCONNECTED = "disconnected"
    SOCKET_OPENING = "socket_opening"
    ENGINE_HANDSHAKE_RECEIVED = "engine_handshake_received"
    NAMESPACE_CONNECTED = "namespace_connected"
    ERROR = "error"

    @property
    def is_active(self) -> bool:
        """True while a connection attempt or an open session is in progress."""
        return self in (
            ConnectionState.SOCKET_OPENING,
            ConnectionState.ENGINE_HANDSHAKE_RECEIVED,
            ConnectionState.NAMESPACE_CONNECTED,
        )
