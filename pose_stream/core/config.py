from pydantic import Field
from pydantic_settings import BaseSettings

from pose_stream.domain.streaming.endpoint import Endpoint


class Settings(BaseSettings):
    APP_NAME: str = "Pose Stream Client"
    LOG_LEVEL: str = "INFO"

    SERVER_SCHEME: str = "ws"
    SERVER_HOST: str = "localhost"
    SERVER_PORT: int = Field(default=5000, ge=1, le=65535)
    SOCKETIO_PATH: str = "/socket.io/"
    ENGINE_IO_VERSION: int = 4
    TRANSPORT: str = "websocket"

    # Identity reported in connect_ack / camera_action payloads
    CLIENT_NAME: str = "ios"

    CONNECT_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0, description="Upper bound for opening the websocket.")
    PING_INTERVAL_SECONDS: float = Field(default=25.0, gt=0, description="Client ping period once the namespace is connected.")
    RECONNECT_DELAY_SECONDS: float = Field(default=2.0, ge=0, description="Delay before retrying after an unexpected disconnect.")
    MANUAL_RECONNECT_DELAY_SECONDS: float = Field(default=0.5, ge=0, description="Pause between close and reopen on a manual reconnect.")

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8"
    }

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(
            host=self.SERVER_HOST,
            port=self.SERVER_PORT,
            path=self.SOCKETIO_PATH,
            query=(("EIO", str(self.ENGINE_IO_VERSION)), ("transport", self.TRANSPORT)),
            scheme=self.SERVER_SCHEME,
        )

settings = Settings()
