# tests/core/test_config.py
"""
Unit tests for Settings in pose_stream.core.config.
"""
import pytest
from pydantic import ValidationError

from pose_stream.core.config import Settings


def test_defaults(monkeypatch):
    for name in ("SERVER_HOST", "SERVER_PORT", "PING_INTERVAL_SECONDS", "CLIENT_NAME"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.SERVER_HOST == "localhost"
    assert settings.SERVER_PORT == 5000
    assert settings.CLIENT_NAME == "ios"
    assert settings.CONNECT_TIMEOUT_SECONDS == 5.0
    assert settings.PING_INTERVAL_SECONDS == 25.0
    assert settings.RECONNECT_DELAY_SECONDS == 2.0
    assert settings.MANUAL_RECONNECT_DELAY_SECONDS == 0.5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SERVER_HOST", "10.0.0.5")
    monkeypatch.setenv("SERVER_PORT", "8080")
    monkeypatch.setenv("RECONNECT_DELAY_SECONDS", "3.5")

    settings = Settings(_env_file=None)

    assert settings.SERVER_HOST == "10.0.0.5"
    assert settings.SERVER_PORT == 8080
    assert settings.RECONNECT_DELAY_SECONDS == 3.5


def test_env_file_is_read(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SERVER_HOST=scorer.lan\nCLIENT_NAME=android\nUNRELATED_KEY=1\n", encoding="utf-8")

    settings = Settings(_env_file=str(env_file))

    assert settings.SERVER_HOST == "scorer.lan"
    assert settings.CLIENT_NAME == "android"


@pytest.mark.parametrize("overrides", [
    {"SERVER_PORT": 0},
    {"SERVER_PORT": 65536},
    {"CONNECT_TIMEOUT_SECONDS": 0},
    {"PING_INTERVAL_SECONDS": -1},
    {"RECONNECT_DELAY_SECONDS": -0.1},
])
def test_invalid_values_rejected(mock_settings, overrides):
    with pytest.raises(ValidationError):
        mock_settings(overrides)


def test_endpoint_property(mock_settings):
    settings = mock_settings({"SERVER_HOST": "scorer.local", "SERVER_PORT": 7000, "ENGINE_IO_VERSION": 3})

    assert settings.endpoint.url == "ws://scorer.local:7000/socket.io/?EIO=3&transport=websocket"
