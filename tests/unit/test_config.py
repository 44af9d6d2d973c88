"""
Unit tests for server configuration.
"""

import pytest

from httprouter.config import ServerConfig


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 4221
        assert config.workers == 4
        assert config.timeout == 30.0
        assert config.log_level == "INFO"
        config.validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HTTP_HOST", "0.0.0.0")
        monkeypatch.setenv("HTTP_PORT", "8080")
        monkeypatch.setenv("HTTP_WORKERS", "0")
        monkeypatch.setenv("HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("HTTP_LOG_LEVEL", "DEBUG")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.workers == 0
        assert config.timeout == 2.5
        assert config.log_level == "DEBUG"

    def test_from_env_defaults(self, monkeypatch):
        for name in ("HTTP_HOST", "HTTP_PORT", "HTTP_WORKERS", "HTTP_TIMEOUT", "HTTP_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        assert ServerConfig.from_env() == ServerConfig()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"backlog": 0},
        {"workers": -1},
        {"queue_size": 0},
        {"timeout": 0},
        {"max_line_size": 10},
        {"max_body_size": -1},
        {"log_level": "LOUD"},
    ])
    def test_validate_rejects(self, overrides: dict):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_validate_accepts_edge_values(self):
        ServerConfig(port=0, workers=0, timeout=None, log_level="debug").validate()
