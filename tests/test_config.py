"""
Configuration Tests
===================
"""

import pytest
from pydantic import ValidationError

from thermal_stream.config import (
    ConnectionConfig,
    Settings,
    StreamConfig,
    StructuredPacketConfig,
    load_config,
)


class TestStreamConfig:
    """Tests for StreamConfig."""

    def test_defaults(self):
        config = StreamConfig()

        assert config.server_ip == "192.168.4.1"
        assert config.server_port == 3333
        assert (config.frame_width, config.frame_height) == (80, 62)
        assert config.raw_image_size_bytes == 80 * 62 * 2
        assert config.total_frame_size_bytes == 80 * 62 * 2 + 160 + 160

    def test_is_immutable(self):
        config = StreamConfig()

        with pytest.raises(ValidationError):
            config.frame_width = 100

    @pytest.mark.parametrize(
        "field,value",
        [("frame_width", 0), ("frame_height", -1), ("server_port", 0), ("strip_head_bytes", -1), ("bytes_per_pixel", 4)],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            StreamConfig(**{field: value})

    def test_zero_strip_lengths_allowed(self):
        config = StreamConfig(strip_head_bytes=0, strip_tail_bytes=0)

        assert config.total_frame_size_bytes == config.raw_image_size_bytes


class TestStructuredPacketConfig:
    """Tests for StructuredPacketConfig."""

    def test_defaults(self):
        config = StructuredPacketConfig()

        assert (config.image_width, config.image_height) == (80, 60)
        assert config.expected_packet_size == 10257
        assert config.layout_size == 172 + 80 * 60 * 2 + 4


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        settings = load_config()

        assert settings == Settings()
        assert settings.connection == ConnectionConfig()

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "stream:\n"
            "  server_ip: 10.0.0.5\n"
            "  frame_height: 60\n"
            "connection:\n"
            "  max_retries: 1\n"
        )

        settings = load_config(str(path))

        assert settings.stream.server_ip == "10.0.0.5"
        assert settings.stream.frame_height == 60
        assert settings.stream.frame_width == 80
        assert settings.connection.max_retries == 1

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("stream:\n  server_ip: 10.0.0.5\n")
        monkeypatch.setenv("THERMAL_SERVER_IP", "172.16.0.2")
        monkeypatch.setenv("THERMAL_SERVER_PORT", "4444")
        monkeypatch.setenv("THERMAL_RETRY_DELAY", "0.5")
        monkeypatch.setenv("THERMAL_LOG_LEVEL", "DEBUG")

        settings = load_config(str(path))

        assert settings.stream.server_ip == "172.16.0.2"
        assert settings.packet.server_ip == "172.16.0.2"
        assert settings.stream.server_port == 4444
        assert settings.connection.retry_delay_seconds == 0.5
        assert settings.logging.level == "DEBUG"

    def test_invalid_value_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("stream:\n  frame_width: 0\n")

        with pytest.raises(ValidationError):
            load_config(str(path))
