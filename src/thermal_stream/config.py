"""
thermal_stream Configuration
============================

This module handles configuration loading for the thermal camera client.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    THERMAL_SERVER_IP     -> stream.server_ip, packet.server_ip
    THERMAL_SERVER_PORT   -> stream.server_port, packet.server_port
    THERMAL_FRAME_WIDTH   -> stream.frame_width
    THERMAL_FRAME_HEIGHT  -> stream.frame_height
    THERMAL_MAX_RETRIES   -> connection.max_retries
    THERMAL_RETRY_DELAY   -> connection.retry_delay_seconds
    THERMAL_LOG_LEVEL     -> logging.level

Example:
    from thermal_stream.config import load_config

    settings = load_config()
    print(settings.stream.total_frame_size_bytes)
    print(settings.packet.expected_packet_size)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


# Structured packet layout (bytes)
PACKET_PREFIX_SIZE = 4
PACKET_LENGTH_FIELD_SIZE = 4
PACKET_FRAME_TYPE_SIZE = 4
PACKET_METADATA_SIZE = 160
PACKET_CHECKSUM_SIZE = 4
PACKET_HEADER_SIZE = (
    PACKET_PREFIX_SIZE
    + PACKET_LENGTH_FIELD_SIZE
    + PACKET_FRAME_TYPE_SIZE
    + PACKET_METADATA_SIZE
)


# =============================================================================
# Configuration Models
# =============================================================================

class StreamConfig(BaseModel):
    """
    Raw TCP stream configuration.

    Each frame on the wire is ``strip_head_bytes`` of envelope, then
    ``frame_width * frame_height`` little-endian uint16 samples, then
    ``strip_tail_bytes`` of envelope.

    Width, height and port must be positive. The strip lengths may be
    zero for streams that carry no envelope.

    The model is frozen, so the derived sizes can never drift away from
    the fields they are computed from.
    """

    model_config = ConfigDict(frozen=True)

    server_ip: str = Field(default="192.168.4.1", description="Camera server address")
    server_port: int = Field(default=3333, ge=1, le=65535, description="Camera server port")
    frame_width: int = Field(default=80, gt=0, description="Frame width in pixels")
    frame_height: int = Field(default=62, gt=0, description="Frame height in pixels")
    bytes_per_pixel: Literal[2] = Field(default=2, description="Bytes per sample (uint16)")
    strip_head_bytes: int = Field(
        default=160,
        ge=0,
        description="Envelope bytes discarded from the start of each frame",
    )
    strip_tail_bytes: int = Field(
        default=160,
        ge=0,
        description="Envelope bytes discarded from the end of each frame",
    )

    @property
    def raw_image_size_bytes(self) -> int:
        """Size of the pixel payload in bytes."""
        return self.frame_width * self.frame_height * self.bytes_per_pixel

    @property
    def total_frame_size_bytes(self) -> int:
        """Size of one frame on the wire, envelope included."""
        return self.raw_image_size_bytes + self.strip_head_bytes + self.strip_tail_bytes


class StructuredPacketConfig(BaseModel):
    """
    Structured (GFRA) packet configuration.

    Packets only validate when ``expected_packet_size`` equals
    ``layout_size``. The 10257-byte default is kept for existing
    deployments and does not match the 80x60 layout.
    """

    model_config = ConfigDict(frozen=True)

    server_ip: str = Field(default="192.168.4.1", description="Camera server address")
    server_port: int = Field(default=3333, ge=1, le=65535, description="Camera server port")
    image_width: int = Field(default=80, gt=0, description="Image width in pixels")
    image_height: int = Field(default=60, gt=0, description="Image height in pixels")
    expected_packet_size: int = Field(
        default=10257,
        gt=0,
        description="Exact size of one packet in bytes",
    )

    @property
    def raw_image_size_bytes(self) -> int:
        """Size of the image region in bytes."""
        return self.image_width * self.image_height * 2

    @property
    def layout_size(self) -> int:
        """Bytes occupied by header, metadata, image and checksum."""
        return PACKET_HEADER_SIZE + self.raw_image_size_bytes + PACKET_CHECKSUM_SIZE


class ConnectionConfig(BaseModel):
    """TCP connection lifecycle configuration."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(
        default=5,
        ge=0,
        description="Additional connect attempts after the first one",
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay between connect attempts",
    )
    connect_timeout_seconds: Optional[float] = Field(
        default=5.0,
        gt=0,
        description="Timeout of a single connect attempt (None = OS default)",
    )
    read_chunk_size: int = Field(
        default=4096,
        ge=1,
        description="Maximum bytes requested per socket read",
    )
    read_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Socket read timeout once connected (None = block)",
    )
    idle_sleep_seconds: float = Field(
        default=0.001,
        ge=0,
        description="Pause after a read that returned no data",
    )


class CalibrationConfig(BaseModel):
    """Linear raw-to-Celsius calibration."""

    model_config = ConfigDict(frozen=True)

    gain: float = Field(default=0.01, description="Degrees per raw count")
    offset: float = Field(default=-273.15, description="Celsius offset")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for thermal_stream.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    stream: StreamConfig = Field(default_factory=StreamConfig)
    packet: StructuredPacketConfig = Field(default_factory=StructuredPacketConfig)
    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    calibration: CalibrationConfig = Field(default_factory=CalibrationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        for path in (Path("config.yaml"), Path("config.yml")):
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_ip := os.environ.get("THERMAL_SERVER_IP"):
        config_data.setdefault("stream", {})["server_ip"] = env_ip
        config_data.setdefault("packet", {})["server_ip"] = env_ip
    if env_port := os.environ.get("THERMAL_SERVER_PORT"):
        config_data.setdefault("stream", {})["server_port"] = int(env_port)
        config_data.setdefault("packet", {})["server_port"] = int(env_port)
    if env_width := os.environ.get("THERMAL_FRAME_WIDTH"):
        config_data.setdefault("stream", {})["frame_width"] = int(env_width)
    if env_height := os.environ.get("THERMAL_FRAME_HEIGHT"):
        config_data.setdefault("stream", {})["frame_height"] = int(env_height)

    if env_retries := os.environ.get("THERMAL_MAX_RETRIES"):
        config_data.setdefault("connection", {})["max_retries"] = int(env_retries)
    if env_delay := os.environ.get("THERMAL_RETRY_DELAY"):
        config_data.setdefault("connection", {})["retry_delay_seconds"] = float(env_delay)

    if env_log := os.environ.get("THERMAL_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
