"""
Structured Packet Parser
========================

Validation and decoding of self-describing GFRA thermal packets.

Packet layout (0-based offsets):

    | Field          | Offset    | Length  | Content                         |
    |----------------|-----------|---------|---------------------------------|
    | Prefix         | 0         | 4       | b"   #"                         |
    | Payload length | 4         | 4       | ASCII hex, expected 0x2808      |
    | Frame type     | 8         | 4       | ASCII tag, expected "GFRA"      |
    | Metadata       | 12        | 160     | opaque                          |
    | Image          | 172       | w*h*2   | little-endian uint16            |
    | Checksum       | 172+w*h*2 | 4       | ASCII hex                       |

Validation Rules:
    - Wrong total length: rejected immediately, nothing else is parsed
    - Prefix, payload-length and checksum-region problems invalidate the
      packet, but parsing continues so every field can be inspected
    - An expected_packet_size that differs from the field layout (bytes
      left over after the checksum) invalidates the packet
    - A frame type other than "GFRA" is only a warning
    - A checksum that is present but not hex leaves checksum_value None
      without invalidating the packet
    - The checksum is never verified against the payload
"""

import logging
from typing import Optional, Tuple

import numpy as np

from thermal_stream.config import (
    PACKET_CHECKSUM_SIZE,
    PACKET_FRAME_TYPE_SIZE,
    PACKET_HEADER_SIZE,
    PACKET_LENGTH_FIELD_SIZE,
    PACKET_METADATA_SIZE,
    PACKET_PREFIX_SIZE,
    StructuredPacketConfig,
)
from thermal_stream.packet.models import ParsedPacket
from thermal_stream.samples import matrix_to_samples, samples_to_matrix


logger = logging.getLogger(__name__)

PACKET_PREFIX = b"   #"
EXPECTED_PAYLOAD_LEN = 0x2808
EXPECTED_FRAME_TYPE = "GFRA"

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _field_text(raw: bytes) -> str:
    """Decode a fixed-width ASCII field without ever failing."""
    return raw.decode("latin-1")


def parse_hex_u16(text: str) -> Optional[int]:
    """
    Parse a hex field as an unsigned 16-bit value.

    Only bare hex digits are accepted (no sign, "0x" prefix, whitespace
    or underscores).

    Returns:
        The value, or None if the text is not a valid uint16 hex number
    """
    if not text or not all(c in _HEX_DIGITS for c in text):
        return None
    value = int(text, 16)
    if value > 0xFFFF:
        return None
    return value


def _slice(data: bytes, offset: int, length: int) -> Tuple[bytes, int]:
    """Return data[offset:offset+length] and the offset just past it."""
    end = offset + length
    return data[offset:end], end


def parse_packet(data: bytes, config: StructuredPacketConfig) -> ParsedPacket:
    """
    Parse exactly one structured packet.

    Args:
        data: Bytes of one packet as delimited by the transport
        config: Packet geometry and expected size

    Returns:
        ParsedPacket. Never raises for malformed content.
    """
    data = bytes(data)
    if len(data) != config.expected_packet_size:
        logger.error(
            f"Invalid packet size: {len(data)}. "
            f"Expected {config.expected_packet_size}."
        )
        return ParsedPacket(is_valid=False)

    is_valid = True

    # Prefix
    prefix, offset = _slice(data, 0, PACKET_PREFIX_SIZE)
    header_prefix_ok = prefix == PACKET_PREFIX
    if not header_prefix_ok:
        logger.warning(f"Packet prefix mismatch. Expected {PACKET_PREFIX!r}, got {prefix!r}")
        is_valid = False

    # Payload length
    raw_len, offset = _slice(data, offset, PACKET_LENGTH_FIELD_SIZE)
    payload_len_str = _field_text(raw_len)
    payload_len_value = parse_hex_u16(payload_len_str)
    if payload_len_value is None:
        logger.warning(f"Could not parse payload length field: {payload_len_str!r}")
        is_valid = False
    elif payload_len_value != EXPECTED_PAYLOAD_LEN:
        logger.warning(
            f"Payload length mismatch. Expected 0x{EXPECTED_PAYLOAD_LEN:04x}, "
            f"got 0x{payload_len_value:04x} (from {payload_len_str!r})"
        )
        is_valid = False

    # Frame type
    raw_type, offset = _slice(data, offset, PACKET_FRAME_TYPE_SIZE)
    frame_type = _field_text(raw_type)
    if frame_type != EXPECTED_FRAME_TYPE:
        logger.warning(f"Unexpected frame type. Expected {EXPECTED_FRAME_TYPE!r}, got {frame_type!r}")

    metadata, offset = _slice(data, offset, PACKET_METADATA_SIZE)

    # Image
    expected_image_size = config.raw_image_size_bytes
    thermal_image_raw, offset = _slice(data, offset, expected_image_size)
    thermal_image = None
    if len(thermal_image_raw) == expected_image_size:
        thermal_image = samples_to_matrix(
            thermal_image_raw, config.image_width, config.image_height
        )
    else:
        logger.warning(
            f"Thermal image size mismatch. Expected {expected_image_size} bytes "
            f"for {config.image_width}x{config.image_height}, got {len(thermal_image_raw)}"
        )
        is_valid = False

    # Checksum
    raw_checksum, offset = _slice(data, offset, PACKET_CHECKSUM_SIZE)
    checksum_str = ""
    checksum_value = None
    if len(raw_checksum) == PACKET_CHECKSUM_SIZE:
        checksum_str = _field_text(raw_checksum)
        checksum_value = parse_hex_u16(checksum_str)
        if checksum_value is None:
            logger.warning(f"Could not parse checksum field: {checksum_str!r}")
    else:
        logger.warning(
            f"Not enough bytes for checksum: need {PACKET_CHECKSUM_SIZE} "
            f"at offset {PACKET_HEADER_SIZE + expected_image_size}, "
            f"packet has {len(data)}"
        )
        is_valid = False

    if offset != len(data):
        logger.warning(
            f"Packet size {len(data)} does not match field layout "
            f"({config.layout_size} bytes for {config.image_width}x{config.image_height})"
        )
        is_valid = False

    return ParsedPacket(
        is_valid=is_valid and thermal_image is not None,
        header_prefix_ok=header_prefix_ok,
        payload_len_str=payload_len_str,
        payload_len_value=payload_len_value,
        frame_type=frame_type,
        metadata=metadata,
        thermal_image_raw=thermal_image_raw,
        thermal_image=thermal_image,
        checksum_str=checksum_str,
        checksum_value=checksum_value,
    )


def build_packet(
    image: np.ndarray,
    config: StructuredPacketConfig,
    payload_len: str = "2808",
    frame_type: str = EXPECTED_FRAME_TYPE,
    metadata: Optional[bytes] = None,
    checksum: str = "0000",
    prefix: bytes = PACKET_PREFIX,
) -> bytes:
    """
    Lay out a structured packet (inverse of parse_packet).

    Used by tests and device simulators. Fields are written verbatim so
    malformed packets can be produced on purpose. The result is padded
    with zero bytes, or truncated, to ``config.expected_packet_size``.

    Args:
        image: Matrix of shape (image_height, image_width)
        config: Packet geometry
        payload_len: 4-character payload length text
        frame_type: 4-character frame tag
        metadata: 160 bytes, zero-filled when omitted
        checksum: 4-character checksum text
        prefix: 4-byte prefix

    Raises:
        ValueError: On wrong image shape or fixed-field width
    """
    expected_shape = (config.image_height, config.image_width)
    if image.shape != expected_shape:
        raise ValueError(f"Image shape {image.shape} does not match {expected_shape}")

    metadata = bytes(PACKET_METADATA_SIZE) if metadata is None else metadata
    fields = (
        (prefix, PACKET_PREFIX_SIZE),
        (payload_len.encode("latin-1"), PACKET_LENGTH_FIELD_SIZE),
        (frame_type.encode("latin-1"), PACKET_FRAME_TYPE_SIZE),
        (metadata, PACKET_METADATA_SIZE),
        (checksum.encode("latin-1"), PACKET_CHECKSUM_SIZE),
    )
    for value, width in fields:
        if len(value) != width:
            raise ValueError(f"Field {value!r} must be {width} bytes, got {len(value)}")

    packet = (
        prefix
        + fields[1][0]
        + fields[2][0]
        + metadata
        + matrix_to_samples(image)
        + fields[4][0]
    )
    size = config.expected_packet_size
    return packet[:size].ljust(size, b"\x00")
