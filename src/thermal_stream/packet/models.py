"""
Parsed Packet Model
===================

Result type of the structured (GFRA) packet parser.

All raw fields are kept even when their numeric parse failed, so a bad
packet can still be inspected after the fact.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True, slots=True)
class ParsedPacket:
    """
    One parsed GFRA packet.

    Attributes:
        is_valid: Overall validity (length, prefix, payload length, image, checksum region)
        header_prefix_ok: Whether the 4-byte prefix matched
        payload_len_str: Raw text of the payload-length field
        payload_len_value: Parsed payload length, None if the text was not hex
        frame_type: Raw text of the frame-type tag (expected "GFRA")
        metadata: 160 opaque metadata bytes
        thermal_image_raw: Raw bytes of the image region
        thermal_image: uint16 matrix of shape (height, width), None on failure
        checksum_str: Raw text of the checksum field
        checksum_value: Parsed checksum, None if absent or not hex

    Note:
        The checksum is surfaced as received. It is never compared against
        a value computed over the payload.
    """

    is_valid: bool
    header_prefix_ok: bool = False
    payload_len_str: str = ""
    payload_len_value: Optional[int] = None
    frame_type: str = ""
    metadata: bytes = b""
    thermal_image_raw: bytes = b""
    thermal_image: Optional[np.ndarray] = None
    checksum_str: str = ""
    checksum_value: Optional[int] = None

    def __repr__(self) -> str:
        """Compact repr that doesn't dump metadata or pixels."""
        shape = None if self.thermal_image is None else self.thermal_image.shape
        return (
            f"ParsedPacket(is_valid={self.is_valid}, "
            f"frame_type={self.frame_type!r}, "
            f"payload_len={self.payload_len_str!r}, "
            f"checksum={self.checksum_str!r}, "
            f"shape={shape})"
        )
