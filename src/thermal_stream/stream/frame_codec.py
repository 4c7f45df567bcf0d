"""
Frame Codec
===========

Decoding of fixed-size raw TCP frames into uint16 intensity matrices.

Wire layout of one frame:
    [strip_head_bytes envelope][width*height little-endian uint16][strip_tail_bytes envelope]

Design Rules:
    - Only the pixel payload between the envelopes is decoded
    - Sample layout is shared with the structured packet (see samples.py)
    - A frame of the wrong length yields an invalid DecodedFrame instead of raising
"""

import logging
from typing import Optional

import numpy as np

from thermal_stream.config import StreamConfig
from thermal_stream.samples import matrix_to_samples, samples_to_matrix
from thermal_stream.stream.frame import DecodedFrame


logger = logging.getLogger(__name__)


def decode_frame(frame_bytes: bytes, config: StreamConfig) -> DecodedFrame:
    """
    Decode one complete frame.

    Args:
        frame_bytes: Exactly ``config.total_frame_size_bytes`` bytes
        config: Stream geometry

    Returns:
        DecodedFrame, invalid (matrix=None) when the length is wrong
    """
    if len(frame_bytes) != config.total_frame_size_bytes:
        logger.error(
            f"Frame size mismatch: got {len(frame_bytes)} bytes, "
            f"expected {config.total_frame_size_bytes}"
        )
        return DecodedFrame(is_valid=False)

    start = config.strip_head_bytes
    end = start + config.raw_image_size_bytes
    payload = memoryview(frame_bytes)[start:end]

    try:
        matrix = samples_to_matrix(payload, config.frame_width, config.frame_height)
    except ValueError as e:
        logger.error(f"Could not reinterpret frame payload: {e}")
        return DecodedFrame(is_valid=False)

    return DecodedFrame(is_valid=True, matrix=matrix)


def encode_frame(
    matrix: np.ndarray,
    config: StreamConfig,
    head: Optional[bytes] = None,
    tail: Optional[bytes] = None,
) -> bytes:
    """
    Build a wire frame from a matrix (inverse of decode_frame).

    Used by tests and device simulators.

    Args:
        matrix: Array of shape (frame_height, frame_width)
        config: Stream geometry
        head: Envelope prefix, zero-filled when omitted
        tail: Envelope suffix, zero-filled when omitted

    Returns:
        ``config.total_frame_size_bytes`` bytes

    Raises:
        ValueError: On shape or envelope length mismatch
    """
    expected_shape = (config.frame_height, config.frame_width)
    if matrix.shape != expected_shape:
        raise ValueError(f"Matrix shape {matrix.shape} does not match {expected_shape}")

    head = bytes(config.strip_head_bytes) if head is None else head
    tail = bytes(config.strip_tail_bytes) if tail is None else tail
    if len(head) != config.strip_head_bytes or len(tail) != config.strip_tail_bytes:
        raise ValueError(
            f"Envelope must be {config.strip_head_bytes}/{config.strip_tail_bytes} bytes, "
            f"got {len(head)}/{len(tail)}"
        )

    return head + matrix_to_samples(matrix) + tail
