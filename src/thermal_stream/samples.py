"""
Sample Layout
=============

Conversion between little-endian uint16 sample bytes and image matrices.

Both the raw stream and the structured packet carry pixels the same way:
a flat run of little-endian uint16 samples, one image row after another.
Flat sample ``i`` lands at ``matrix[i // width, i % width]``, so
``matrix[row, col]`` addresses pixel (row, col) with ``width`` columns and
``height`` rows.
"""

import numpy as np


LITTLE_ENDIAN_U16 = np.dtype("<u2")


def samples_to_matrix(raw: bytes, width: int, height: int) -> np.ndarray:
    """
    Reinterpret little-endian uint16 bytes as a (height, width) matrix.

    Args:
        raw: Exactly ``width * height * 2`` bytes (bytes, bytearray or memoryview)
        width: Number of columns
        height: Number of rows

    Returns:
        Native-endian uint16 array that owns its memory

    Raises:
        ValueError: If the byte count does not match the shape
    """
    expected = width * height * LITTLE_ENDIAN_U16.itemsize
    if len(raw) != expected:
        raise ValueError(
            f"Expected {expected} bytes for {width}x{height} samples, got {len(raw)}"
        )
    flat = np.frombuffer(raw, dtype=LITTLE_ENDIAN_U16, count=width * height)
    return flat.reshape(height, width).astype(np.uint16)


def matrix_to_samples(matrix: np.ndarray) -> bytes:
    """Serialize a (height, width) matrix to little-endian uint16 bytes."""
    return np.ascontiguousarray(matrix, dtype=LITTLE_ENDIAN_U16).tobytes()
