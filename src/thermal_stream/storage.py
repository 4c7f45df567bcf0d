"""
Frame Recording Storage
=======================

Reading and writing sequences of thermal frames.

File Layout (little-endian):
    uint16 width
    uint16 height
    frame 0: width*height samples, column-major
    frame 1: ...

Samples are uint16 raw counts (``save_frames_raw``) or float32 Celsius
(``save_frames_celsius``). The file carries no type tag; the reader must
use the matching load function.

Column-major means the samples of a (height, width) matrix are written one
column at a time: ``matrix[0, 0], matrix[1, 0], ..., matrix[height-1, 0],
matrix[0, 1], ...``.
"""

import logging
import struct
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np

from thermal_stream.exceptions import StorageError


logger = logging.getLogger(__name__)

HEADER_FORMAT = "<HH"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

RAW_DTYPE = np.dtype("<u2")
CELSIUS_DTYPE = np.dtype("<f4")

PathLike = Union[str, Path]


def _save(path: PathLike, frames: Sequence[np.ndarray], width: int, height: int, dtype: np.dtype) -> None:
    if not (0 < width <= 0xFFFF and 0 < height <= 0xFFFF):
        raise StorageError(f"Frame dimensions {width}x{height} do not fit in uint16")

    for index, frame in enumerate(frames):
        if frame.shape != (height, width):
            raise StorageError(
                f"Frame {index} has shape {frame.shape}, expected {(height, width)}"
            )

    with open(path, "wb") as f:
        f.write(struct.pack(HEADER_FORMAT, width, height))
        for frame in frames:
            f.write(np.asarray(frame, dtype=dtype).tobytes(order="F"))

    logger.info(f"Saved {len(frames)} {width}x{height} frames to {path}")


def _load(path: PathLike, dtype: np.dtype) -> Tuple[List[np.ndarray], int, int]:
    data = Path(path).read_bytes()
    if len(data) < HEADER_SIZE:
        raise StorageError(f"{path}: file too short for header ({len(data)} bytes)")

    width, height = struct.unpack_from(HEADER_FORMAT, data)
    frame_size = width * height * dtype.itemsize
    body = memoryview(data)[HEADER_SIZE:]

    if frame_size == 0:
        raise StorageError(f"{path}: invalid dimensions {width}x{height}")
    if len(body) % frame_size:
        raise StorageError(
            f"{path}: {len(body)} data bytes is not a whole number of "
            f"{width}x{height} frames ({frame_size} bytes each)"
        )

    frames = []
    for offset in range(0, len(body), frame_size):
        flat = np.frombuffer(body[offset:offset + frame_size], dtype=dtype)
        frames.append(flat.reshape((height, width), order="F").astype(dtype.newbyteorder("=")))

    logger.info(f"Loaded {len(frames)} {width}x{height} frames from {path}")
    return frames, width, height


def save_frames_raw(path: PathLike, frames: Sequence[np.ndarray], width: int, height: int) -> None:
    """
    Save raw uint16 frames.

    Args:
        path: Output file (overwritten)
        frames: Matrices of shape (height, width)
        width: Frame width
        height: Frame height

    Raises:
        StorageError: On shape mismatch or out-of-range dimensions
    """
    _save(path, frames, width, height, RAW_DTYPE)


def load_frames_raw(path: PathLike) -> Tuple[List[np.ndarray], int, int]:
    """
    Load raw uint16 frames.

    Returns:
        (frames, width, height), frames as uint16 (height, width) matrices

    Raises:
        StorageError: On truncated or malformed files
    """
    return _load(path, RAW_DTYPE)


def save_frames_celsius(path: PathLike, frames: Sequence[np.ndarray], width: int, height: int) -> None:
    """Save float32 Celsius frames. Same contract as save_frames_raw."""
    _save(path, frames, width, height, CELSIUS_DTYPE)


def load_frames_celsius(path: PathLike) -> Tuple[List[np.ndarray], int, int]:
    """Load float32 Celsius frames. Same contract as load_frames_raw."""
    return _load(path, CELSIUS_DTYPE)
