"""
Frame Data Model
=================

Decoded frame representation handed to per-frame handlers.

Design Rules:
    - Created once per frame by the frame codec
    - Consumed immediately by the caller's handler, never retained by the stream
    - Matrix orientation: rows = height axis, columns = width axis
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True, slots=True)
class DecodedFrame:
    """
    Result of decoding one raw TCP frame.

    Attributes:
        is_valid: True when the frame had the expected size and decoded cleanly
        matrix: uint16 array of shape (height, width), None when invalid
    """

    is_valid: bool
    matrix: Optional[np.ndarray] = None

    @property
    def shape(self) -> Optional[tuple]:
        """(height, width) of the decoded matrix, if any."""
        return None if self.matrix is None else self.matrix.shape

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full matrix."""
        return f"DecodedFrame(is_valid={self.is_valid}, shape={self.shape})"
