"""
Stream Reassembler
==================

Turns an arbitrarily chunked byte stream into fixed-size frames.

This module provides the StreamReassembler class, which sits between the
socket read loop and the frame codec.

Design Rules:
    - Frames are emitted in arrival order (FIFO)
    - Output is independent of how the input was chunked
    - Every complete frame present is sliced out before feed() returns
    - No upper bound on buffered bytes (a stalled consumer grows memory)
    - Does NOT decode or modify frame bytes
"""

import logging
from typing import List, Optional


logger = logging.getLogger(__name__)


class StreamReassembler:
    """
    Accumulator that slices fixed-size frames out of a byte stream.

    Bytes are appended to a growable buffer and frames are sliced out by
    advancing a read cursor. Consumed bytes are dropped once per feed()
    rather than once per frame, so a chunk holding many frames does not
    shift the remaining bytes for each of them.

    Attributes:
        frame_size: Size in bytes of one frame
        pending: Bytes received but not yet emitted as a frame
        frames_emitted: Total frames produced so far

    Example:
        reassembler = StreamReassembler(frame_size=config.total_frame_size_bytes)

        for chunk in chunks:
            for frame_bytes in reassembler.feed(chunk):
                handle(decode_frame(frame_bytes, config))
    """

    def __init__(self, frame_size: int, log: Optional[logging.Logger] = None) -> None:
        """
        Initialize reassembler.

        Args:
            frame_size: Bytes per frame. Must be >= 1.
            log: Logger for diagnostics, defaults to the module logger
        """
        if frame_size < 1:
            raise ValueError("frame_size must be >= 1")

        self._frame_size = frame_size
        self._log = log or logger
        self._buffer = bytearray()
        self._cursor: int = 0
        self._frames_emitted: int = 0

    @property
    def frame_size(self) -> int:
        """Bytes per frame."""
        return self._frame_size

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet emitted."""
        return len(self._buffer) - self._cursor

    @property
    def frames_emitted(self) -> int:
        """Total frames emitted since creation or the last reset."""
        return self._frames_emitted

    def feed(self, chunk: bytes) -> List[bytes]:
        """
        Append a chunk and return every frame that is now complete.

        Args:
            chunk: Newly received bytes (may be empty)

        Returns:
            Complete frames in arrival order, possibly empty
        """
        if not isinstance(chunk, (bytes, bytearray, memoryview)):
            raise TypeError(f"chunk must be bytes-like, got {type(chunk).__name__}")

        self._buffer.extend(chunk)

        frames: List[bytes] = []
        while self.pending >= self._frame_size:
            end = self._cursor + self._frame_size
            frames.append(bytes(self._buffer[self._cursor:end]))
            self._cursor = end

        if frames:
            self._frames_emitted += len(frames)
            self._compact()
            if len(frames) > 1:
                self._log.debug(f"Reassembled {len(frames)} frames from one chunk")

        return frames

    def reset(self) -> int:
        """
        Drop all buffered bytes.

        Returns:
            Number of pending bytes discarded.
        """
        dropped = self.pending
        self._buffer.clear()
        self._cursor = 0
        self._frames_emitted = 0
        return dropped

    def _compact(self) -> None:
        """Discard consumed bytes and rewind the cursor."""
        del self._buffer[:self._cursor]
        self._cursor = 0

    def metrics(self) -> dict:
        """
        Get reassembler metrics for observability.

        Returns:
            Dict with frame_size, pending, frames_emitted
        """
        return {
            "frame_size": self._frame_size,
            "pending": self.pending,
            "frames_emitted": self._frames_emitted,
        }
