"""
Stream Module
=============

Raw TCP stream ingestion: reassembly, frame decoding and connection lifecycle.

This module provides the ingestion layer for thermal_stream:
    - DecodedFrame: Decoded raw frame (validity flag + uint16 matrix)
    - decode_frame / encode_frame: Frame codec
    - StreamReassembler: Chunked bytes -> fixed-size frames
    - ConnectionManager: TCP client with retry, read loop and teardown

Example:
    from thermal_stream.config import StreamConfig
    from thermal_stream.stream import stream_frames

    def on_frame(frame):
        print(frame.matrix.max())
        return True

    stream_frames(StreamConfig(server_ip="192.168.4.1"), on_frame)
"""

from thermal_stream.stream.frame import DecodedFrame
from thermal_stream.stream.frame_codec import decode_frame, encode_frame
from thermal_stream.stream.reassembler import StreamReassembler
from thermal_stream.stream.connection import (
    ConnectionManager,
    ReadOutcome,
    ReadResult,
    StopReason,
    StreamMetrics,
    StreamState,
    stream_frames,
    stream_packets,
    tcp_connector,
)


__all__ = [
    "DecodedFrame",
    "decode_frame",
    "encode_frame",
    "StreamReassembler",
    "ConnectionManager",
    "ReadOutcome",
    "ReadResult",
    "StopReason",
    "StreamMetrics",
    "StreamState",
    "stream_frames",
    "stream_packets",
    "tcp_connector",
]
