"""
thermal_stream
==============

TCP client and binary codecs for ESP32 thermal cameras.

This package receives raw thermal frames over a plain TCP socket,
reassembles them from an arbitrarily chunked byte stream, and decodes
them into uint16 intensity matrices. It also parses the self-describing
GFRA packet format.

Components:
    - stream: Reassembly, frame codec and connection lifecycle
    - packet: Structured GFRA packet parser
    - calibration: Raw counts to Celsius
    - storage: Frame recording files
    - serial_control: Serial-port command helpers
    - config: Pydantic settings, YAML/env loading, logging setup

Example:
    from thermal_stream.config import StreamConfig
    from thermal_stream.stream import stream_frames

    def on_frame(frame):
        print(frame.matrix.shape)
        return True

    stream_frames(StreamConfig(), on_frame)
"""

__version__ = "0.1.0"


__all__ = [
    "__version__",
]
