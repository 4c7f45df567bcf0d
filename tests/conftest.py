"""
Test Configuration
==================

Pytest fixtures and test doubles for thermal_stream.
"""

import socket
from typing import Iterable, List, Union

import numpy as np
import pytest

from thermal_stream.config import StreamConfig, StructuredPacketConfig


class FakeSocket:
    """
    Scripted stand-in for a connected TCP socket.

    Each recv() returns the next scripted item. Exception instances in the
    script are raised instead. Once the script is exhausted, recv() returns
    b"" (peer closed).
    """

    def __init__(self, script: Iterable[Union[bytes, BaseException]]) -> None:
        self.script: List[Union[bytes, BaseException]] = list(script)
        self.close_count = 0
        self.recv_sizes: List[int] = []

    def recv(self, bufsize: int) -> bytes:
        self.recv_sizes.append(bufsize)
        if not self.script:
            return b""
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.close_count += 1


class ScriptedConnector:
    """Connect function that fails a fixed number of times before succeeding."""

    def __init__(self, sock: FakeSocket, failures: int = 0) -> None:
        self.sock = sock
        self.failures = failures
        self.calls: List[tuple] = []

    def __call__(self, host: str, port: int) -> FakeSocket:
        self.calls.append((host, port))
        if len(self.calls) <= self.failures:
            raise ConnectionRefusedError(f"refused (call {len(self.calls)})")
        return self.sock


class RecordingSleep:
    """Sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def stream_config():
    """Small raw-stream geometry: 4x3 pixels with 2/3 envelope bytes."""
    return StreamConfig(
        server_ip="127.0.0.1",
        server_port=3333,
        frame_width=4,
        frame_height=3,
        strip_head_bytes=2,
        strip_tail_bytes=3,
    )


@pytest.fixture
def packet_config():
    """Small structured-packet geometry whose expected size matches the layout."""
    return StructuredPacketConfig(
        server_ip="127.0.0.1",
        image_width=4,
        image_height=3,
        expected_packet_size=172 + 4 * 3 * 2 + 4,
    )


@pytest.fixture
def sample_matrix():
    """3x4 uint16 matrix with distinct values, including high bytes."""
    return (np.arange(12, dtype=np.uint16).reshape(3, 4) * 1000 + 7).astype(np.uint16)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_socket():
    """Factory for scripted fake sockets."""
    return FakeSocket


@pytest.fixture
def make_connector():
    """Factory for connect functions with scripted failures."""
    return ScriptedConnector


@pytest.fixture
def timeout_error():
    """Exception a socket with a read timeout raises when idle."""
    return socket.timeout("timed out")
