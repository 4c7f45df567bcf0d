"""
Connection Manager
==================

TCP client that drives the camera stream from connect to teardown.

This module provides the ConnectionManager class which:
    - Connects to the camera server with bounded retry and a fixed delay
    - Reads arbitrary-length chunks in a single blocking loop
    - Feeds a StreamReassembler and decodes every complete frame
    - Delivers each decoded item synchronously to a caller handler
    - Closes the connection exactly once, whatever ended the loop

State Machine:
    DISCONNECTED -> CONNECTING -> CONNECTED -> STREAMING -> STOPPED
    CONNECTING -> FAILED (retries exhausted, or a non-OSError from connect)
    STOPPED -> CONNECTING (run() again; buffer and stop request reset)

Design Rules:
    - Connect failures are retried, then raised as ConnectError
    - Once streaming, nothing is retried: every termination ends the run
    - Each read step returns a tagged ReadResult instead of raising
    - Handler returning False stops the stream; True continues
    - A non-bool handler result is logged and treated as "continue"
    - Ctrl-C and stop() are normal stop requests, not errors
"""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

import numpy as np

from thermal_stream.config import ConnectionConfig, StreamConfig, StructuredPacketConfig
from thermal_stream.exceptions import ConnectError
from thermal_stream.packet import ParsedPacket, parse_packet
from thermal_stream.stream.frame import DecodedFrame
from thermal_stream.stream.frame_codec import decode_frame
from thermal_stream.stream.reassembler import StreamReassembler


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ByteConnection(Protocol):
    """Minimal socket surface used by the read loop."""

    def recv(self, bufsize: int) -> bytes: ...

    def close(self) -> None: ...


ConnectFn = Callable[[str, int], ByteConnection]


class StreamState(str, Enum):
    """Lifecycle states of a ConnectionManager."""

    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    STREAMING = "STREAMING"
    STOPPED = "STOPPED"
    FAILED = "FAILED"


class ReadOutcome(str, Enum):
    """
    Classification of one read step.

    Attributes:
        DATA: Non-empty chunk received
        NO_DATA: Read timed out with the connection still open
        END_OF_STREAM: Peer closed the connection
        TRANSPORT_ERROR: Socket error
        CANCELLED: Stop requested while reading
    """

    DATA = "DATA"
    NO_DATA = "NO_DATA"
    END_OF_STREAM = "END_OF_STREAM"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    CANCELLED = "CANCELLED"


class StopReason(str, Enum):
    """Why a streaming run ended."""

    HANDLER_STOP = "HANDLER_STOP"
    END_OF_STREAM = "END_OF_STREAM"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    CANCELLED = "CANCELLED"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


@dataclass(frozen=True, slots=True)
class ReadResult:
    """Tagged result of a single socket read."""

    outcome: ReadOutcome
    data: bytes = b""
    error: Optional[BaseException] = None


class StreamMetrics:
    """Metrics for ConnectionManager observability."""

    __slots__ = (
        "connect_attempts",
        "bytes_received",
        "frames_delivered",
        "invalid_frames",
        "empty_reads",
    )

    def __init__(self) -> None:
        self.connect_attempts: int = 0
        self.bytes_received: int = 0
        self.frames_delivered: int = 0
        self.invalid_frames: int = 0
        self.empty_reads: int = 0

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "connect_attempts": self.connect_attempts,
            "bytes_received": self.bytes_received,
            "frames_delivered": self.frames_delivered,
            "invalid_frames": self.invalid_frames,
            "empty_reads": self.empty_reads,
        }


def tcp_connector(config: ConnectionConfig) -> ConnectFn:
    """
    Build the default connect function: a plain TCP client socket.

    The connect timeout applies to the handshake only; afterwards the
    socket uses ``read_timeout_seconds`` (None = block indefinitely).
    """
    def connect(host: str, port: int) -> socket.socket:
        sock = socket.create_connection((host, port), timeout=config.connect_timeout_seconds)
        sock.settimeout(config.read_timeout_seconds)
        return sock

    return connect


class ConnectionManager(Generic[T]):
    """
    Single-connection stream driver.

    Generic over the decoded item type: raw frames yield DecodedFrame,
    structured packets yield ParsedPacket. Everything runs on the calling
    thread, so handler latency directly throttles ingestion.

    Attributes:
        host: Camera server address
        port: Camera server port
        state: Current StreamState
        metrics: Operational metrics
        stop_reason: Why the last run ended, None before any run

    Example:
        manager = ConnectionManager.for_frames(StreamConfig())

        def on_frame(frame: DecodedFrame) -> bool:
            show(frame.matrix)
            return True

        reason = manager.run(on_frame)
    """

    def __init__(
        self,
        host: str,
        port: int,
        frame_size: int,
        decode: Callable[[bytes], T],
        connection: Optional[ConnectionConfig] = None,
        connect: Optional[ConnectFn] = None,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[logging.Logger] = None,
    ) -> None:
        """
        Initialize connection manager.

        Args:
            host: Camera server address
            port: Camera server port
            frame_size: Bytes per frame/packet on the wire
            decode: Turns one frame's bytes into the item given to the handler
            connection: Retry and read settings, defaults to ConnectionConfig()
            connect: Connect function (host, port) -> connection, defaults to TCP
            sleep: Blocking sleep used between attempts and after empty reads
            log: Logger for diagnostics, defaults to the module logger
        """
        self.host = host
        self.port = port
        self.connection = connection or ConnectionConfig()
        self._decode = decode
        self._connect = connect or tcp_connector(self.connection)
        self._sleep = sleep
        self._log = log or logger

        self._reassembler = StreamReassembler(frame_size, log=self._log)
        self._sock: Optional[ByteConnection] = None
        self._state = StreamState.DISCONNECTED
        self._stop_event = threading.Event()

        self.metrics = StreamMetrics()
        self.stop_reason: Optional[StopReason] = None

    @classmethod
    def for_frames(
        cls, config: StreamConfig, **kwargs: Any
    ) -> "ConnectionManager[DecodedFrame]":
        """Manager delivering raw-stream DecodedFrame items."""
        return cls(
            host=config.server_ip,
            port=config.server_port,
            frame_size=config.total_frame_size_bytes,
            decode=lambda data: decode_frame(data, config),
            **kwargs,
        )

    @classmethod
    def for_packets(
        cls, config: StructuredPacketConfig, **kwargs: Any
    ) -> "ConnectionManager[ParsedPacket]":
        """Manager delivering structured ParsedPacket items."""
        return cls(
            host=config.server_ip,
            port=config.server_port,
            frame_size=config.expected_packet_size,
            decode=lambda data: parse_packet(data, config),
            **kwargs,
        )

    @property
    def state(self) -> StreamState:
        """Current lifecycle state."""
        return self._state

    @property
    def reassembler(self) -> StreamReassembler:
        """Reassembler owned by this manager."""
        return self._reassembler

    # -------------------------
    # Lifecycle
    # -------------------------
    def connect(self) -> None:
        """
        Open the connection, retrying up to ``max_retries`` extra times.

        Sleeps ``retry_delay_seconds`` between attempts on this thread.

        Raises:
            ConnectError: After the last attempt failed (state FAILED)
            Exception: Any non-OSError from the connect function, raised
                at once without retrying (state FAILED)
        """
        if self._sock is not None:
            return

        self._state = StreamState.CONNECTING
        total_attempts = self.connection.max_retries + 1
        last_error: Optional[OSError] = None

        for attempt in range(1, total_attempts + 1):
            self.metrics.connect_attempts += 1
            self._log.info(
                f"Attempting to connect (attempt {attempt}/{total_attempts}) "
                f"to {self.host}:{self.port}..."
            )
            try:
                self._sock = self._connect(self.host, self.port)
            except OSError as e:
                last_error = e
                self._log.warning(f"Connection attempt {attempt} failed: {e}")
                if attempt < total_attempts:
                    self._sleep(self.connection.retry_delay_seconds)
                continue
            except Exception:
                self._state = StreamState.FAILED
                raise

            self._state = StreamState.CONNECTED
            self._log.info(f"Connected to {self.host}:{self.port}")
            return

        self._state = StreamState.FAILED
        self._log.error("Maximum connection retries reached. Giving up.")
        raise ConnectError(self.host, self.port, total_attempts) from last_error

    def run(self, handler: Callable[[T], Any]) -> StopReason:
        """
        Connect if needed, then stream until something stops the loop.

        A manager can be run again after it stopped. Each run starts with
        an empty reassembly buffer and no pending stop request.

        Args:
            handler: Called with every decoded item, returns False to stop

        Returns:
            The reason streaming ended (also stored in ``stop_reason``)

        Raises:
            ConnectError: If the connect phase failed
        """
        self.connect()

        self._state = StreamState.STREAMING
        reason = StopReason.UNEXPECTED_ERROR
        try:
            reason = self._stream(handler)
        except KeyboardInterrupt:
            self._log.info("Streaming interrupted by user (Ctrl-C).")
            reason = StopReason.CANCELLED
        except Exception as e:
            self._log.exception(f"Unhandled error in streaming loop: {type(e).__name__}: {e}")
            reason = StopReason.UNEXPECTED_ERROR
        finally:
            self.close()
            self._reset_for_next_run()
            self._state = StreamState.STOPPED
            self.stop_reason = reason
            self._log.info(f"Streaming finished ({reason.value})")

        return reason

    def _reset_for_next_run(self) -> None:
        dropped = self._reassembler.reset()
        if dropped:
            self._log.debug(f"Discarded {dropped} bytes of incomplete frame")
        self._stop_event.clear()

    def stop(self) -> None:
        """
        Request a cooperative stop.

        Safe to call from another thread. The loop notices the request
        between reads, so a blocking read without a timeout finishes first.
        """
        self._log.info("Stop requested")
        self._stop_event.set()

    def close(self) -> None:
        """Close the connection if open. Idempotent."""
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.close()
            self._log.info("Socket closed.")
        except OSError as e:
            self._log.warning(f"Error closing socket: {e}")

    def __enter__(self) -> "ConnectionManager[T]":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # -------------------------
    # Read loop
    # -------------------------
    def _read_step(self) -> ReadResult:
        """Read one chunk and classify the outcome."""
        if self._stop_event.is_set():
            return ReadResult(ReadOutcome.CANCELLED)

        try:
            data = self._sock.recv(self.connection.read_chunk_size)
        except (socket.timeout, BlockingIOError):
            return ReadResult(ReadOutcome.NO_DATA)
        except KeyboardInterrupt:
            return ReadResult(ReadOutcome.CANCELLED)
        except OSError as e:
            return ReadResult(ReadOutcome.TRANSPORT_ERROR, error=e)

        if not data:
            return ReadResult(ReadOutcome.END_OF_STREAM)
        return ReadResult(ReadOutcome.DATA, data=data)

    def _stream(self, handler: Callable[[T], Any]) -> StopReason:
        while True:
            result = self._read_step()

            if result.outcome is ReadOutcome.NO_DATA:
                self.metrics.empty_reads += 1
                self._sleep(self.connection.idle_sleep_seconds)
                continue
            if result.outcome is ReadOutcome.CANCELLED:
                self._log.info("Streaming cancelled.")
                return StopReason.CANCELLED
            if result.outcome is ReadOutcome.END_OF_STREAM:
                self._log.info("Connection closed by server (EOF).")
                return StopReason.END_OF_STREAM
            if result.outcome is ReadOutcome.TRANSPORT_ERROR:
                self._log.warning(f"Socket error, connection lost: {result.error}")
                return StopReason.TRANSPORT_ERROR

            self.metrics.bytes_received += len(result.data)
            for frame_bytes in self._reassembler.feed(result.data):
                if not self._deliver(handler, frame_bytes):
                    self._log.info("Frame handler requested to stop streaming.")
                    return StopReason.HANDLER_STOP
                if self._stop_event.is_set():
                    self._log.info("Streaming cancelled.")
                    return StopReason.CANCELLED

    def _deliver(self, handler: Callable[[T], Any], frame_bytes: bytes) -> bool:
        """Decode one frame, hand it over, and report whether to continue."""
        item = self._decode(frame_bytes)
        if getattr(item, "is_valid", True) is False:
            self.metrics.invalid_frames += 1

        keep_running = handler(item)
        self.metrics.frames_delivered += 1

        if isinstance(keep_running, (bool, np.bool_)):
            return bool(keep_running)

        self._log.warning(
            f"Frame handler returned {type(keep_running).__name__}, not bool. "
            f"Assuming True to continue."
        )
        return True


def stream_frames(
    config: StreamConfig,
    handler: Callable[[DecodedFrame], Any],
    **kwargs: Any,
) -> StopReason:
    """
    Connect to a raw-stream camera and deliver frames until stopped.

    Keyword arguments are passed to ConnectionManager.

    Raises:
        ConnectError: If the camera could not be reached
    """
    return ConnectionManager.for_frames(config, **kwargs).run(handler)


def stream_packets(
    config: StructuredPacketConfig,
    handler: Callable[[ParsedPacket], Any],
    **kwargs: Any,
) -> StopReason:
    """
    Connect to a structured-packet camera and deliver packets until stopped.

    Packets are delimited by ``config.expected_packet_size``.

    Raises:
        ConnectError: If the camera could not be reached
    """
    return ConnectionManager.for_packets(config, **kwargs).run(handler)
