"""
Command Line Interface
======================

Record a live thermal stream to disk and talk to the camera board.

Usage:
    thermal-stream record --output capture.bin --max-frames 300
    thermal-stream record --output temps.bin --celsius --host 192.168.4.1
    thermal-stream ports
    thermal-stream send /dev/ttyUSB0 "STREAM ON"
"""

import argparse
import logging
import sys
from typing import List, Optional

import numpy as np

from thermal_stream.calibration import raw_matrix_to_celsius
from thermal_stream.config import Settings, StreamConfig, load_config, setup_logging
from thermal_stream.exceptions import ConnectError, SerialCommandError
from thermal_stream.serial_control import list_serial_ports, send_serial_command
from thermal_stream.storage import save_frames_celsius, save_frames_raw
from thermal_stream.stream import ConnectionManager, DecodedFrame


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thermal-stream",
        description="Thermal camera TCP stream client",
    )
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    record = subparsers.add_parser("record", help="Record frames from the camera")
    record.add_argument("--output", "-o", required=True, help="Recording file to write")
    record.add_argument("--host", default=None, help="Camera server address")
    record.add_argument("--port", type=int, default=None, help="Camera server port")
    record.add_argument(
        "--max-frames",
        type=int,
        default=0,
        help="Stop after this many valid frames (0 = until stream ends or Ctrl-C)",
    )
    record.add_argument(
        "--celsius",
        action="store_true",
        help="Store calibrated float32 Celsius instead of raw uint16",
    )
    record.add_argument(
        "--report-every",
        type=int,
        default=30,
        help="Log frame statistics every N frames",
    )

    subparsers.add_parser("ports", help="List serial ports")

    send = subparsers.add_parser("send", help="Send a serial control command")
    send.add_argument("port", help="Serial device")
    send.add_argument("text", help="Command text")
    send.add_argument("--baudrate", type=int, default=115200)
    send.add_argument("--no-reply", action="store_true", help="Do not wait for a reply")

    return parser


def record(settings: Settings, args: argparse.Namespace) -> int:
    """Stream frames into memory, then save them. Returns the exit code."""
    overrides = {}
    if args.host:
        overrides["server_ip"] = args.host
    if args.port:
        overrides["server_port"] = args.port
    stream_config = StreamConfig.model_validate({**settings.stream.model_dump(), **overrides})

    frames: List[np.ndarray] = []
    received = 0

    def on_frame(frame: DecodedFrame) -> bool:
        nonlocal received
        received += 1
        if not frame.is_valid:
            logger.warning(f"Received invalid frame #{received}")
            return True

        matrix = frame.matrix
        if args.celsius:
            matrix = raw_matrix_to_celsius(matrix, settings.calibration)
        frames.append(matrix)

        if args.report_every and len(frames) % args.report_every == 0:
            logger.info(
                f"Frame #{len(frames)}: {matrix.shape[1]}x{matrix.shape[0]}, "
                f"min={matrix.min():.2f}, max={matrix.max():.2f}"
            )
        return not (args.max_frames and len(frames) >= args.max_frames)

    manager = ConnectionManager.for_frames(stream_config, connection=settings.connection)
    try:
        reason = manager.run(on_frame)
    except ConnectError as e:
        logger.error(f"{e}")
        return 1

    logger.info(f"Stream ended ({reason.value}), {len(frames)} valid of {received} frames")
    if not frames:
        logger.warning("No frames were recorded.")
        return 0

    save = save_frames_celsius if args.celsius else save_frames_raw
    save(args.output, frames, stream_config.frame_width, stream_config.frame_height)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_config(args.config)
    setup_logging(settings)

    if args.command == "record":
        return record(settings, args)

    if args.command == "ports":
        for port in list_serial_ports():
            print(port)
        return 0

    try:
        reply = send_serial_command(
            args.port,
            args.text,
            baudrate=args.baudrate,
            read_response=not args.no_reply,
        )
    except SerialCommandError as e:
        logger.error(f"{e}")
        return 1
    if reply:
        print(reply)
    return 0


if __name__ == "__main__":
    sys.exit(main())
