"""Serial-port helpers for sending control commands to the camera board."""

import logging
from typing import List, Optional

import serial
from serial import SerialException
from serial.tools import list_ports

from thermal_stream.exceptions import SerialCommandError


logger = logging.getLogger(__name__)


def list_serial_ports() -> List[str]:
    """Return the device names of all serial ports, sorted."""
    ports = sorted(port.device for port in list_ports.comports())
    logger.debug(f"Found {len(ports)} serial port(s): {ports}")
    return ports


def send_serial_command(
    port: str,
    command: str,
    baudrate: int = 115200,
    timeout: float = 1.0,
    read_response: bool = True,
    connection: Optional[serial.Serial] = None,
) -> str:
    """
    Send one newline-terminated text command and optionally read the reply line.

    Args:
        port: Serial device, e.g. "/dev/ttyUSB0" or "COM3"
        command: Command text without line terminator
        baudrate: Line speed
        timeout: Read timeout in seconds
        read_response: Wait for one reply line
        connection: Already-open port to use instead of opening ``port``

    Returns:
        Reply line without trailing whitespace, "" when not read or timed out

    Raises:
        SerialCommandError: If the port cannot be opened or written
    """
    try:
        link = connection or serial.Serial(port, baudrate=baudrate, timeout=timeout)
    except SerialException as e:
        raise SerialCommandError(f"Could not open {port}: {e}") from e

    try:
        link.write(f"{command}\n".encode("ascii"))
        link.flush()
        logger.info(f"Sent {command!r} to {port}")
        if not read_response:
            return ""
        reply = link.readline().decode("ascii", errors="replace").rstrip()
        if not reply:
            logger.warning(f"No reply from {port} within {timeout}s")
        return reply
    except SerialException as e:
        raise SerialCommandError(f"Serial I/O on {port} failed: {e}") from e
    finally:
        if connection is None:
            link.close()
