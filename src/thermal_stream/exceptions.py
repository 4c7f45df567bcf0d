"""
Exceptions
==========

Error types raised by thermal_stream.

Malformed frames and packets are NOT exceptions: they are reported through
the ``is_valid`` flag of the decoded result so a stream never aborts on a
single bad frame.
"""


class ThermalStreamError(Exception):
    """Base class for all thermal_stream errors."""
    pass


class ConnectError(ThermalStreamError):
    """Raised when every connect attempt to the camera server failed."""

    def __init__(self, host: str, port: int, attempts: int) -> None:
        self.host = host
        self.port = port
        self.attempts = attempts
        super().__init__(
            f"Could not connect to {host}:{port} after {attempts} attempt(s)"
        )


class StorageError(ThermalStreamError):
    """Raised when a recording file cannot be written or parsed."""
    pass


class SerialCommandError(ThermalStreamError):
    """Raised when a serial control command fails."""
    pass
