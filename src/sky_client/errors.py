"""Exception hierarchy for the Sky client."""

from __future__ import annotations


class SkyError(Exception):
    """Base class for every error raised by the client."""


# -- Streaming transport --------------------------------------------------------


class ConnectError(SkyError):
    """Raised when the TCP connection to the stream endpoint cannot be opened."""


class HandshakeError(ConnectError):
    """Raised when the chunked request header cannot be written."""


class NotConnectedError(SkyError):
    """Raised when a stream operation needs a live connection and has none."""


class ChunkWriteError(SkyError):
    """Raised when a chunk cannot be written to the underlying socket.

    ``stage`` is one of ``"size"``, ``"body"`` or ``"trailer"`` and
    ``bytes_written`` counts the body bytes sent before the failure.
    """

    def __init__(self, stage: str, bytes_written: int, reason: str) -> None:
        super().__init__(
            f"chunk {stage} write failed after {bytes_written} body byte(s): {reason}"
        )
        self.stage = stage
        self.bytes_written = bytes_written


class StatusReadError(SkyError):
    """Raised when the status line cannot be read after the terminating chunk."""


class ServerRejectedStreamError(SkyError):
    """Raised when the close handshake does not return ``HTTP/1.0 200``."""

    def __init__(self, status_line: str) -> None:
        super().__init__(f"server rejected event stream: {status_line!r}")
        self.status_line = status_line


class SerializationError(SkyError):
    """Raised when a record cannot be encoded as JSON."""


# -- Caller preconditions -------------------------------------------------------


class PreconditionError(SkyError, ValueError):
    """A required argument was missing or blank."""


class MissingIdentifierError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("id required")


class MissingEventError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("event required")


class MissingTableError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("table required")


class MissingTableNameError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("table name required")


class MissingPropertyError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("property required")


class MissingPropertyNameError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("property name required")


class MissingQueryError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("query required")


class ClientRequiredError(PreconditionError):
    def __init__(self) -> None:
        super().__init__("table is not attached to a client")


# -- Decoding -------------------------------------------------------------------


class TimestampFormatError(SkyError, ValueError):
    """Raised when a timestamp string does not match the wire layout."""


class MalformedEventError(SkyError):
    """Raised when a wire map cannot be decoded into an event."""


# -- HTTP API -------------------------------------------------------------------


class APIError(SkyError):
    """Raised when the server answers a request with a non-200 status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
