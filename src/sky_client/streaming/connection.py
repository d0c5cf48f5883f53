"""Long-lived chunked HTTP connection for bulk event ingestion.

The connection speaks HTTP/1.0 with ``Transfer-Encoding: chunked`` over a
raw socket: the request header is written once at connect time, every
buffer flush becomes one chunk, and ``close`` sends the terminating chunk
and reads the server's one-line status response.
"""

from __future__ import annotations

import json
import socket
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Self, TypeVar

import structlog

from sky_client.errors import (
    ChunkWriteError,
    ConnectError,
    HandshakeError,
    MissingEventError,
    NotConnectedError,
    SerializationError,
    ServerRejectedStreamError,
    StatusReadError,
)
from sky_client.events.model import Event
from sky_client.streaming.chunked import ChunkBuffer, ChunkWriter

logger = structlog.get_logger()

SUCCESS_STATUS_PREFIX = "HTTP/1.0 200"

SocketFactory = Callable[[tuple[str, int], float | None], socket.socket]

T = TypeVar("T")


class StreamState(StrEnum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    BROKEN = "broken"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class _Session:
    """One socket and the writers layered on it; replaced as a unit."""

    sock: socket.socket
    chunks: ChunkWriter
    buffer: ChunkBuffer


def _default_socket_factory(
    address: tuple[str, int], timeout: float | None
) -> socket.socket:
    return socket.create_connection(address, timeout=timeout)


class StreamConnection:
    """Owns one socket to the stream endpoint and the writers on top of it.

    Parameters
    ----------
    address:
        ``(host, port)`` of the Sky server.
    header:
        Request line and headers sent once per connection.
    buffer_size:
        Bytes accumulated before the buffer flushes itself as a chunk.
    connect_timeout:
        Optional dial timeout. Writes and the status read never time out.
    """

    def __init__(
        self,
        address: tuple[str, int],
        header: bytes,
        *,
        buffer_size: int = 4096,
        connect_timeout: float | None = None,
        socket_factory: SocketFactory = _default_socket_factory,
    ) -> None:
        self._address = address
        self._header = header
        self._buffer_size = buffer_size
        self._connect_timeout = connect_timeout
        self._socket_factory = socket_factory
        self._session: _Session | None = None
        self._state = StreamState.UNCONNECTED

    @property
    def address(self) -> tuple[str, int]:
        return self._address

    @property
    def header(self) -> bytes:
        return self._header

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def socket(self) -> socket.socket | None:
        """The live socket, if any."""
        return self._session.sock if self._session is not None else None

    # -- Lifecycle -------------------------------------------------------------

    def reconnect(self) -> None:
        """Open a fresh socket and swap it in, closing the previous one.

        If dialing or the header write fails, the previous socket and state
        are left untouched and the error propagates.
        """
        session = self._open_session()
        previous, self._session = self._session, session
        self._state = StreamState.CONNECTED

        host, port = self._address
        if previous is None:
            logger.info("stream.connected", host=host, port=port)
            return
        if previous.buffer.buffered:
            logger.warning(
                "stream.buffer_discarded",
                host=host,
                port=port,
                bytes=previous.buffer.buffered,
            )
        with suppress(OSError):
            previous.sock.close()
        logger.info("stream.reconnected", host=host, port=port)

    def close(self) -> None:
        """Flush, send the terminating chunk and check the server's status.

        The socket is released on every path.
        """
        session = self._session
        if session is None:
            msg = f"stream is {self._state}"
            raise NotConnectedError(msg)
        if self._state == StreamState.BROKEN:
            self.abort()
            msg = "stream is broken; socket released without acknowledgment"
            raise NotConnectedError(msg)

        try:
            self._guard(session.buffer.flush)
            self._guard(session.chunks.write, b"")
            status = self._guard(_read_status_line, session.sock)
        finally:
            self.abort()

        host, port = self._address
        if not status.startswith(SUCCESS_STATUS_PREFIX):
            logger.warning("stream.rejected", host=host, port=port, status=status)
            raise ServerRejectedStreamError(status)
        logger.info("stream.closed", host=host, port=port)

    def abort(self) -> None:
        """Release the socket without the close handshake."""
        session, self._session = self._session, None
        if session is not None:
            with suppress(OSError):
                session.sock.close()
        if self._state != StreamState.UNCONNECTED:
            self._state = StreamState.CLOSED

    # -- Writing ---------------------------------------------------------------

    def insert(self, event: Event | None, **fields: str) -> None:
        """Encode one event, with *fields* merged at the root, into the buffer."""
        if event is None:
            raise MissingEventError()
        session = self._live_session()

        record: dict[str, Any] = event.serialize()
        record.update(fields)
        try:
            line = json.dumps(record, separators=(",", ":"), allow_nan=False)
        except (TypeError, ValueError) as exc:
            msg = f"Failed to encode event: {exc}"
            raise SerializationError(msg) from exc

        self._guard(session.buffer.write, line.encode() + b"\n")

    def flush(self) -> None:
        """Send buffered records as one chunk; a no-op when nothing is buffered."""
        session = self._live_session()
        self._guard(session.buffer.flush)

    # -- Internals -------------------------------------------------------------

    def _open_session(self) -> _Session:
        host, port = self._address
        try:
            sock = self._socket_factory(self._address, self._connect_timeout)
        except OSError as exc:
            msg = f"Failed to connect to {host}:{port}: {exc}"
            raise ConnectError(msg) from exc

        try:
            sock.settimeout(None)
            sock.sendall(self._header)
        except OSError as exc:
            with suppress(OSError):
                sock.close()
            msg = f"Failed to send stream header to {host}:{port}: {exc}"
            raise HandshakeError(msg) from exc

        chunks = ChunkWriter(sock)
        buffer = ChunkBuffer(chunks, self._buffer_size)
        return _Session(sock=sock, chunks=chunks, buffer=buffer)

    def _live_session(self) -> _Session:
        if self._state != StreamState.CONNECTED or self._session is None:
            msg = f"stream is {self._state}"
            raise NotConnectedError(msg)
        return self._session

    def _guard(self, op: Callable[..., T], *args: Any) -> T:
        try:
            return op(*args)
        except (ChunkWriteError, StatusReadError, OSError) as exc:
            self._state = StreamState.BROKEN
            host, port = self._address
            logger.warning("stream.broken", host=host, port=port, error=str(exc))
            raise

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, *exc: object) -> None:
        if exc_type is None and self._state == StreamState.CONNECTED:
            self.close()
        else:
            self.abort()


def _read_status_line(sock: socket.socket) -> str:
    """Read from *sock* up to the first carriage return."""
    data = bytearray()
    while b"\r" not in data:
        try:
            piece = sock.recv(256)
        except OSError as exc:
            msg = f"Failed to read stream status: {exc}"
            raise StatusReadError(msg) from exc
        if not piece:
            break
        data += piece
    line, _, _ = bytes(data).partition(b"\r")
    return line.decode("latin-1")
