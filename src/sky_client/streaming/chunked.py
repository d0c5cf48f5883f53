"""HTTP chunked transfer-encoding writers.

``ChunkWriter`` turns every write into exactly one chunk on the wire.
``ChunkBuffer`` sits above it and coalesces small writes, so that each
flush becomes a single chunk.
"""

from __future__ import annotations

from typing import Protocol

from sky_client.errors import ChunkWriteError

CRLF = b"\r\n"
TERMINATOR = b"0\r\n\r\n"


class ByteSink(Protocol):
    """Anything with socket-style ``send`` semantics (may write partially)."""

    def send(self, data: bytes | memoryview, /) -> int: ...


class ChunkWriter:
    """Emits each ``write`` as ``<hex size>\\r\\n<body>\\r\\n``.

    Holds no buffer of its own; an empty write is the terminating chunk.
    """

    def __init__(self, sink: ByteSink) -> None:
        self._sink = sink

    def write(self, data: bytes) -> int:
        """Write one chunk and return the number of body bytes sent."""
        self._send_fully(b"%x\r\n" % len(data), "size", 0)
        written = self._send_fully(data, "body", 0)
        self._send_fully(CRLF, "trailer", written)
        return written

    def _send_fully(self, data: bytes, stage: str, body_written: int) -> int:
        view = memoryview(data)
        total = 0
        while total < len(view):
            try:
                count = self._sink.send(view[total:])
            except OSError as exc:
                sent = body_written + (total if stage == "body" else 0)
                raise ChunkWriteError(stage, sent, str(exc)) from exc
            if count <= 0:
                sent = body_written + (total if stage == "body" else 0)
                raise ChunkWriteError(stage, sent, "sink accepted no bytes")
            total += count
        return total


class ChunkBuffer:
    """Accumulates bytes and hands them to a ``ChunkWriter`` one chunk per flush.

    Once the buffered size reaches ``size`` the buffer flushes itself.
    """

    def __init__(self, writer: ChunkWriter, size: int = 4096) -> None:
        if size < 1:
            msg = f"buffer size must be positive, got {size}"
            raise ValueError(msg)
        self._writer = writer
        self._size = size
        self._buf = bytearray()

    @property
    def buffered(self) -> int:
        return len(self._buf)

    def write(self, data: bytes) -> int:
        self._buf += data
        if len(self._buf) >= self._size:
            self.flush()
        return len(data)

    def flush(self) -> None:
        if not self._buf:
            return
        payload = bytes(self._buf)
        # Bytes are gone after a failed write; the stream needs a reconnect.
        self._buf.clear()
        self._writer.write(payload)
