"""Test doubles for the chunked event stream endpoint."""

from __future__ import annotations

import json
import socket
import threading
from dataclasses import dataclass, field
from typing import Any

OK_STATUS = b"HTTP/1.0 200 OK\r\nContent-Length: 0\r\n\r\n"


def decode_chunks(data: bytes) -> tuple[list[bytes], bool]:
    """Split a chunked body into its chunks; report whether it was terminated."""
    chunks: list[bytes] = []
    pos = 0
    while pos < len(data):
        eol = data.index(b"\r\n", pos)
        size = int(data[pos:eol], 16)
        start = eol + 2
        body = data[start : start + size]
        assert data[start + size : start + size + 2] == b"\r\n"
        pos = start + size + 2
        if size == 0:
            return chunks, True
        chunks.append(body)
    return chunks, False


@dataclass
class ReceivedStream:
    """Everything one connection sent to the fake server."""

    header: bytes
    chunks: list[bytes] = field(default_factory=list)
    completed: bool = False

    @property
    def request_line(self) -> str:
        return self.header.split(b"\r\n", 1)[0].decode()

    @property
    def records(self) -> list[dict[str, Any]]:
        body = b"".join(self.chunks)
        return [json.loads(line) for line in body.splitlines() if line]


class FakeStreamServer:
    """Threaded TCP server that decodes chunked PATCH uploads.

    Each connection is recorded in ``streams`` once it ends. Terminated
    uploads are answered with ``status``.
    """

    def __init__(self, status: bytes = OK_STATUS) -> None:
        self.status = status
        self.streams: list[ReceivedStream] = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self.port: int = self._listener.getsockname()[1]
        self._cond = threading.Condition()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._listener.close()
        self._thread.join(timeout=5)

    def completed(self) -> list[ReceivedStream]:
        with self._cond:
            return [s for s in self.streams if s.completed]

    def wait_for_streams(
        self, count: int, timeout: float = 5.0
    ) -> list[ReceivedStream]:
        with self._cond:
            self._cond.wait_for(lambda: len(self.streams) >= count, timeout=timeout)
            return list(self.streams)

    def _serve(self) -> None:
        while True:
            try:
                conn, _ = self._listener.accept()
            except OSError:
                return
            threading.Thread(target=self._handle, args=(conn,), daemon=True).start()

    def _handle(self, conn: socket.socket) -> None:
        with conn:
            received = self._read_upload(conn)
            with self._cond:
                self.streams.append(received)
                self._cond.notify_all()
            if received.completed:
                conn.sendall(self.status)

    @staticmethod
    def _read_upload(conn: socket.socket) -> ReceivedStream:
        with conn.makefile("rb") as reader:
            header = b""
            try:
                while True:
                    line = reader.readline()
                    header += line
                    if not line or line == b"\r\n":
                        break
                received = ReceivedStream(header=header)
                while True:
                    size_line = reader.readline()
                    if not size_line:
                        return received
                    size = int(size_line.strip(), 16)
                    body = reader.read(size)
                    reader.read(2)
                    if size == 0:
                        received.completed = True
                        return received
                    received.chunks.append(body)
            except (OSError, ValueError):
                return ReceivedStream(header=header)


class RecordingSocket:
    """In-memory stand-in for a connected socket.

    ``max_send`` caps how much each ``send`` accepts, to exercise partial
    writes. ``capacity`` caps the total bytes accepted before sends fail.
    """

    def __init__(
        self,
        response: bytes = OK_STATUS,
        *,
        max_send: int | None = None,
        capacity: int | None = None,
        fail_header: bool = False,
        fail_recv: bool = False,
    ) -> None:
        self.sent = bytearray()
        self.closed = False
        self.timeout: float | None = -1.0
        self._response = response
        self._max_send = max_send
        self._capacity = capacity
        self._fail_header = fail_header
        self._fail_recv = fail_recv

    def settimeout(self, timeout: float | None) -> None:
        self.timeout = timeout

    def sendall(self, data: bytes) -> None:
        self._check_open()
        if self._fail_header:
            raise BrokenPipeError(32, "Broken pipe")
        self.sent += data

    def send(self, data: bytes | memoryview) -> int:
        self._check_open()
        n = len(data)
        if self._max_send is not None:
            n = min(n, self._max_send)
        if self._capacity is not None:
            if self._capacity == 0:
                raise BrokenPipeError(32, "Broken pipe")
            n = min(n, self._capacity)
            self._capacity -= n
        self.sent += bytes(data[:n])
        return n

    def recv(self, size: int) -> bytes:
        self._check_open()
        if self._fail_recv:
            raise ConnectionResetError(104, "Connection reset by peer")
        out, self._response = self._response[:size], self._response[size:]
        return out

    def close(self) -> None:
        self.closed = True

    def _check_open(self) -> None:
        if self.closed:
            raise OSError(9, "Bad file descriptor")


class ZeroSink:
    """A sink that never accepts any bytes."""

    def send(self, data: bytes | memoryview) -> int:
        return 0
