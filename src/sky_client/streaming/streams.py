"""Global and table-scoped event streams.

Both variants run on the same ``StreamConnection``; a ``StreamTarget``
decides the request path and whether records carry their table name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Self

from sky_client.config.models import ClientConfig
from sky_client.errors import (
    MissingEventError,
    MissingIdentifierError,
    MissingTableError,
)
from sky_client.events.model import Event
from sky_client.streaming.connection import StreamConnection, StreamState

if TYPE_CHECKING:
    from sky_client.table import Table


@dataclass(frozen=True, slots=True)
class StreamTarget:
    """Where a stream posts to, and which identity fields each record gets.

    ``table`` is the scoped table name, or ``None`` for the database-wide
    endpoint where every record names its own table.
    """

    path: str
    table: str | None = None

    @classmethod
    def database(cls) -> StreamTarget:
        return cls(path="/events")

    @classmethod
    def for_table(cls, name: str) -> StreamTarget:
        return cls(path=f"/tables/{name}/events", table=name)

    def header(self, host: str) -> bytes:
        return (
            f"PATCH {self.path} HTTP/1.0\r\n"
            f"Host: {host}\r\n"
            f"Content-Type: application/json\r\n"
            f"Transfer-Encoding: chunked\r\n"
            f"\r\n"
        ).encode()


def open_connection(config: ClientConfig, target: StreamTarget) -> StreamConnection:
    """Build an unconnected ``StreamConnection`` for *target*."""
    return StreamConnection(
        config.address,
        target.header(config.host_header),
        buffer_size=config.stream.buffer_size,
        connect_timeout=config.stream.connect_timeout_seconds,
    )


class _Stream:
    def __init__(self, connection: StreamConnection, target: StreamTarget) -> None:
        self._connection = connection
        self._target = target

    @property
    def target(self) -> StreamTarget:
        return self._target

    @property
    def connection(self) -> StreamConnection:
        return self._connection

    @property
    def state(self) -> StreamState:
        return self._connection.state

    def reconnect(self) -> None:
        self._connection.reconnect()

    def flush(self) -> None:
        self._connection.flush()

    def close(self) -> None:
        self._connection.close()

    def abort(self) -> None:
        self._connection.abort()

    def _send(self, object_id: str, event: Event | None, table: str | None) -> None:
        if not object_id:
            raise MissingIdentifierError()
        if event is None:
            raise MissingEventError()
        if self._target.table is None:
            self._connection.insert(event, id=object_id, table=table or "")
        else:
            self._connection.insert(event, id=object_id)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type[BaseException] | None, *exc: object) -> None:
        self._connection.__exit__(exc_type, *exc)


class EventStream(_Stream):
    """Database-wide stream; every record names the table it belongs to."""

    @classmethod
    def connect(cls, config: ClientConfig) -> EventStream:
        target = StreamTarget.database()
        stream = cls(open_connection(config, target), target)
        stream.reconnect()
        return stream

    def insert_event(
        self, table: Table | None, object_id: str, event: Event | None
    ) -> None:
        """Queue *event* for object *object_id* in *table*."""
        if table is None:
            raise MissingTableError()
        self._send(object_id, event, table.name)


class TableEventStream(_Stream):
    """Stream bound to one table; records carry only the object id."""

    @classmethod
    def connect(cls, config: ClientConfig, table_name: str) -> TableEventStream:
        target = StreamTarget.for_table(table_name)
        stream = cls(open_connection(config, target), target)
        stream.reconnect()
        return stream

    def insert_event(self, object_id: str, event: Event | None) -> None:
        """Queue *event* for object *object_id*."""
        self._send(object_id, event, None)
