"""Python client for the Sky event database."""

from sky_client.client import VERSION, SkyClient
from sky_client.config.models import ClientConfig, ReadyConfig, StreamConfig
from sky_client.errors import (
    APIError,
    ChunkWriteError,
    ClientRequiredError,
    ConnectError,
    HandshakeError,
    MalformedEventError,
    MissingEventError,
    MissingIdentifierError,
    MissingPropertyError,
    MissingPropertyNameError,
    MissingQueryError,
    MissingTableError,
    MissingTableNameError,
    NotConnectedError,
    PreconditionError,
    SerializationError,
    ServerRejectedStreamError,
    SkyError,
    StatusReadError,
    TimestampFormatError,
)
from sky_client.events.model import Event
from sky_client.events.timestamp import format_timestamp, parse_timestamp
from sky_client.properties import DataType, Property
from sky_client.streaming.connection import StreamConnection, StreamState
from sky_client.streaming.streams import EventStream, StreamTarget, TableEventStream
from sky_client.table import Table

__all__ = [
    "VERSION",
    "APIError",
    "ChunkWriteError",
    "ClientConfig",
    "ClientRequiredError",
    "ConnectError",
    "DataType",
    "Event",
    "EventStream",
    "HandshakeError",
    "MalformedEventError",
    "MissingEventError",
    "MissingIdentifierError",
    "MissingPropertyError",
    "MissingPropertyNameError",
    "MissingQueryError",
    "MissingTableError",
    "MissingTableNameError",
    "NotConnectedError",
    "PreconditionError",
    "Property",
    "ReadyConfig",
    "SerializationError",
    "ServerRejectedStreamError",
    "SkyClient",
    "SkyError",
    "StatusReadError",
    "StreamConfig",
    "StreamConnection",
    "StreamState",
    "StreamTarget",
    "Table",
    "TableEventStream",
    "TimestampFormatError",
    "format_timestamp",
    "parse_timestamp",
]
