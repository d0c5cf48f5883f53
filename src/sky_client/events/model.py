"""Event record and its wire-map (de)serialization."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeAlias

from sky_client.errors import (
    MalformedEventError,
    SerializationError,
    SkyError,
    TimestampFormatError,
)
from sky_client.events.timestamp import format_timestamp, parse_timestamp

EventValue: TypeAlias = "str | int | float | bool | None | dict[str, EventValue]"

_SCALAR_TYPES = (str, int, float, bool)


@dataclass(slots=True)
class Event:
    """A state or action of an object at a given point in time."""

    timestamp: datetime
    data: dict[str, EventValue] | None = field(default_factory=dict)

    def serialize(self) -> dict[str, Any]:
        """Encode the event into the map shape the server expects.

        Raises ``SerializationError`` if ``data`` holds anything outside
        ``EventValue``.
        """
        data = self.data if self.data is not None else {}
        if not isinstance(data, Mapping):
            msg = f"Invalid data: {data!r}"
            raise SerializationError(msg)
        return {
            "timestamp": format_timestamp(self.timestamp),
            "data": _decode_mapping(data, "data", SerializationError),
        }

    @classmethod
    def deserialize(cls, obj: Any) -> Event:
        """Decode an event from a wire map returned by the server."""
        if not isinstance(obj, Mapping):
            msg = f"Invalid event: {obj!r}"
            raise MalformedEventError(msg)

        raw_ts = obj.get("timestamp")
        if not isinstance(raw_ts, str):
            msg = f"Invalid timestamp: {raw_ts!r}"
            raise MalformedEventError(msg)
        try:
            timestamp = parse_timestamp(raw_ts)
        except TimestampFormatError as exc:
            raise MalformedEventError(str(exc)) from exc

        raw_data = obj.get("data")
        if raw_data is None:
            return cls(timestamp=timestamp, data={})
        if not isinstance(raw_data, Mapping):
            msg = f"Invalid data: {raw_data!r}"
            raise MalformedEventError(msg)
        return cls(timestamp=timestamp, data=_decode_mapping(raw_data, "data"))


def _decode_mapping(
    raw: Mapping[Any, Any],
    path: str,
    error: type[SkyError] = MalformedEventError,
) -> dict[str, EventValue]:
    decoded: dict[str, EventValue] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            msg = f"Invalid key at {path}: {key!r}"
            raise error(msg)
        decoded[key] = _decode_value(value, f"{path}.{key}", error)
    return decoded


def _decode_value(value: Any, path: str, error: type[SkyError]) -> EventValue:
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, Mapping):
        return _decode_mapping(value, path, error)
    msg = f"Unsupported value at {path}: {type(value).__name__}"
    raise error(msg)
