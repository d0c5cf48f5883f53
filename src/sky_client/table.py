"""Table handle: properties, single-event CRUD, queries and streams."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from sky_client.errors import (
    ClientRequiredError,
    MalformedEventError,
    MissingEventError,
    MissingIdentifierError,
    MissingPropertyError,
    MissingPropertyNameError,
    MissingQueryError,
)
from sky_client.events.model import Event
from sky_client.events.timestamp import format_timestamp
from sky_client.properties import Property
from sky_client.streaming.streams import TableEventStream

if TYPE_CHECKING:
    from sky_client.client import SkyClient

logger = structlog.get_logger()


@dataclass
class Table:
    """A named table on a Sky server.

    Tables returned by ``SkyClient`` are attached to it; a detached table
    only becomes usable once passed to ``SkyClient.create_table``.
    """

    name: str
    client: SkyClient | None = field(default=None, repr=False, compare=False)

    @classmethod
    def from_wire(cls, data: Any, client: SkyClient | None = None) -> Table:
        name = data.get("name") if isinstance(data, dict) else None
        return cls(name=name if isinstance(name, str) else "", client=client)

    def to_wire(self) -> dict[str, Any]:
        return {"name": self.name}

    def _client(self) -> SkyClient:
        if self.client is None:
            raise ClientRequiredError()
        return self.client

    # -- Properties ------------------------------------------------------------

    def property(self, name: str) -> Property:
        client = self._client()
        if not name:
            raise MissingPropertyNameError()
        body = client.send("GET", f"/tables/{self.name}/properties/{name}")
        return Property.model_validate(body)

    def properties(self) -> list[Property]:
        body = self._client().send("GET", f"/tables/{self.name}/properties")
        return [Property.model_validate(p) for p in body or []]

    def create_property(self, prop: Property | None) -> Property:
        client = self._client()
        if prop is None:
            raise MissingPropertyError()
        body = client.send("POST", f"/tables/{self.name}/properties", prop.to_wire())
        created = Property.model_validate(body) if body else prop
        logger.info("table.property_created", table=self.name, property=created.name)
        return created

    def rename_property(self, old_name: str, new_name: str) -> None:
        client = self._client()
        if not old_name or not new_name:
            raise MissingPropertyNameError()
        client.send(
            "PATCH",
            f"/tables/{self.name}/properties/{old_name}",
            {"name": new_name},
            decode=False,
        )

    def delete_property(self, name: str) -> None:
        client = self._client()
        if not name:
            raise MissingPropertyNameError()
        client.send(
            "DELETE", f"/tables/{self.name}/properties/{name}", decode=False
        )

    # -- Events ----------------------------------------------------------------

    def _events_path(self, object_id: str) -> str:
        return f"/tables/{self.name}/objects/{object_id}/events"

    def event(self, object_id: str, timestamp: datetime) -> Event | None:
        """Fetch the event for *object_id* at *timestamp*, or ``None``."""
        client = self._client()
        if not object_id:
            raise MissingIdentifierError()
        path = f"{self._events_path(object_id)}/{format_timestamp(timestamp)}"
        body = client.send("GET", path)
        if not body:
            return None
        return Event.deserialize(body)

    def events(self, object_id: str) -> list[Event]:
        """Fetch every event of *object_id*, oldest first."""
        client = self._client()
        if not object_id:
            raise MissingIdentifierError()
        body = client.send("GET", self._events_path(object_id))
        if body is None:
            return []
        if not isinstance(body, list):
            msg = f"Expected a list of events, got {type(body).__name__}"
            raise MalformedEventError(msg)
        return [Event.deserialize(item) for item in body]

    def insert_event(self, object_id: str, event: Event | None) -> None:
        """Insert *event*, merging into any event already at that timestamp."""
        client = self._client()
        if not object_id:
            raise MissingIdentifierError()
        if event is None:
            raise MissingEventError()
        path = f"{self._events_path(object_id)}/{format_timestamp(event.timestamp)}"
        client.send("PATCH", path, event.serialize(), decode=False)

    def delete_event(self, object_id: str, timestamp: datetime) -> None:
        client = self._client()
        if not object_id:
            raise MissingIdentifierError()
        path = f"{self._events_path(object_id)}/{format_timestamp(timestamp)}"
        client.send("DELETE", path, decode=False)

    def delete_events(self, object_id: str) -> None:
        client = self._client()
        if not object_id:
            raise MissingIdentifierError()
        client.send("DELETE", self._events_path(object_id), decode=False)

    def stream(self) -> TableEventStream:
        """Open a bulk insert stream bound to this table."""
        return TableEventStream.connect(self._client().config, self.name)

    # -- Stats & query ---------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        body = self._client().send("GET", f"/tables/{self.name}/stats")
        return body or {}

    def query(self, query: str) -> dict[str, Any]:
        """Run a SkyQL query against the table."""
        client = self._client()
        if not query:
            raise MissingQueryError()
        body = client.send("POST", f"/tables/{self.name}/query", query)
        return body or {}
