"""HTTP client for the Sky REST API."""

from __future__ import annotations

import json
from contextlib import suppress
from typing import Any, Self

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from sky_client.config.models import ClientConfig
from sky_client.errors import APIError, MissingTableError, MissingTableNameError
from sky_client.streaming.streams import EventStream
from sky_client.table import Table

logger = structlog.get_logger()

VERSION = "0.4.0"
"""Sky server version this client is written against."""


class SkyClient:
    """Thin synchronous wrapper around the Sky REST API."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._http = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
            transport=transport,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- Transport -------------------------------------------------------------

    def send(
        self,
        method: str,
        path: str,
        data: Any = None,
        *,
        decode: bool = True,
    ) -> Any:
        """Send a request and return the decoded JSON response body.

        String payloads go out as ``text/plain``, anything else as JSON.
        Non-200 responses raise ``APIError`` carrying the server's message.
        Returns ``None`` when *decode* is false or the body is empty.
        """
        if isinstance(data, str):
            content: bytes | None = data.encode()
            content_type = "text/plain"
        else:
            content = json.dumps(data).encode() if data is not None else None
            content_type = "application/json"

        resp = self._http.request(
            method, path, content=content, headers={"Content-Type": content_type}
        )
        if resp.status_code != 200:
            raise self._api_error(method, resp)
        if not decode or not resp.content:
            return None
        return resp.json()

    @staticmethod
    def _api_error(method: str, resp: httpx.Response) -> APIError:
        message = ""
        with suppress(ValueError):
            body = resp.json()
            if isinstance(body, dict) and isinstance(body.get("message"), str):
                message = body["message"]
        if not message:
            message = f"{resp.status_code} error: {method} {resp.request.url}"
        logger.debug(
            "client.request_failed",
            method=method,
            url=str(resp.request.url),
            status=resp.status_code,
            message=message,
        )
        return APIError(message, resp.status_code)

    # -- Health ----------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the server answers ``/ping``."""
        try:
            self.send("GET", "/ping", decode=False)
        except (httpx.HTTPError, APIError):
            return False
        return True

    def wait_until_ready(self) -> None:
        """Block until the server answers ``/ping``, backing off between tries."""
        ready = self._config.ready

        @retry(
            retry=retry_if_exception_type((httpx.HTTPError, APIError)),
            stop=stop_after_attempt(ready.max_attempts),
            wait=wait_exponential(
                multiplier=ready.initial_wait_seconds, max=ready.max_wait_seconds
            ),
            reraise=True,
        )
        def _ping() -> None:
            self.send("GET", "/ping", decode=False)

        _ping()
        logger.info("client.ready", url=self._config.base_url)

    # -- Tables ----------------------------------------------------------------

    def table(self, name: str) -> Table:
        """Retrieve a table by name."""
        if not name:
            raise MissingTableNameError()
        body = self.send("GET", f"/tables/{name}")
        return Table.from_wire(body, client=self)

    def tables(self) -> list[Table]:
        body = self.send("GET", "/tables")
        return [Table.from_wire(t, client=self) for t in body or []]

    def create_table(self, table: Table | None) -> Table:
        """Create *table* on the server and attach it to this client."""
        if table is None:
            raise MissingTableError()
        table.client = self
        body = self.send("POST", "/tables", table.to_wire())
        if isinstance(body, dict) and isinstance(body.get("name"), str):
            table.name = body["name"]
        logger.info("table.created", table=table.name)
        return table

    def delete_table(self, name: str) -> None:
        if not name:
            raise MissingTableNameError()
        self.send("DELETE", f"/tables/{name}", decode=False)
        logger.info("table.deleted", table=name)

    # -- Streaming -------------------------------------------------------------

    def stream(self) -> EventStream:
        """Open a database-wide bulk insert stream."""
        return EventStream.connect(self._config)
