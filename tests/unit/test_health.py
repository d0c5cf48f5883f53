"""Unit tests for the Sky health probes."""

from __future__ import annotations

import socket

import httpx
import respx

from sky_client.client import SkyClient
from sky_client.config.models import ClientConfig
from sky_client.observability.health import (
    ComponentHealth,
    ServiceHealth,
    Status,
    check_api,
    check_service_health,
    check_stream_port,
)

from .helpers import FakeStreamServer


def _closed_port() -> int:
    with socket.create_server(("127.0.0.1", 0)) as sock:
        return sock.getsockname()[1]


class TestServiceHealth:
    def test_all_healthy(self):
        health = ServiceHealth(
            components=[
                ComponentHealth(name="api", status=Status.HEALTHY),
                ComponentHealth(name="stream", status=Status.HEALTHY),
            ]
        )
        assert health.healthy
        assert health.summary == {"api": "healthy", "stream": "healthy"}

    def test_unknown_is_not_healthy(self):
        health = ServiceHealth(components=[ComponentHealth(name="api")])
        assert not health.healthy


class TestCheckApi:
    def test_healthy_reports_table_count(self, respx_mock: respx.MockRouter):
        respx_mock.get("http://sky.test:8585/ping").mock(
            return_value=httpx.Response(200)
        )
        respx_mock.get("http://sky.test:8585/tables").mock(
            return_value=httpx.Response(200, json=[{"name": "a"}, {"name": "b"}])
        )
        with SkyClient(ClientConfig(host="sky.test")) as client:
            result = check_api(client)
        assert result.status == Status.HEALTHY
        assert result.detail == "2 table(s)"

    def test_unreachable(self, respx_mock: respx.MockRouter):
        respx_mock.get("http://sky.test:8585/ping").mock(
            side_effect=httpx.ConnectError("connection refused")
        )
        with SkyClient(ClientConfig(host="sky.test")) as client:
            result = check_api(client)
        assert result.status == Status.UNHEALTHY
        assert "/ping" in result.detail

    def test_table_listing_fails(self, respx_mock: respx.MockRouter):
        respx_mock.get("http://sky.test:8585/ping").mock(
            return_value=httpx.Response(200)
        )
        respx_mock.get("http://sky.test:8585/tables").mock(
            return_value=httpx.Response(500, json={"message": "db locked"})
        )
        with SkyClient(ClientConfig(host="sky.test")) as client:
            result = check_api(client)
        assert result.status == Status.UNHEALTHY
        assert result.detail == "db locked"


class TestCheckStreamPort:
    def test_listening(self, stream_server: FakeStreamServer):
        cfg = ClientConfig(host="127.0.0.1", port=stream_server.port)
        assert check_stream_port(cfg).status == Status.HEALTHY

    def test_refused(self):
        cfg = ClientConfig(host="127.0.0.1", port=_closed_port())
        assert check_stream_port(cfg, timeout=1.0).status == Status.UNHEALTHY


def test_check_service_health(
    client_config: ClientConfig, respx_mock: respx.MockRouter
):
    respx_mock.get(f"{client_config.base_url}/ping").mock(
        return_value=httpx.Response(200)
    )
    respx_mock.get(f"{client_config.base_url}/tables").mock(
        return_value=httpx.Response(200, json=[])
    )
    health = check_service_health(client_config)
    assert health.healthy
    assert health.summary == {"api": "healthy", "stream": "healthy"}
