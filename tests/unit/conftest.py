"""Shared fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from sky_client.config.models import ClientConfig

from .helpers import FakeStreamServer


@pytest.fixture
def stream_server() -> Iterator[FakeStreamServer]:
    server = FakeStreamServer()
    server.start()
    try:
        yield server
    finally:
        server.stop()


@pytest.fixture
def client_config(stream_server: FakeStreamServer) -> ClientConfig:
    return ClientConfig(host="127.0.0.1", port=stream_server.port)
