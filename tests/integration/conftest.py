"""Fixtures for tests against a running Sky server.

Set ``SKY_TEST_HOST`` and ``SKY_TEST_PORT`` to point at the server; the
whole module is skipped when nothing answers ``/ping``.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import suppress

import pytest

from sky_client.client import SkyClient
from sky_client.config.models import ClientConfig
from sky_client.errors import APIError
from sky_client.table import Table

TABLE_NAME = "sky-py-integration"


@pytest.fixture(scope="session")
def sky_config() -> ClientConfig:
    return ClientConfig(
        host=os.environ.get("SKY_TEST_HOST", "localhost"),
        port=int(os.environ.get("SKY_TEST_PORT", "8589")),
    )


@pytest.fixture(scope="session")
def sky_client(sky_config: ClientConfig) -> Iterator[SkyClient]:
    client = SkyClient(sky_config)
    if not client.ping():
        client.close()
        pytest.skip(f"no Sky server at {sky_config.base_url}")
    yield client
    client.close()


@pytest.fixture
def table(sky_client: SkyClient) -> Iterator[Table]:
    """A fresh table, dropped again after the test."""
    with suppress(APIError):
        sky_client.delete_table(TABLE_NAME)
    created = sky_client.create_table(Table(TABLE_NAME))
    yield created
    sky_client.delete_table(TABLE_NAME)
