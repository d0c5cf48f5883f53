"""Health probes for a Sky server."""

from __future__ import annotations

import socket
from dataclasses import dataclass, field
from enum import StrEnum

import structlog

from sky_client.client import SkyClient
from sky_client.config.models import ClientConfig

logger = structlog.get_logger()


class Status(StrEnum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class ComponentHealth:
    name: str
    status: Status = Status.UNKNOWN
    detail: str = ""


@dataclass
class ServiceHealth:
    components: list[ComponentHealth] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return all(c.status == Status.HEALTHY for c in self.components)

    @property
    def summary(self) -> dict[str, str]:
        return {c.name: c.status.value for c in self.components}


def check_api(client: SkyClient) -> ComponentHealth:
    """Probe the REST API: ping, then list tables."""
    if not client.ping():
        return ComponentHealth(
            name="api",
            status=Status.UNHEALTHY,
            detail=f"no answer from {client.config.base_url}/ping",
        )
    try:
        tables = client.tables()
    except Exception as exc:
        return ComponentHealth(name="api", status=Status.UNHEALTHY, detail=str(exc))
    return ComponentHealth(
        name="api", status=Status.HEALTHY, detail=f"{len(tables)} table(s)"
    )


def check_stream_port(config: ClientConfig, timeout: float = 5.0) -> ComponentHealth:
    """Probe that the stream endpoint accepts TCP connections."""
    try:
        with socket.create_connection(config.address, timeout=timeout):
            pass
    except OSError as exc:
        return ComponentHealth(name="stream", status=Status.UNHEALTHY, detail=str(exc))
    return ComponentHealth(
        name="stream", status=Status.HEALTHY, detail=f"tcp {config.host_header}"
    )


def check_service_health(config: ClientConfig | None = None) -> ServiceHealth:
    """Run all health checks and return aggregated result."""
    cfg = config or ClientConfig()
    with SkyClient(cfg) as client:
        components = [check_api(client), check_stream_port(cfg)]
    health = ServiceHealth(components=components)
    logger.debug("health.checked", summary=health.summary)
    return health
