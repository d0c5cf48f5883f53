"""Pydantic configuration models for the Sky client."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class StreamConfig(BaseModel):
    """Settings for bulk event streams."""

    # Encoded records accumulate up to this many bytes before being sent
    # as one chunk.
    buffer_size: int = Field(default=4096, ge=1)
    # None blocks until the OS gives up on the dial.
    connect_timeout_seconds: float | None = Field(default=None, gt=0)


class ReadyConfig(BaseModel):
    """Backoff used by ``SkyClient.wait_until_ready``."""

    max_attempts: int = Field(default=10, ge=1)
    initial_wait_seconds: float = Field(default=0.5, gt=0)
    max_wait_seconds: float = Field(default=10.0, gt=0)


class ClientConfig(BaseModel, extra="forbid"):
    """Connection settings for a Sky server."""

    host: str = "localhost"
    port: int = Field(default=8585, ge=1, le=65535)
    timeout_seconds: float = Field(default=30.0, gt=0)
    stream: StreamConfig = StreamConfig()
    ready: ReadyConfig = ReadyConfig()

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not v or ":" in v or "/" in v:
            msg = f"host '{v}' must be a bare hostname (set the port separately)"
            raise ValueError(msg)
        return v

    @property
    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    @property
    def host_header(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"
