"""Typer CLI for the Sky client."""

from __future__ import annotations

import json
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table as RichTable

from sky_client.client import SkyClient
from sky_client.config.loader import load_client_config
from sky_client.config.models import ClientConfig
from sky_client.errors import SkyError
from sky_client.events.model import Event
from sky_client.events.timestamp import format_timestamp
from sky_client.observability.health import Status, check_service_health

logger = structlog.get_logger()
console = Console()
app = typer.Typer(name="sky", help="Sky event database client")


def _load(config_path: str | None) -> ClientConfig:
    if config_path is not None and not Path(config_path).exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    try:
        return load_client_config(Path(config_path) if config_path else None)
    except (ValueError, TypeError) as exc:
        console.print(f"[red]Invalid config:[/red] {exc}")
        raise typer.Exit(1) from exc


@app.command()
def validate(
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Client config YAML"
    ),
) -> None:
    """Validate a client configuration file."""
    config = _load(config_path)
    console.print(f"[green]Valid[/green] server={config.base_url}")
    console.print(f"  timeout:       {config.timeout_seconds}s")
    console.print(f"  stream buffer: {config.stream.buffer_size} bytes")
    dial = config.stream.connect_timeout_seconds
    console.print(f"  dial timeout:  {f'{dial}s' if dial else '(none)'}")
    console.print(f"  config:        {config_path or '(defaults)'}")


@app.command()
def health(
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Client config YAML"
    ),
) -> None:
    """Check that the Sky server is reachable."""
    result = check_service_health(_load(config_path))

    table = RichTable(title="Sky Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Detail")

    for c in result.components:
        style = "green" if c.status == Status.HEALTHY else "red"
        table.add_row(c.name, f"[{style}]{c.status}[/{style}]", c.detail)

    console.print(table)
    if not result.healthy:
        raise typer.Exit(1)


@app.command()
def tables(
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Client config YAML"
    ),
) -> None:
    """List tables on the server."""
    with SkyClient(_load(config_path)) as client:
        try:
            names = [t.name for t in client.tables()]
        except SkyError as exc:
            console.print(f"[red]Failed to list tables:[/red] {exc}")
            raise typer.Exit(1) from exc
    for name in names:
        console.print(name)


@app.command()
def events(
    table_name: str = typer.Argument(..., help="Table name"),
    object_id: str = typer.Argument(..., help="Object identifier"),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Client config YAML"
    ),
) -> None:
    """Print every event stored for an object."""
    with SkyClient(_load(config_path)) as client:
        try:
            found = client.table(table_name).events(object_id)
        except SkyError as exc:
            console.print(f"[red]Failed to fetch events:[/red] {exc}")
            raise typer.Exit(1) from exc

    table = RichTable(title=f"{table_name} / {object_id}")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Data")
    for event in found:
        table.add_row(format_timestamp(event.timestamp), json.dumps(event.data))
    console.print(table)


@app.command("import")
def import_events(
    table_name: str = typer.Argument(..., help="Table name"),
    path: Path = typer.Argument(..., help="JSON-lines file of events"),
    global_stream: bool = typer.Option(
        False, "--global", help="Send through the database-wide stream"
    ),
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Client config YAML"
    ),
) -> None:
    """Bulk-load events from a JSON-lines file over a chunked stream.

    Each line is an object with ``id``, ``timestamp`` and ``data``.
    """
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)

    config = _load(config_path)
    count = 0
    lineno = 0
    with SkyClient(config) as client:
        try:
            table = client.table(table_name)
            stream = client.stream() if global_stream else table.stream()
        except SkyError as exc:
            console.print(f"[red]Failed to open stream:[/red] {exc}")
            raise typer.Exit(1) from exc

        try:
            with path.open() as f:
                for lineno, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    record = json.loads(line)
                    event = Event.deserialize(record)
                    object_id = str(record.get("id", ""))
                    if global_stream:
                        stream.insert_event(table, object_id, event)
                    else:
                        stream.insert_event(object_id, event)
                    count += 1
            stream.close()
        except (SkyError, ValueError) as exc:
            stream.abort()
            logger.error("cli.import_failed", table=table_name, line=lineno)
            console.print(f"[red]Import failed at line {lineno}:[/red] {exc}")
            raise typer.Exit(1) from exc

    console.print(f"[green]Imported {count} event(s)[/green] into {table_name}")


if __name__ == "__main__":
    app()
