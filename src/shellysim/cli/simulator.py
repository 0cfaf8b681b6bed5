"""CLI for the device simulator.

This module provides the ``shelly-sim`` command line interface for serving
a simulated fleet and for inspecting fixture files.

Example:
    $ shelly-sim serve --fixtures fleet.yaml --port 8081
    $ shelly-sim devices --fixtures fleet.yaml
    $ shelly-sim --log-format json validate --fixtures fleet.yaml
"""

import json
import sys
import time
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.table import Table

from shellysim.fixtures import Fixtures, FixtureError
from shellysim.observability.logging import LOG_FORMATS, configure_logging
from shellysim.server import ConfigError, DeviceServer, ServerStartError, SimulatorConfig
from shellysim.server.models import is_component_key
from shellysim.server.registry import DeviceRegistry

console = Console()


def _load_fixtures(path: Path) -> Fixtures:
    try:
        return Fixtures.from_file(path)
    except FixtureError as e:
        console.print(f"[red]Fixture error:[/red] {e}")
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS),
    default=None,
    help="Log output format (default: text)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, log_format: Optional[str]) -> None:
    """Shelly device protocol simulator.

    Serves simulated legacy and current generation devices over HTTP so
    clients can be exercised without hardware.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["log_format"] = log_format
    configure_logging("DEBUG" if verbose else "INFO", log_format or "text")


# =============================================================================
# Serve Command
# =============================================================================


@cli.command()
@click.option(
    "-f", "--fixtures",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Fixture file (YAML or JSON)",
)
@click.option("--host", default=None, help="Bind address (default: 127.0.0.1)")
@click.option("-p", "--port", type=int, default=None, help="Listen port (default: ephemeral)")
@click.option(
    "-c", "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML configuration file",
)
@click.option("--no-metrics", is_flag=True, help="Disable the /metrics endpoint")
@click.option("--request-log", is_flag=True, help="Log every request at INFO level")
@click.pass_context
def serve(
    ctx: click.Context,
    fixtures: Optional[Path],
    host: Optional[str],
    port: Optional[int],
    config: Optional[Path],
    no_metrics: bool,
    request_log: bool,
) -> None:
    """Serve the simulated fleet until interrupted.

    Configuration is read from SHELLY_SIM_* environment variables, then
    the --config file, then command line flags.

    \b
    Examples:
        shelly-sim serve --fixtures fleet.yaml
        shelly-sim serve --fixtures fleet.yaml --port 8081 --request-log
    """
    try:
        sim_config = SimulatorConfig.from_env()
        if config:
            with open(config, encoding="utf-8") as f:
                file_data = yaml.safe_load(f) or {}
            if not isinstance(file_data, dict):
                raise ConfigError(f"Configuration file {config} must contain a mapping")
            file_config = SimulatorConfig.from_dict(file_data)
            section = file_data.get("simulator", file_data)
            sim_config.merge({key: getattr(file_config, key) for key in section})
        sim_config.merge({
            "host": host,
            "port": port,
            "fixtures_path": str(fixtures) if fixtures else None,
            "enable_metrics": False if no_metrics else None,
            "request_log": True if request_log else None,
        })
        if ctx.obj.get("verbose"):
            sim_config.log_level = "DEBUG"
        if ctx.obj.get("log_format"):
            sim_config.log_format = ctx.obj["log_format"]
        sim_config.validate()
    except (ConfigError, yaml.YAMLError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    configure_logging(sim_config.log_level, sim_config.log_format)

    if not sim_config.fixtures_path:
        console.print("[red]Error:[/red] no fixture given (use --fixtures or SHELLY_SIM_FIXTURES)")
        sys.exit(1)

    server = DeviceServer(_load_fixtures(Path(sim_config.fixtures_path)), sim_config)
    try:
        server.start()
    except ServerStartError as e:
        console.print(f"[red]Failed to start server:[/red] {e}")
        sys.exit(1)

    console.print(f"[bold]Device simulator[/bold] listening on [cyan]{server.base_url}[/cyan]")
    table = Table(title="Simulated Devices")
    table.add_column("Name", style="cyan")
    table.add_column("Gen", justify="right")
    table.add_column("URL", style="green")
    for entry in server.fleet_status():
        table.add_row(entry["name"], str(entry["generation"]), entry["url"])
    console.print(table)
    if sim_config.enable_metrics:
        console.print(f"Metrics: {server.base_url}/metrics")
    console.print("Press Ctrl+C to stop the server")

    try:
        while server.is_running:
            time.sleep(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
    finally:
        server.stop()


# =============================================================================
# Inspection Commands
# =============================================================================


@cli.command()
@click.option(
    "-f", "--fixtures",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Fixture file (YAML or JSON)",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def devices(fixtures: Path, json_output: bool) -> None:
    """List the devices described by a fixture."""
    loaded = _load_fixtures(fixtures)

    if json_output:
        data = []
        for device in loaded.devices:
            entry = device.to_dict()
            state = loaded.device_states.get(device.name, {})
            entry["components"] = sorted(key for key in state if is_component_key(key))
            data.append(entry)
        click.echo(json.dumps(data, indent=2))
        return

    if not loaded.devices:
        console.print("[yellow]No devices in fixture[/yellow]")
        return

    table = Table(title="Fixture Devices")
    table.add_column("Name", style="cyan")
    table.add_column("Gen", justify="right")
    table.add_column("Model", style="green")
    table.add_column("Type", style="green")
    table.add_column("MAC", style="white")
    table.add_column("Components", justify="right")

    for device in loaded.devices:
        state = loaded.device_states.get(device.name, {})
        table.add_row(
            device.name,
            str(int(device.generation.effective)),
            device.model,
            device.device_type,
            device.mac,
            str(sum(1 for key in state if is_component_key(key))),
        )

    console.print(table)
    console.print(f"\n[bold]Total: {len(loaded.devices)} device(s)[/bold]")


@cli.command()
@click.option(
    "-f", "--fixtures",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Fixture file (YAML or JSON)",
)
def validate(fixtures: Path) -> None:
    """Validate a fixture file.

    Exits with status 1 when the fixture cannot be loaded.
    """
    loaded = _load_fixtures(fixtures)
    registry = DeviceRegistry(loaded.devices)

    legacy = sum(1 for device in loaded.devices if device.is_legacy)
    console.print(f"[green]Fixture OK:[/green] {fixtures}")
    console.print(f"  Devices: {len(loaded.devices)} ({legacy} legacy, {len(loaded.devices) - legacy} current)")
    console.print(f"  Device states: {len(loaded.device_states)}")

    for name in registry.duplicates:
        console.print(f"  [yellow]Warning:[/yellow] duplicate device name {name!r} is unreachable")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
