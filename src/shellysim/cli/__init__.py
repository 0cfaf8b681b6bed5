"""CLI commands for the device simulator.

Example:
    $ shelly-sim serve --fixtures fleet.yaml
    $ shelly-sim devices --fixtures fleet.yaml
"""

from shellysim.cli.simulator import cli, devices, serve, validate

__all__ = ["cli", "devices", "serve", "validate"]
