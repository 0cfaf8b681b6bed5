"""Shared pytest fixtures for the device simulator tests.

This module provides fixture data, state stores, routers and a running
DeviceServer for end-to-end tests.
"""

import json
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any, Dict, Generator, Optional, Tuple

import pytest

from shellysim.fixtures import Fixtures
from shellysim.server import DeviceServer, SimulatorConfig
from shellysim.server.registry import DeviceRegistry
from shellysim.server.router import Router
from shellysim.server.state_store import StateStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# =============================================================================
# Logging Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Undo logging configuration made by CLI invocations.

    configure_logging() stops propagation on the package logger, which
    would hide records from caplog in later tests.
    """
    yield
    package_logger = logging.getLogger("shellysim")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


# =============================================================================
# Fixture Data
# =============================================================================


@pytest.fixture
def fleet_path() -> Path:
    """Path of the sample fleet fixture file.

    Returns:
        Path to tests/fixtures/fleet.yaml.
    """
    return FIXTURES_DIR / "fleet.yaml"


@pytest.fixture
def fleet(fleet_path: Path) -> Fixtures:
    """Load the sample fleet.

    Returns:
        Fixtures with two current, one legacy and one unset-generation device.
    """
    return Fixtures.from_file(fleet_path)


@pytest.fixture
def registry(fleet: Fixtures) -> DeviceRegistry:
    """Create a registry for the sample fleet."""
    return DeviceRegistry(fleet.devices)


@pytest.fixture
def store(fleet: Fixtures, registry: DeviceRegistry) -> StateStore:
    """Create a state store seeded from the sample fleet."""
    return StateStore(fleet.device_states, device_names=registry.names)


@pytest.fixture
def router(registry: DeviceRegistry, store: StateStore) -> Router:
    """Create a router without metrics."""
    return Router(registry, store)


# =============================================================================
# Running Server
# =============================================================================


@pytest.fixture
def server(fleet: Fixtures) -> Generator[DeviceServer, None, None]:
    """Start a DeviceServer on an ephemeral port.

    Returns:
        Running DeviceServer; stopped on teardown.
    """
    device_server = DeviceServer(fleet, SimulatorConfig(port=0))
    device_server.start()
    yield device_server
    device_server.stop()


def _http_call(
    url: str,
    body: Optional[Any] = None,
    raw: Optional[bytes] = None,
) -> Tuple[int, Dict[str, Any]]:
    """Send a GET (or POST when a body is given) and decode the JSON answer.

    Args:
        url: Absolute URL.
        body: JSON-encodable request body.
        raw: Raw request body, sent as-is.

    Returns:
        Tuple of (status, decoded JSON body).
    """
    data = raw if raw is not None else (json.dumps(body).encode() if body is not None else None)
    request = urllib.request.Request(url, data=data, method="POST" if data is not None else "GET")
    if data is not None:
        request.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(request, timeout=5) as response:
            return response.status, json.loads(response.read())
    except urllib.error.HTTPError as e:
        payload = e.read()
        e.close()
        return e.code, json.loads(payload) if payload else {}


@pytest.fixture
def http():
    """HTTP helper returning (status, JSON body) for GET or POST requests."""
    return _http_call
