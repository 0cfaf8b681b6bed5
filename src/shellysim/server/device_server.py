"""Device simulator server lifecycle.

This module provides the DeviceServer class that owns one simulated fleet:
the device registry, the state store seeded from the fixture, the router,
the metrics registry and the HTTP listener. Instances are independent; two
servers never share state.

Example:
    >>> from shellysim.fixtures import Fixtures
    >>> from shellysim.server import DeviceServer
    >>> with DeviceServer(Fixtures.from_file("fleet.yaml")) as server:
    ...     url = server.device_url("Kitchen Light")
    ...     # ... exercise the device over HTTP ...
    >>> # server is stopped and its port released here
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from urllib.parse import quote

from shellysim.observability.metrics import MetricsRegistry
from shellysim.server.config import SimulatorConfig
from shellysim.server.exceptions import ServerAlreadyRunningError, ServerNotRunningError, ServerStartError
from shellysim.server.models import DeviceState, is_component_key
from shellysim.server.registry import DeviceRegistry
from shellysim.server.router import DEVICES_PREFIX, Router
from shellysim.server.state_store import StateStore
from shellysim.server.transport import SimulatorHTTPServer

if TYPE_CHECKING:
    from shellysim.fixtures import Fixtures

logger = logging.getLogger(__name__)


class DeviceServer:
    """In-process HTTP server simulating a fleet of devices.

    The server is the single owner of its state: create it, pass it (or
    its URLs) to the code under test, and stop it when done. Nothing is
    registered globally.

    Thread Safety:
        Request handling is concurrent; start() and stop() must be called
        by the owner only and are not reentrant.
    """

    def __init__(self, fixtures: "Fixtures", config: Optional[SimulatorConfig] = None) -> None:
        """Initialize the server without binding.

        Args:
            fixtures: Devices and initial states. The fixture is copied and
                never mutated.
            config: Listener configuration. Defaults to an ephemeral port
                on localhost.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self._config = config or SimulatorConfig()
        self._config.validate()

        self._registry = DeviceRegistry(fixtures.devices)
        self._metrics = MetricsRegistry() if self._config.enable_metrics else None
        self._store = StateStore(
            fixtures.device_states,
            device_names=self._registry.names,
            on_mutation=self._metrics.record_mutation if self._metrics else None,
        )
        self._router = Router(self._registry, self._store, self._metrics)

        self._httpd: Optional[SimulatorHTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Check if the listener is serving."""
        return self._httpd is not None

    def start(self) -> "DeviceServer":
        """Bind the listener and serve in a background thread.

        Returns:
            self, for chaining.

        Raises:
            ServerAlreadyRunningError: If the server is already running.
            ServerStartError: If the listener cannot bind.
        """
        if self._httpd is not None:
            raise ServerAlreadyRunningError("Device server is already running")

        address = (self._config.host, self._config.port)
        try:
            httpd = SimulatorHTTPServer(
                address,
                self._router,
                metrics=self._metrics,
                request_log=self._config.request_log,
            )
        except OSError as e:
            raise ServerStartError(f"Failed to bind to {address[0]}:{address[1]}: {e}") from e

        self._httpd = httpd
        self._thread = threading.Thread(
            target=httpd.serve_forever,
            name="DeviceServer-Listener",
            daemon=True,
        )
        self._thread.start()

        if self._metrics is not None:
            self._metrics.devices.set(len(self._registry))

        logger.info(
            "Device server started on %s with %d devices",
            self.base_url,
            len(self._registry),
        )
        return self

    def stop(self, timeout: float = 5.0) -> None:
        """Stop serving and release the port.

        Calling stop() on a stopped server only logs a warning.

        Args:
            timeout: Maximum time to wait for the listener thread.
        """
        httpd = self._httpd
        if httpd is None:
            logger.warning("Device server is not running")
            return

        logger.info("Stopping device server...")
        httpd.shutdown()
        httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._httpd = None
        self._thread = None
        logger.info("Device server stopped")

    def __enter__(self) -> "DeviceServer":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    # =========================================================================
    # Addressing
    # =========================================================================

    @property
    def address(self):
        """Get the bound (host, port) pair.

        Raises:
            ServerNotRunningError: If the server is not running.
        """
        if self._httpd is None:
            raise ServerNotRunningError("Device server is not running")
        return self._httpd.server_address[:2]

    @property
    def base_url(self) -> str:
        """Get the base URL, e.g. ``http://127.0.0.1:54321``."""
        host, port = self.address
        return f"http://{host}:{port}"

    def device_url(self, name: str) -> str:
        """Get the base URL of one device, with the name percent-encoded."""
        return f"{self.base_url}{DEVICES_PREFIX}{quote(name, safe='')}"

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def config(self) -> SimulatorConfig:
        """Get the server configuration."""
        return self._config

    @property
    def devices(self) -> DeviceRegistry:
        """Get the device registry."""
        return self._registry

    @property
    def store(self) -> StateStore:
        """Get the state store."""
        return self._store

    @property
    def router(self) -> Router:
        """Get the request router."""
        return self._router

    @property
    def metrics(self) -> Optional[MetricsRegistry]:
        """Get the metrics registry, if metrics are enabled."""
        return self._metrics

    def get_state(self, name: str) -> DeviceState:
        """Get a snapshot of one device's state.

        Args:
            name: Device name, matched case-insensitively.

        Raises:
            KeyError: If no device has that name.
        """
        device = self._registry.lookup(name)
        if device is None:
            raise KeyError(name)
        return self._store.snapshot(device.name)

    def fleet_status(self) -> List[Dict[str, Any]]:
        """Summarize every reachable device.

        Returns:
            One entry per device with its identity, effective generation,
            component keys and URL (when running).
        """
        fleet = []
        for name in self._registry.names:
            device = self._registry.lookup(name)
            entry: Dict[str, Any] = device.to_dict()
            entry["generation"] = int(device.generation.effective)
            entry["components"] = [key for key in self._store.keys(name) if is_component_key(key)]
            if self.is_running:
                entry["url"] = self.device_url(name)
            fleet.append(entry)
        return fleet
