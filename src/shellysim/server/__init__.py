"""Device protocol simulator server.

This package emulates the HTTP control plane of a smart-device fleet in two
protocol generations: a legacy REST path dialect and the current JSON-RPC
dialect, with per-method compatibility paths.

Example:
    >>> from shellysim.fixtures import Fixtures
    >>> from shellysim.server import DeviceServer, SimulatorConfig
    >>> server = DeviceServer(Fixtures.from_file("fleet.yaml"), SimulatorConfig(port=8081))
    >>> server.start()
    >>> server.device_url("Kitchen Light")
    'http://127.0.0.1:8081/devices/Kitchen%20Light'
    >>> server.stop()
"""

from shellysim.server.config import SimulatorConfig
from shellysim.server.device_server import DeviceServer
from shellysim.server.exceptions import (
    RPC_INTERNAL_ERROR,
    RPC_INVALID_PARAMS,
    RPC_INVALID_REQUEST,
    RPC_METHOD_NOT_FOUND,
    ConfigError,
    DeviceNotFoundError,
    InvalidRequestError,
    MethodNotFoundError,
    RoutingError,
    RPCError,
    ServerAlreadyRunningError,
    ServerNotRunningError,
    ServerStartError,
    SimulatorError,
)
from shellysim.server.gen1_dispatcher import Gen1Dispatcher
from shellysim.server.gen2_dispatcher import Gen2Dispatcher
from shellysim.server.http_handler import HTTPRequest, HTTPResponse
from shellysim.server.models import DeviceDescriptor, Generation
from shellysim.server.registry import DeviceRegistry
from shellysim.server.router import Router
from shellysim.server.state_store import ReadWriteLock, StateStore

__all__ = [
    # Lifecycle
    "DeviceServer",
    "SimulatorConfig",
    # Core
    "DeviceDescriptor",
    "DeviceRegistry",
    "Generation",
    "ReadWriteLock",
    "Router",
    "StateStore",
    # Dispatch
    "Gen1Dispatcher",
    "Gen2Dispatcher",
    "HTTPRequest",
    "HTTPResponse",
    # Errors
    "ConfigError",
    "DeviceNotFoundError",
    "InvalidRequestError",
    "MethodNotFoundError",
    "RoutingError",
    "RPCError",
    "ServerAlreadyRunningError",
    "ServerNotRunningError",
    "ServerStartError",
    "SimulatorError",
    "RPC_INTERNAL_ERROR",
    "RPC_INVALID_PARAMS",
    "RPC_INVALID_REQUEST",
    "RPC_METHOD_NOT_FOUND",
]
