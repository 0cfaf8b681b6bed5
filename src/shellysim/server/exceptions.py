"""Custom exceptions for the device simulator.

This module defines the exception hierarchy for routing, RPC, configuration
and lifecycle errors raised by the simulator server.
"""

from http import HTTPStatus
from typing import Optional

# JSON-RPC error codes
RPC_INVALID_REQUEST = -32600
RPC_METHOD_NOT_FOUND = -32601
RPC_INVALID_PARAMS = -32602
RPC_INTERNAL_ERROR = -32603


class SimulatorError(Exception):
    """Base exception for all simulator errors."""

    pass


class ConfigError(SimulatorError, ValueError):
    """Raised when simulator configuration is invalid."""

    pass


# =============================================================================
# Routing Errors
# =============================================================================


class RoutingError(SimulatorError):
    """Raised when a request cannot be mapped to a device endpoint.

    Routing failures are terminal: the transport answers 404 and there is
    no recovery path.
    """

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, path: str, reason: Optional[str] = None):
        self.path = path
        self.reason = reason or "not found"
        super().__init__(f"{self.reason}: {path}")


class DeviceNotFoundError(RoutingError):
    """Raised when the target device name is not in the registry."""

    def __init__(self, path: str, device_name: str):
        self.device_name = device_name
        super().__init__(path, f"unknown device {device_name!r}")


# =============================================================================
# RPC Errors
# =============================================================================


class RPCError(SimulatorError):
    """Structured RPC error rendered as ``{"code", "message"}``.

    Attributes:
        code: JSON-RPC style error code.
        message: Human readable message.
        status_code: HTTP status the transport answers with.
    """

    status_code = HTTPStatus.OK

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC error {code}: {message}")

    def to_dict(self) -> dict:
        """Convert to the ``error`` member of an RPC response."""
        return {"code": self.code, "message": self.message}


class InvalidRequestError(RPCError):
    """Raised when an RPC envelope cannot be decoded."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, message: str = "invalid request"):
        super().__init__(RPC_INVALID_REQUEST, message)


class MethodNotFoundError(RPCError):
    """Raised for RPC methods the simulator does not implement."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, method: str):
        self.method = method
        super().__init__(RPC_METHOD_NOT_FOUND, "method not found")


# =============================================================================
# Lifecycle Errors
# =============================================================================


class ServerStartError(SimulatorError):
    """Failed to start the simulator server."""

    pass


class ServerAlreadyRunningError(SimulatorError):
    """Operation requires the server to be stopped."""

    pass


class ServerNotRunningError(SimulatorError):
    """Operation requires the server to be running."""

    pass
