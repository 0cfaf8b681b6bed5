"""Shared types and parameter helpers for component method handlers.

Every handler has the signature ``handler(ctx, params) -> result`` where
``ctx`` carries the resolved device and the state store, ``params`` is the
decoded parameter object, and ``result`` is any JSON-compatible value. A
handler may raise RPCError to answer with a structured error.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from shellysim.server.models import DeviceDescriptor
from shellysim.server.state_store import StateStore

Params = Dict[str, Any]


@dataclass
class HandlerContext:
    """Per-request context passed to handlers.

    Attributes:
        device: Resolved device descriptor.
        store: State store of the simulator instance.
        methods: Method table, for introspection calls such as
            Shelly.ListMethods.
    """

    device: DeviceDescriptor
    store: StateStore
    methods: Mapping[str, "MethodSpec"] = field(default_factory=dict, repr=False)

    @property
    def device_name(self) -> str:
        """Get the canonical name used as state store key."""
        return self.device.name

    def read(self, key: str) -> Any:
        """Read one component of the current device."""
        return self.store.get(self.device.name, key)

    def read_override(self, key: str, default: Dict[str, Any]) -> Any:
        """Read a subsystem document from state, or fall back to default.

        Fixtures may seed keys such as ``mqtt`` or ``cloud`` to override
        the canned subsystem responses.
        """
        value = self.read(key)
        if isinstance(value, dict) and value:
            return value
        return default


Handler = Callable[[HandlerContext, Params], Any]


@dataclass(frozen=True)
class MethodSpec:
    """Entry of the RPC method table.

    Attributes:
        handler: Function implementing the method.
        malformed_result: Response used on the compatibility path when the
            request body is not a JSON object. None means the malformed body
            is treated as empty parameters.
    """

    handler: Handler
    malformed_result: Optional[Dict[str, Any]] = None


# =============================================================================
# Parameter Helpers
# =============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def get_id(params: Mapping[str, Any], name: str = "id", default: int = 0) -> int:
    """Read a numeric id parameter.

    Absent or non-numeric ids read as ``default``; floats are truncated
    the way JSON numbers decode on real devices.
    """
    value = params.get(name)
    if _is_number(value):
        return int(value)
    return default


def get_bool(params: Mapping[str, Any], name: str, default: bool = False) -> bool:
    """Read a boolean parameter; anything but a real boolean is ``default``."""
    value = params.get(name)
    if isinstance(value, bool):
        return value
    return default


def get_int(params: Mapping[str, Any], name: str) -> Optional[int]:
    """Read an optional integer parameter."""
    value = params.get(name)
    if _is_number(value):
        return int(value)
    return None


def get_str(params: Mapping[str, Any], name: str, default: str = "") -> str:
    """Read a string parameter."""
    value = params.get(name)
    if isinstance(value, str):
        return value
    return default
