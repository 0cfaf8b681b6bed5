"""Simulator models and data structures.

This module defines the device descriptor, protocol generation enum, and
the helpers used to address and read per-device component state.

Component state is an open JSON-style document (dicts, lists, strings,
numbers, booleans, None). The helpers here make the permissive "missing
key reads as empty" behavior explicit instead of relying on ``None``
checks scattered through the handlers.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

# Component state document (e.g. {"output": True, "apower": 45.2})
ComponentState = Dict[str, Any]

# Mapping of component key (e.g. "switch:0") to its state value
DeviceState = Dict[str, Any]

# Firmware identity reported by every current-generation device
FIRMWARE_ID = "20241210-092317/1.4.4-g6d2a586"
FIRMWARE_VERSION = "1.4.4"

# Firmware identity reported by legacy-generation devices
LEGACY_FIRMWARE_ID = "20230913-112003/v1.14.0-gcb84623"


# =============================================================================
# Enums
# =============================================================================


class Generation(IntEnum):
    """Protocol generation spoken by a simulated device.

    Values:
        UNSET: Not specified in the fixture; treated as current generation.
        GEN1: Legacy REST-style path protocol.
        GEN2: Current JSON-RPC protocol.
    """

    UNSET = 0
    GEN1 = 1
    GEN2 = 2

    @property
    def is_legacy(self) -> bool:
        """Check if this generation uses the legacy path protocol."""
        return self == Generation.GEN1

    @property
    def effective(self) -> "Generation":
        """Get the generation used for dispatch (UNSET maps to GEN2)."""
        return Generation.GEN1 if self.is_legacy else Generation.GEN2


# =============================================================================
# Device Descriptor
# =============================================================================


@dataclass(frozen=True)
class DeviceDescriptor:
    """Static identity of a simulated device.

    Attributes:
        name: Display name, matched case-insensitively by the registry.
        mac: MAC address as configured (usually colon separated).
        model: Marketing model name (e.g. "Shelly Plus 1PM").
        device_type: Device type code / app name (e.g. "SNSW-001P16EU").
        generation: Protocol generation.
        platform: Device platform family.

    Example:
        >>> device = DeviceDescriptor(
        ...     name="Kitchen", mac="AA:BB:CC:DD:EE:01",
        ...     model="Shelly Plus 1PM", device_type="SNSW-001P16EU",
        ...     generation=Generation.GEN2,
        ... )
        >>> device.device_id
        'shellyshellyplus1pm-AABBCCDDEE01'
    """

    name: str
    mac: str = ""
    model: str = ""
    device_type: str = ""
    generation: Generation = Generation.UNSET
    platform: str = "shelly"

    @property
    def mac_compact(self) -> str:
        """Get MAC address without separators, upper-case."""
        return self.mac.replace(":", "").replace("-", "").upper()

    @property
    def device_id(self) -> str:
        """Get the device id reported by current-generation devices."""
        model = self.model.replace(" ", "").lower()
        return f"shelly{model}-{self.mac_compact}"

    @property
    def is_legacy(self) -> bool:
        """Check if the device speaks the legacy path protocol."""
        return self.generation.is_legacy

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeviceDescriptor":
        """Create a descriptor from a fixture mapping.

        Args:
            data: Mapping with name, mac, model, type, generation, platform.

        Returns:
            DeviceDescriptor instance.

        Raises:
            ValueError: If the name is missing or the generation is invalid.
        """
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Device entry has no name: {data!r}")

        raw_generation = data.get("generation", data.get("gen", 0))
        if raw_generation is None:
            raw_generation = 0
        if isinstance(raw_generation, bool) or not isinstance(raw_generation, int):
            raise ValueError(
                f"Device {name!r} has non-integer generation: {raw_generation!r}"
            )
        try:
            generation = Generation(raw_generation)
        except ValueError:
            raise ValueError(
                f"Device {name!r} has unsupported generation: {raw_generation}"
            ) from None

        return cls(
            name=name,
            mac=str(data.get("mac", "")),
            model=str(data.get("model", "")),
            device_type=str(data.get("type", data.get("device_type", ""))),
            generation=generation,
            platform=str(data.get("platform") or "shelly"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display or serialization."""
        return {
            "name": self.name,
            "mac": self.mac,
            "model": self.model,
            "type": self.device_type,
            "generation": int(self.generation),
            "platform": self.platform,
        }


# =============================================================================
# Component Keys
# =============================================================================


def component_key(kind: str, component_id: int) -> str:
    """Build a component key such as ``switch:0``."""
    return f"{kind}:{component_id}"


def parse_component_key(key: str) -> Tuple[str, Optional[int]]:
    """Split a component key into kind and numeric id.

    Args:
        key: Component key (e.g. "switch:0", "sys", "script:3").

    Returns:
        Tuple of (kind, id). The id is None for keys without a numeric
        suffix.

    Example:
        >>> parse_component_key("switch:1")
        ('switch', 1)
        >>> parse_component_key("mqtt")
        ('mqtt', None)
    """
    kind, sep, suffix = key.partition(":")
    if not sep:
        return kind, None
    try:
        return kind, int(suffix)
    except ValueError:
        return kind, None


def is_component_key(key: str) -> bool:
    """Check if a state key addresses an id-suffixed component."""
    return parse_component_key(key)[1] is not None


# =============================================================================
# Typed Accessors
# =============================================================================


def as_document(value: Any) -> ComponentState:
    """Return value if it is a document, otherwise an empty document."""
    if isinstance(value, dict):
        return value
    return {}


def read_output(state: Any) -> bool:
    """Read the ``output`` flag of a switch/light style component.

    Missing component, missing key, or a non-boolean value all read as
    False.
    """
    value = as_document(state).get("output")
    return value if isinstance(value, bool) else False

