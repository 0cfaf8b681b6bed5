"""Fixture loading for the device simulator.

A fixture describes the simulated fleet and its initial component state:

    config:
      devices:
        - name: Kitchen Light
          mac: "AA:BB:CC:DD:EE:01"
          model: Shelly Plus 1PM
          type: SNSW-001P16EU
          generation: 2
    device_states:
      Kitchen Light:
        "switch:0": {output: true, apower: 45.2}

Example:
    >>> fixtures = Fixtures.from_file("tests/fixtures/fleet.yaml")
    >>> [device.name for device in fixtures.devices]
    ['Kitchen Light', 'Living Room Plug', 'Garage Relay']
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml

from shellysim.server.models import DeviceDescriptor, DeviceState

logger = logging.getLogger(__name__)


class FixtureError(ValueError):
    """Raised when a fixture cannot be loaded or is malformed."""

    pass


@dataclass
class Fixtures:
    """Parsed fixture: device descriptors plus initial states.

    Attributes:
        devices: Device descriptors in fixture order.
        device_states: Initial state per device name. States for names not
            in ``devices`` are dropped at load time.
    """

    devices: List[DeviceDescriptor] = field(default_factory=list)
    device_states: Dict[str, DeviceState] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Fixtures":
        """Build fixtures from a parsed mapping.

        Args:
            data: Mapping with optional ``config.devices`` and
                ``device_states`` sections.

        Returns:
            Fixtures instance.

        Raises:
            FixtureError: If a section has the wrong shape or a device
                entry is invalid.
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise FixtureError("Fixture root must be a mapping")

        config = data.get("config")
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise FixtureError("'config' must be a mapping")

        raw_devices = config.get("devices")
        if raw_devices is None:
            raw_devices = []
        if not isinstance(raw_devices, list):
            raise FixtureError("'config.devices' must be a list")

        devices = []
        for position, entry in enumerate(raw_devices):
            if not isinstance(entry, Mapping):
                raise FixtureError(f"Device entry {position} must be a mapping")
            try:
                devices.append(DeviceDescriptor.from_dict(dict(entry)))
            except ValueError as e:
                raise FixtureError(f"Device entry {position}: {e}") from e

        raw_states = data.get("device_states")
        if raw_states is None:
            raw_states = {}
        if not isinstance(raw_states, Mapping):
            raise FixtureError("'device_states' must be a mapping")

        known = {device.name for device in devices}
        states: Dict[str, DeviceState] = {}
        for name, state in raw_states.items():
            if state is None:
                state = {}
            if not isinstance(state, Mapping):
                raise FixtureError(f"State of device {name!r} must be a mapping")
            if name not in known:
                logger.warning("Ignoring state for unknown device %r", name)
                continue
            states[name] = {str(key): value for key, value in state.items()}

        logger.debug("Loaded fixture: %d devices, %d states", len(devices), len(states))
        return cls(devices=devices, device_states=states)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Fixtures":
        """Load fixtures from a YAML (or JSON) file.

        Raises:
            FixtureError: If the file cannot be read or parsed.
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise FixtureError(f"Cannot read fixture {path}: {e}") from e
        except yaml.YAMLError as e:
            raise FixtureError(f"Invalid fixture {path}: {e}") from e

        logger.debug("Loading fixture from %s", path)
        return cls.from_dict(data)
