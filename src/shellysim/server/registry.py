"""Device registry for the simulator.

The registry is populated once from the fixture and is read-only afterwards,
so lookups need no locking.

Example:
    >>> from shellysim.server.registry import DeviceRegistry
    >>> registry = DeviceRegistry([kitchen, hallway])
    >>> registry.lookup("KITCHEN").name
    'Kitchen'
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from shellysim.server.models import DeviceDescriptor

logger = logging.getLogger(__name__)


class DeviceRegistry:
    """Immutable list of simulated device descriptors.

    Lookup is an exact, case-insensitive match on the display name. When
    two descriptors share a case-insensitive name the first one wins and
    the collision is reported once at construction.

    Thread Safety:
        Read-only after construction; safe for concurrent lookups.
    """

    def __init__(self, devices: Iterable[DeviceDescriptor]) -> None:
        """Initialize the registry.

        Args:
            devices: Device descriptors in fixture order.
        """
        self._devices: Tuple[DeviceDescriptor, ...] = tuple(devices)
        self._index: Dict[str, DeviceDescriptor] = {}
        self._duplicates: List[str] = []

        for device in self._devices:
            folded = device.name.casefold()
            if folded in self._index:
                self._duplicates.append(device.name)
                logger.warning(
                    "Duplicate device name %r shadows %r; lookups resolve to the first",
                    device.name,
                    self._index[folded].name,
                )
                continue
            self._index[folded] = device

    def lookup(self, name: str) -> Optional[DeviceDescriptor]:
        """Find a device by display name.

        Args:
            name: Device name, compared case-insensitively.

        Returns:
            The matching descriptor, or None if no device has that name.
        """
        return self._index.get(name.casefold())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._index

    def __iter__(self) -> Iterator[DeviceDescriptor]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    @property
    def names(self) -> List[str]:
        """Get display names of reachable devices in fixture order."""
        return [device.name for device in self._index.values()]

    @property
    def duplicates(self) -> List[str]:
        """Get names of descriptors shadowed by an earlier device."""
        return list(self._duplicates)
