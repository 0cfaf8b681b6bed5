"""Per-device component state store.

This module holds the only shared mutable resource of a simulator instance:
a mapping of device name to component key to state document. The store is
seeded by deep-copying the fixture snapshot, so mutations made during a run
never reach the fixture or another simulator instance.

Example:
    >>> store = StateStore({"Kitchen": {"switch:0": {"output": True}}})
    >>> def turn_off(current):
    ...     was_on = current.get("output", False)
    ...     current["output"] = False
    ...     return current, was_on
    >>> store.set("Kitchen", "switch:0", turn_off)
    True
"""

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, TypeVar

from shellysim.server.models import DeviceState

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Receives the current value (or an empty document) and returns the new
# value plus whatever the caller needs to report back.
Mutator = Callable[[Any], Tuple[Any, T]]

# Called with (device, key) after every mutation; "*" marks a multi-key
# transaction.
MutationListener = Callable[[str, str], None]


# =============================================================================
# Reader/Writer Lock
# =============================================================================


class ReadWriteLock:
    """Writer-preferring reader/writer lock.

    Any number of readers may hold the lock together; a writer holds it
    alone. Once a writer is waiting, new readers queue behind it so a
    steady stream of reads cannot starve mutations.

    Example:
        >>> lock = ReadWriteLock()
        >>> with lock.read_locked():
        ...     pass
        >>> with lock.write_locked():
        ...     pass
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


# =============================================================================
# State Store
# =============================================================================


class StateStore:
    """Concurrency-guarded component state for every simulated device.

    One coarse reader/writer lock guards all devices. Reads return deep
    copies so no caller ever holds a reference into guarded storage.

    The store does not validate device names: callers (the router) must
    only pass devices the store was seeded for. Unknown names raise
    KeyError.

    Thread Safety:
        All methods are thread-safe. Mutations of the same
        (device, component) pair are serialized.
    """

    def __init__(
        self,
        initial_states: Optional[Mapping[str, DeviceState]] = None,
        device_names: Optional[Iterable[str]] = None,
        on_mutation: Optional[MutationListener] = None,
    ) -> None:
        """Initialize the store.

        Args:
            initial_states: Fixture snapshot of device name -> state. The
                snapshot is deep-copied and never referenced afterwards.
            device_names: Devices to create state for. Defaults to the keys
                of initial_states. States for names outside this set are
                dropped.
            on_mutation: Optional callback invoked after each mutation,
                outside the lock.
        """
        initial_states = initial_states or {}
        names = list(device_names) if device_names is not None else list(initial_states)

        self._lock = ReadWriteLock()
        self._on_mutation = on_mutation
        self._states: Dict[str, DeviceState] = {
            name: copy.deepcopy(dict(initial_states.get(name) or {})) for name in names
        }

        dropped = sorted(set(initial_states) - set(self._states))
        for name in dropped:
            logger.warning("Dropping initial state for unknown device %r", name)

    def get(self, device: str, key: str) -> Any:
        """Read one component's state.

        Args:
            device: Canonical device name.
            key: Component key (e.g. "switch:0").

        Returns:
            A copy of the stored value, or an empty document if the key has
            never been set.
        """
        with self._lock.read_locked():
            value = self._states[device].get(key)
            if value is None:
                return {}
            return copy.deepcopy(value)

    def set(self, device: str, key: str, mutator: Mutator[T]) -> T:
        """Read-modify-write one component under the exclusive lock.

        Args:
            device: Canonical device name.
            key: Component key.
            mutator: Receives a copy of the current value (an empty document
                if absent) and returns ``(new_value, report)``.

        Returns:
            The ``report`` value returned by the mutator.
        """
        with self._lock.write_locked():
            state = self._states[device]
            current = state.get(key)
            current = {} if current is None else copy.deepcopy(current)
            new_value, report = mutator(current)
            state[key] = new_value
        logger.debug("State updated: device=%s, key=%s", device, key)
        self._notify(device, key)
        return report

    def delete(self, device: str, key: str) -> bool:
        """Remove one component key.

        Returns:
            True if the key existed.
        """
        with self._lock.write_locked():
            existed = self._states[device].pop(key, None) is not None
        if existed:
            self._notify(device, key)
        return existed

    def transact(self, device: str, fn: Callable[[DeviceState], T]) -> T:
        """Run ``fn`` against the live device state under the exclusive lock.

        Used when one call must read and write several keys atomically.
        ``fn`` must not keep references to the state after returning.
        """
        with self._lock.write_locked():
            result = fn(self._states[device])
        self._notify(device, "*")
        return result

    def snapshot(self, device: str) -> DeviceState:
        """Get a deep copy of the complete state of one device."""
        with self._lock.read_locked():
            return copy.deepcopy(self._states[device])

    def keys(self, device: str) -> List[str]:
        """Get the state keys of one device, sorted."""
        with self._lock.read_locked():
            return sorted(self._states[device])

    def device_names(self) -> List[str]:
        """Get the devices this store holds state for."""
        return list(self._states)

    def _notify(self, device: str, key: str) -> None:
        if self._on_mutation is not None:
            self._on_mutation(device, key)
