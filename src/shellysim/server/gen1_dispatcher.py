"""Legacy-generation (REST path style) dispatcher.

Legacy devices expose fixed paths instead of an RPC endpoint:

    GET /shelly                       identity
    GET /status                       full state
    GET /settings                     device settings
    GET /relay/<n>[?turn=on|off|toggle]
    GET /light/<n>[?turn=...&brightness=N]
    GET /settings/actions[?index=&name=&enabled=]

Relay and light state uses the real device ``/status`` layout: ``relays``
and ``lights`` lists indexed by channel, each entry carrying ``ison``.
Any non-empty ``turn`` mutates: ``toggle`` inverts, ``on`` switches on and
every other value switches off.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from shellysim.server.exceptions import RoutingError
from shellysim.server.http_handler import HTTPRequest, HTTPResponse, coerce_query_value
from shellysim.server.models import LEGACY_FIRMWARE_ID, DeviceDescriptor, as_document
from shellysim.server.state_store import StateStore

logger = logging.getLogger(__name__)

RELAYS_KEY = "relays"
LIGHTS_KEY = "lights"
ACTIONS_KEY = "actions"

class Gen1Dispatcher:
    """Dispatcher for devices speaking the legacy path protocol.

    Unknown paths raise RoutingError. Query parameters outside the expected
    vocabulary are ignored rather than rejected.
    """

    generation = "gen1"

    def __init__(self, store: StateStore) -> None:
        self._store = store
        self._routes: Dict[str, Callable[[DeviceDescriptor, HTTPRequest], Any]] = {
            "/shelly": self._identity,
            "/status": self._status,
            "/settings": self._settings,
            "/settings/actions": self._actions,
        }

    def endpoint_label(self, path: str) -> str:
        """Classify a device-relative path for request metrics."""
        if path in self._routes:
            return path.lstrip("/")
        family, _ = _split_channel(path)
        return family or "unknown"

    def dispatch(self, device: DeviceDescriptor, request: HTTPRequest) -> HTTPResponse:
        """Handle a request addressed to one legacy device.

        Raises:
            RoutingError: If the path is not a legacy endpoint.
        """
        route = self._routes.get(request.path)
        if route is not None:
            return HTTPResponse.json(route(device, request))

        family, channel = _split_channel(request.path)
        if family == "relay" and channel is not None:
            return HTTPResponse.json(self._relay(device, request, channel))
        if family == "light" and channel is not None:
            return HTTPResponse.json(self._light(device, request, channel))

        raise RoutingError(request.path, "unknown endpoint")

    # =========================================================================
    # Fixed Endpoints
    # =========================================================================

    def _identity(self, device: DeviceDescriptor, request: HTTPRequest) -> Dict[str, Any]:
        return {
            "type": device.device_type,
            "mac": device.mac_compact,
            "auth": False,
            "fw": LEGACY_FIRMWARE_ID,
        }

    def _status(self, device: DeviceDescriptor, request: HTTPRequest) -> Dict[str, Any]:
        return self._store.snapshot(device.name)

    def _settings(self, device: DeviceDescriptor, request: HTTPRequest) -> Dict[str, Any]:
        return {
            "device": {
                "type": device.device_type,
                "mac": device.mac_compact,
                "hostname": device.device_id,
            },
            "name": device.name,
            "fw": LEGACY_FIRMWARE_ID,
        }

    def _actions(self, device: DeviceDescriptor, request: HTTPRequest) -> Dict[str, Any]:
        """Record an action URL registration, or list registrations.

        With a ``name`` parameter the action keyed ``<index>_<name>`` is
        stored and echoed back; without one every stored action is listed.
        """
        name = request.query.get("name", "")
        if not name:
            actions = as_document(self._store.get(device.name, ACTIONS_KEY))
            listed = []
            for _, entry in sorted(actions.items()):
                if isinstance(entry, dict):
                    listed.append(dict(entry, urls=entry.get("urls", [])))
            return {"actions": listed}

        index = request.query.get("index", "0")
        entry = {
            "index": index,
            "name": name,
            "enabled": coerce_query_value(request.query.get("enabled", "")) is True,
            "urls": [url for key, url in sorted(request.query.items()) if key.startswith("urls")],
        }

        def mutate(current: Any) -> Tuple[Dict[str, Any], None]:
            actions = current if isinstance(current, dict) else {}
            actions[f"{index}_{name}"] = entry
            return actions, None

        self._store.set(device.name, ACTIONS_KEY, mutate)
        logger.debug("Recorded action %s_%s on %s", index, name, device.name)
        return {"actions": [entry]}

    # =========================================================================
    # Channel Endpoints
    # =========================================================================

    def _relay(self, device: DeviceDescriptor, request: HTTPRequest, channel: int) -> Dict[str, Any]:
        turn = request.query.get("turn", "").lower()
        if not turn:
            return _channel_entry(self._store.get(device.name, RELAYS_KEY), channel)

        def mutate(current: Any) -> Tuple[List[Any], Dict[str, Any]]:
            relays = _extend_channels(current, channel)
            relays[channel]["ison"] = _apply_turn(turn, relays[channel])
            return relays, dict(relays[channel])

        return self._store.set(device.name, RELAYS_KEY, mutate)

    def _light(self, device: DeviceDescriptor, request: HTTPRequest, channel: int) -> Dict[str, Any]:
        turn = request.query.get("turn", "").lower()
        brightness = coerce_query_value(request.query.get("brightness", ""))
        has_brightness = isinstance(brightness, int) and not isinstance(brightness, bool) and brightness > 0
        if not turn and not has_brightness:
            return _channel_entry(self._store.get(device.name, LIGHTS_KEY), channel)

        def mutate(current: Any) -> Tuple[List[Any], Dict[str, Any]]:
            lights = _extend_channels(current, channel)
            if turn:
                lights[channel]["ison"] = _apply_turn(turn, lights[channel])
            if has_brightness:
                lights[channel]["brightness"] = min(brightness, 100)
            return lights, dict(lights[channel])

        return self._store.set(device.name, LIGHTS_KEY, mutate)


# =============================================================================
# Helpers
# =============================================================================


def _split_channel(path: str) -> Tuple[str, Optional[int]]:
    """Split ``/relay/1`` into ("relay", 1); malformed channels give None."""
    parts = path.strip("/").split("/")
    if len(parts) != 2:
        return "", None
    family, suffix = parts
    if not suffix.isdigit():
        return family, None
    return family, int(suffix)


def _channel_entry(channels: Any, channel: int) -> Dict[str, Any]:
    """Read one channel entry; missing channels read as off."""
    if isinstance(channels, list) and channel < len(channels) and isinstance(channels[channel], dict):
        entry = dict(channels[channel])
        entry.setdefault("ison", False)
        return entry
    return {"ison": False}


def _extend_channels(current: Any, channel: int) -> List[Dict[str, Any]]:
    """Get a channel list long enough to address ``channel``."""
    channels = current if isinstance(current, list) else []
    channels = [entry if isinstance(entry, dict) else {} for entry in channels]
    while len(channels) <= channel:
        channels.append({"ison": False})
    return channels


def _apply_turn(turn: str, entry: Dict[str, Any]) -> bool:
    if turn == "toggle":
        return not (entry.get("ison") is True)
    return turn == "on"
