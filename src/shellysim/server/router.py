"""Request router for the device simulator.

Maps ``/devices/<name>[/<rest>]`` to a device descriptor and hands the
device-relative ``<rest>`` to the dispatcher for the device's protocol
generation.

Example:
    >>> router = Router(registry, store)
    >>> response = router.handle(HTTPRequest("GET", "/devices/kitchen/rpc/Switch.GetStatus"))
    >>> response.status
    200
"""

import logging
import time
from typing import Optional, Tuple

from shellysim.observability.metrics import MetricsRegistry
from shellysim.server.exceptions import DeviceNotFoundError, RoutingError
from shellysim.server.gen1_dispatcher import Gen1Dispatcher
from shellysim.server.gen2_dispatcher import Gen2Dispatcher
from shellysim.server.http_handler import HTTPRequest, HTTPResponse
from shellysim.server.models import Generation
from shellysim.server.registry import DeviceRegistry
from shellysim.server.state_store import StateStore

logger = logging.getLogger(__name__)

DEVICES_PREFIX = "/devices/"


def split_device_path(path: str) -> Tuple[str, str]:
    """Split a request path into device name and device-relative path.

    Args:
        path: Percent-decoded request path.

    Returns:
        Tuple of (device name, rest). ``rest`` keeps its leading slash and
        is empty when the path ends at the device name.

    Raises:
        RoutingError: If the path is not under ``/devices/`` or names no
            device.

    Example:
        >>> split_device_path("/devices/Kitchen Light/rpc")
        ('Kitchen Light', '/rpc')
    """
    if not path.startswith(DEVICES_PREFIX):
        raise RoutingError(path, "not a device path")
    name, sep, rest = path[len(DEVICES_PREFIX):].partition("/")
    if not name:
        raise RoutingError(path, "missing device name")
    return name, sep + rest


class Router:
    """Resolve devices and select the dispatcher for their generation.

    Routing failures answer 404. Any other exception escaping a dispatcher
    is logged and answered with 500 so the serving thread survives.
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        store: StateStore,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self._registry = registry
        self._metrics = metrics
        self._gen1 = Gen1Dispatcher(store)
        self._gen2 = Gen2Dispatcher(store, metrics=metrics)

    @property
    def registry(self) -> DeviceRegistry:
        """Get the device registry."""
        return self._registry

    @property
    def rpc(self) -> Gen2Dispatcher:
        """Get the current-generation dispatcher."""
        return self._gen2

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Route one request to its device.

        Args:
            request: Request with an absolute, percent-decoded path.

        Returns:
            Response to send; never raises.
        """
        started = time.perf_counter()
        generation = "none"
        endpoint = "unknown"

        try:
            name, rest = split_device_path(request.path)
            device = self._registry.lookup(name)
            if device is None:
                raise DeviceNotFoundError(request.path, name)
            if not rest or rest == "/":
                raise RoutingError(request.path, "missing endpoint")

            dispatcher = self._gen1 if device.generation.effective == Generation.GEN1 else self._gen2
            generation = dispatcher.generation
            endpoint = dispatcher.endpoint_label(rest)
            response = dispatcher.dispatch(device, request.with_path(rest))

        except RoutingError as e:
            logger.debug("Routing failed for %s %s: %s", request.method, request.path, e.reason)
            response = HTTPResponse.not_found(e.reason)

        except Exception:
            logger.exception("Unhandled error for %s %s", request.method, request.path)
            response = HTTPResponse.internal_error()

        if self._metrics is not None:
            self._metrics.record_request(
                generation, endpoint, int(response.status), time.perf_counter() - started
            )
        return response
