"""Current-generation (JSON-RPC style) dispatcher.

Two surfaces share one method table:

- ``POST /rpc`` with an ``{id, method, params}`` envelope, answered with
  ``{id, result}`` or ``{id, error: {code, message}}``.
- ``GET|POST /rpc/<Namespace>.<Verb>`` compatibility paths that skip the
  envelope. Parameters come from the query string and, when present, a
  JSON object body (body members win). The bare result is returned.

Example:
    >>> dispatcher = Gen2Dispatcher(store)
    >>> request = HTTPRequest("POST", "/rpc", body=b'{"id": 7, "method": "Switch.Toggle"}')
    >>> dispatcher.dispatch(device, request).payload
    {'id': 7, 'result': {'was_on': False}}
"""

import copy
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from shellysim.observability.metrics import MetricsRegistry
from shellysim.server.exceptions import InvalidRequestError, MethodNotFoundError, RoutingError, RPCError
from shellysim.server.handlers import METHOD_TABLE, HandlerContext, MethodSpec, Params
from shellysim.server.http_handler import MALFORMED, HTTPRequest, HTTPResponse, query_params
from shellysim.server.models import DeviceDescriptor
from shellysim.server.state_store import StateStore

logger = logging.getLogger(__name__)

RPC_PATH = "/rpc"
COMPAT_PREFIX = RPC_PATH + "/"


class Gen2Dispatcher:
    """Dispatcher for devices speaking the current-generation protocol.

    Thread Safety:
        Stateless apart from the shared state store; safe to call from
        every request thread.
    """

    generation = "gen2"

    def __init__(
        self,
        store: StateStore,
        methods: Optional[Mapping[str, MethodSpec]] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            store: State store shared by all request threads.
            methods: Method table. Defaults to the full handler table.
            metrics: Optional metrics registry for RPC error counts.
        """
        self._store = store
        self._methods = METHOD_TABLE if methods is None else methods
        self._metrics = metrics

    @property
    def methods(self) -> Mapping[str, MethodSpec]:
        """Get the method table."""
        return self._methods

    def endpoint_label(self, path: str) -> str:
        """Classify a device-relative path for request metrics."""
        if path == RPC_PATH:
            return "rpc"
        if path.startswith(COMPAT_PREFIX):
            return "rpc_compat"
        return "unknown"

    def dispatch(self, device: DeviceDescriptor, request: HTTPRequest) -> HTTPResponse:
        """Handle a request addressed to one device.

        Args:
            device: Resolved device descriptor.
            request: Request whose path is relative to the device.

        Returns:
            Response to send.

        Raises:
            RoutingError: If the path is not an RPC path or names an
                unknown method on the compatibility surface.
        """
        if request.path == RPC_PATH:
            return self._handle_envelope(device, request)
        if request.path.startswith(COMPAT_PREFIX):
            return self._handle_compat(device, request, request.path[len(COMPAT_PREFIX):])
        raise RoutingError(request.path, "unknown endpoint")

    def call(self, device: DeviceDescriptor, method: str, params: Optional[Params] = None) -> Any:
        """Invoke one method by name.

        Raises:
            MethodNotFoundError: If the method is not in the table.
            RPCError: If the handler fails with a structured error.
        """
        spec = self._methods.get(method)
        if spec is None:
            raise MethodNotFoundError(method)
        ctx = HandlerContext(device=device, store=self._store, methods=self._methods)
        return spec.handler(ctx, params or {})

    # =========================================================================
    # Envelope Surface
    # =========================================================================

    def _handle_envelope(self, device: DeviceDescriptor, request: HTTPRequest) -> HTTPResponse:
        try:
            request_id, method, params = decode_envelope(request.json_body())
        except InvalidRequestError as e:
            logger.debug("Invalid RPC envelope for %s: %s", device.name, request.body[:200])
            return self._error_response(0, "", e)

        logger.debug("RPC call: device=%s, id=%d, method=%s", device.name, request_id, method)
        try:
            result = self.call(device, method, params)
        except RPCError as e:
            return self._error_response(request_id, method, e)

        return HTTPResponse.json({"id": request_id, "result": result})

    def _error_response(self, request_id: int, method: str, error: RPCError) -> HTTPResponse:
        if self._metrics is not None:
            self._metrics.record_rpc_error(method, error.code)
        if isinstance(error, MethodNotFoundError):
            logger.info("Unknown RPC method %r", error.method)
        return HTTPResponse.json(
            {"id": request_id, "error": error.to_dict()},
            status=error.status_code,
        )

    # =========================================================================
    # Compatibility Surface
    # =========================================================================

    def _handle_compat(self, device: DeviceDescriptor, request: HTTPRequest, method: str) -> HTTPResponse:
        spec = self._methods.get(method)
        if spec is None:
            raise RoutingError(request.path, "unknown method")

        body = request.json_body()
        if body is MALFORMED or (body is not None and not isinstance(body, dict)):
            if spec.malformed_result is not None:
                logger.debug("Malformed body for %s on %s; using default response", method, device.name)
                return HTTPResponse.json(copy.deepcopy(spec.malformed_result))
            body = None

        params = query_params(request)
        if body:
            params.update(body)

        logger.debug("RPC compat call: device=%s, method=%s", device.name, method)
        try:
            result = self.call(device, method, params)
        except RPCError as e:
            if self._metrics is not None:
                self._metrics.record_rpc_error(method, e.code)
            return HTTPResponse.json(e.to_dict(), status=e.status_code)

        return HTTPResponse.json(result)


def decode_envelope(body: Any) -> Tuple[int, str, Dict[str, Any]]:
    """Validate a decoded request envelope.

    Args:
        body: Decoded JSON request body.

    Returns:
        Tuple of (id, method, params). A missing id reads as 0, a missing
        method as the empty string (which no method matches) and missing or
        null params as an empty object.

    Raises:
        InvalidRequestError: If the body is not an object or a member has
            the wrong type.
    """
    if not isinstance(body, dict):
        raise InvalidRequestError()

    request_id = body.get("id", 0)
    if request_id is None:
        request_id = 0
    if isinstance(request_id, bool) or not isinstance(request_id, int):
        raise InvalidRequestError()

    method = body.get("method", "")
    if not isinstance(method, str):
        raise InvalidRequestError()

    params = body.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise InvalidRequestError()

    return request_id, method, params

