"""HTTP listener for the device simulator.

The listener is a ThreadingHTTPServer that serves every request on its own
daemon thread. Request handling is delegated to the Router; the only path
served outside ``/devices/`` is ``/metrics``.
"""

import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple

from shellysim.observability.metrics import MetricsRegistry
from shellysim.server.http_handler import HTTPRequest, HTTPResponse
from shellysim.server.router import Router

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"

# Upper bound for request bodies; larger bodies are rejected with 413
MAX_BODY_SIZE = 1024 * 1024


class SimulatorHTTPServer(ThreadingHTTPServer):
    """Threading HTTP server carrying the simulator's router."""

    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = 128

    def __init__(
        self,
        address: Tuple[str, int],
        router: Router,
        metrics: Optional[MetricsRegistry] = None,
        request_log: bool = False,
    ) -> None:
        self.router = router
        self.metrics = metrics
        self.request_log = request_log
        super().__init__(address, SimulatorRequestHandler)


class SimulatorRequestHandler(BaseHTTPRequestHandler):
    """Adapt BaseHTTPRequestHandler calls to Router requests."""

    server: SimulatorHTTPServer
    protocol_version = "HTTP/1.1"
    server_version = "ShellySim/1.0"

    def do_GET(self) -> None:
        self._handle()

    def do_POST(self) -> None:
        self._handle()

    def _handle(self) -> None:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            length = -1
        if length < 0 or length > MAX_BODY_SIZE:
            status = HTTPStatus.BAD_REQUEST if length < 0 else HTTPStatus.REQUEST_ENTITY_TOO_LARGE
            self.close_connection = True
            self._send(HTTPResponse.json({"error": "bad content length"}, status))
            return

        body = self.rfile.read(length) if length else b""
        request = HTTPRequest.from_target(self.command, self.path, dict(self.headers.items()), body)

        if request.path == METRICS_PATH and self.server.metrics is not None:
            metrics = self.server.metrics
            response = HTTPResponse(raw=metrics.exposition(), content_type=metrics.content_type)
        else:
            response = self.server.router.handle(request)

        self._send(response)

    def _send(self, response: HTTPResponse) -> None:
        data = response.to_bytes()
        self.send_response(response.status)
        self.send_header("Content-Type", response.content_type)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_request(self, code="-", size="-") -> None:
        level = logging.INFO if self.server.request_log else logging.DEBUG
        if logger.isEnabledFor(level):
            logger.log(level, "%s %s -> %s", self.command, self.path, getattr(code, "value", code))

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)
