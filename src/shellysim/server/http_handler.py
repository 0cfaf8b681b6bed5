"""HTTP request/response messages for the device simulator.

This module holds the transport-neutral request and response types passed
between the listener, the router and the generation dispatchers, plus the
parameter decoding shared by every path-style endpoint.

Example:
    >>> from shellysim.server.http_handler import HTTPRequest, HTTPResponse
    >>> request = HTTPRequest.from_target("GET", "/devices/Kitchen/relay/0?turn=on")
    >>> request.path, request.query
    ('/devices/Kitchen/relay/0', {'turn': 'on'})
    >>> HTTPResponse.json({"ison": True}).to_bytes()
    b'{"ison": true}'
"""

import json
import math
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl, unquote, urlsplit


# =============================================================================
# Constants
# =============================================================================

CONTENT_TYPE_JSON = "application/json"

# Query string spellings accepted for booleans on path-style endpoints
TRUE_WORDS = frozenset({"true", "on", "yes"})
FALSE_WORDS = frozenset({"false", "off", "no"})

# Marker for a request body that is present but not a JSON value
MALFORMED = object()


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class HTTPRequest:
    """Decoded HTTP request.

    Attributes:
        method: HTTP method (GET, POST).
        path: Percent-decoded request path without query string.
        query: Query parameters; the last value wins for repeated names.
        headers: Header mapping with lower-case names.
        body: Raw request body.
    """

    method: str
    path: str
    query: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b"",
    ) -> "HTTPRequest":
        """Build a request from a raw request target (path plus query).

        Args:
            method: HTTP method.
            target: Request target as sent on the request line.
            headers: Request headers.
            body: Request body.

        Returns:
            HTTPRequest with the path percent-decoded and the query parsed.
        """
        parts = urlsplit(target)
        return cls(
            method=method.upper(),
            path=unquote(parts.path),
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
            headers={k.lower(): v for k, v in (headers or {}).items()},
            body=body,
        )

    def with_path(self, path: str) -> "HTTPRequest":
        """Get a copy of this request addressed to a different path."""
        return HTTPRequest(
            method=self.method,
            path=path,
            query=self.query,
            headers=self.headers,
            body=self.body,
        )

    def json_body(self) -> Any:
        """Decode the body as JSON.

        Returns:
            The decoded value, None for an empty body, or ``MALFORMED`` if
            the body is not valid JSON.
        """
        if not self.body.strip():
            return None
        try:
            return json.loads(self.body)
        except (UnicodeDecodeError, ValueError):
            return MALFORMED


@dataclass
class HTTPResponse:
    """HTTP response to send.

    Attributes:
        status: HTTP status code.
        payload: JSON-compatible value, encoded on send. Ignored when
            ``raw`` is set.
        raw: Pre-encoded body (used for the metrics exposition).
        content_type: Content-Type header value.
    """

    status: int = HTTPStatus.OK
    payload: Any = None
    raw: Optional[bytes] = None
    content_type: str = CONTENT_TYPE_JSON

    @classmethod
    def json(cls, payload: Any, status: int = HTTPStatus.OK) -> "HTTPResponse":
        """Create a JSON response."""
        return cls(status=int(status), payload=payload)

    @classmethod
    def not_found(cls, reason: str = "not found") -> "HTTPResponse":
        """Create a 404 response for routing failures."""
        return cls(status=HTTPStatus.NOT_FOUND, payload={"error": reason})

    @classmethod
    def internal_error(cls) -> "HTTPResponse":
        """Create a 500 response for unexpected dispatcher failures."""
        return cls(status=HTTPStatus.INTERNAL_SERVER_ERROR, payload={"error": "internal error"})

    def to_bytes(self) -> bytes:
        """Encode the response body."""
        if self.raw is not None:
            return self.raw
        return json.dumps(self.payload).encode("utf-8")


# =============================================================================
# Parameter Decoding
# =============================================================================


def coerce_query_value(value: str) -> Any:
    """Convert a query string value to the JSON type it most likely encodes.

    Booleans are spelled true/false, on/off or yes/no. Digits always decode
    as numbers so that ``id=1`` stays an id. Anything else stays a string.

    Example:
        >>> coerce_query_value("on"), coerce_query_value("42"), coerce_query_value("x")
        (True, 42, 'x')
    """
    lowered = value.strip().lower()
    if lowered in TRUE_WORDS:
        return True
    if lowered in FALSE_WORDS:
        return False
    try:
        return int(lowered)
    except ValueError:
        pass
    try:
        number = float(lowered)
    except ValueError:
        return value
    return number if math.isfinite(number) else value


def query_params(request: HTTPRequest) -> Dict[str, Any]:
    """Get the query string of a request as typed parameters."""
    return {name: coerce_query_value(value) for name, value in request.query.items()}
