"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes the lookup server can put on the wire, with their reason
phrases.

    HTTP/1.1 429 Too Many Requests
             ─── ─────────────────
              │          │
              │          └── reason phrase (informational, RFC 7230)
              └───────────── status code (what clients branch on)

The first group is what the lookup handler answers with. The second group
is only produced by the transport when a request never reaches the handler
(malformed bytes, timeouts, overload, crashes).

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes.

    An IntEnum, so members compare equal to plain ints:

        >>> HTTPStatus.TOO_MANY_REQUESTS == 429
        True
        >>> HTTPStatus.TOO_MANY_REQUESTS.phrase
        'Too Many Requests'
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOOKUP OUTCOMES
    # ─────────────────────────────────────────────────────────────────────
    OK = 200                            # Item found
    FORBIDDEN = 403                     # Authorization header did not match
    NOT_FOUND = 404                     # Unknown route, or no item id
    TOO_MANY_REQUESTS = 429             # Concurrency limit reached

    # ─────────────────────────────────────────────────────────────────────
    # TRANSPORT ERRORS
    # ─────────────────────────────────────────────────────────────────────
    BAD_REQUEST = 400                   # Unparseable request
    METHOD_NOT_ALLOWED = 405            # Unknown method token
    REQUEST_TIMEOUT = 408               # Client never finished sending
    PAYLOAD_TOO_LARGE = 413             # Request exceeds max_request_size
    INTERNAL_SERVER_ERROR = 500         # Handler raised
    SERVICE_UNAVAILABLE = 503           # Worker queue full
    HTTP_VERSION_NOT_SUPPORTED = 505    # Not HTTP/1.0 or HTTP/1.1

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.TOO_MANY_REQUESTS: "Too Many Requests",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
