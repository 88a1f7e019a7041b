"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Bytes in, bytes out. Nothing here knows about lookups.

    request.py       raw bytes ──► HTTPRequest      (RequestParser)
    response.py      HTTPResponse ──► raw bytes     (ResponseBuilder)
    status_codes.py  HTTPStatus enum with reason phrases

Message format (RFC 7230):

    GET /items/123 HTTP/1.1\r\n          HTTP/1.1 200 OK\r\n
    Authorization: s3cret\r\n            Content-Type: text/json\r\n
    \r\n                                 Content-Length: 34\r\n
                                         \r\n
                                         {"result":"Item is in inventory."}

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError
from .response import (
    HTTPResponse,
    ResponseBuilder,
    error_response,
    format_http_date,
)
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "HTTPResponse",
    "ResponseBuilder",
    "error_response",
    "format_http_date",
    "HTTPStatus",
]
