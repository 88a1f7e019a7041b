"""
HTTP response building.

HTTPResponse holds a status, headers and body; to_bytes() serializes it
for Connection.send_response(). Content-Length, Date and Server are filled
in at serialization time unless the response already set them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any
import json

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "lookup-server/1.0"


@dataclass
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Build these with ResponseBuilder rather than by hand.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a header; returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize status line, headers and body.

        Args:
            server_name: Value for the Server header if not already set.

        Returns:
            Bytes ready for socket.sendall().
        """
        response_headers = dict(self.headers)
        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json({"result": "Item is in inventory."}, content_type="text/json")
            .build())

    Every method except build() returns the builder.
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def json(
        self,
        data: Any,
        content_type: str = "application/json; charset=utf-8",
    ) -> "ResponseBuilder":
        """
        Set a JSON body.

        The document is written compactly ({"a":1}, no spaces).

        Args:
            data: Any JSON-serializable value.
            content_type: Content-Type to send with it.
        """
        self._body = json.dumps(
            data, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a UTC datetime as an HTTP-date (RFC 7231).

    Example: "Mon, 19 Oct 2026 12:00:00 GMT". Built by hand because
    strftime's %a/%b follow the process locale.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def error_response(
    status: HTTPStatus,
    message: str,
    content_type: str = "text/json",
) -> HTTPResponse:
    """
    Response for failures raised by the transport itself (parse errors,
    timeouts, overload, handler crashes), never by lookup outcomes.
    """
    return (ResponseBuilder()
        .status(status)
        .json({"error": message}, content_type=content_type)
        .build())
