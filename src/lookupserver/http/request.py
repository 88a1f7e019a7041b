"""
HTTP request parsing.

Turns the raw bytes read by Connection into an HTTPRequest:

    b"GET /items/123 HTTP/1.1\r\n"          ──►   HTTPRequest(
    b"Authorization: s3cret\r\n"                     method="GET",
    b"\r\n"                                          path="/items/123",
                                                     headers={"authorization": "s3cret"},
                                                   )

The path is taken from the request target as sent: the query string is
cut off, nothing is percent-decoded, so "/items%2F123" is one segment.

Header names are stored lower-cased. Values keep their text verbatim
apart from surrounding whitespace. For headers that may appear only once
(Authorization among them) the first occurrence wins; other repeated
headers are joined with ", ".
"""

from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import urlsplit
import re


class HTTPParseError(Exception):
    """
    Raised when a request cannot be parsed.

    Carries the status code the transport should answer with:

        400 Bad Request                - malformed syntax
        405 Method Not Allowed         - unknown method token
        413 Payload Too Large          - over max_request_size
        505 HTTP Version Not Supported - not HTTP/1.0 or HTTP/1.1
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method: Request method ("GET", ...).
        path: Path of the request target, without the query string and
              not percent-decoded.
        version: "HTTP/1.0" or "HTTP/1.1".
        headers: Header values keyed by lower-cased name.
        body: Raw body bytes (Content-Length delimited).
        client_address: (ip, port) of the peer.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    client_address: tuple[str, int] = ("", 0)

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the client wants the connection kept open.

        HTTP/1.1 defaults to keep-alive unless "Connection: close";
        HTTP/1.0 defaults to close unless "Connection: keep-alive".
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RequestParser:
    """
    Parses raw HTTP/1.x request bytes into HTTPRequest objects.

    Steps:
        1. Size check                        → 413
        2. Split headers / body at \\r\\n\\r\\n  → 400 if missing
        3. Request line  METHOD SP URI SP VERSION
                                             → 400 / 405 / 505
        4. Header lines  "Name: value"
        5. Body, exactly Content-Length bytes
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH",
        "HEAD", "OPTIONS", "TRACE", "CONNECT",
    }

    SINGLE_VALUE_HEADERS = {
        "authorization", "content-length", "content-type", "host", "user-agent",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        """
        Args:
            max_request_size: Largest request accepted, in bytes.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Request bytes as returned by Connection.read_request().
            client_address: Peer (ip, port), kept for access logs.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")

        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str]:
        """
        Parse "GET /items/123?x=1 HTTP/1.1".

        Returns:
            (method, path, version)
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        path = urlsplit(uri).path or "/"
        return method, path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse header lines into a dict keyed by lower-cased name.

        Obsolete line folding (a line starting with whitespace) continues
        the previous header. Lines that are not "Name: value" are skipped.
        """
        headers: Dict[str, str] = {}
        current_name = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                current_name = None
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()

            if name not in headers:
                headers[name] = value
                current_name = name
            elif name in self.SINGLE_VALUE_HEADERS:
                current_name = None  # ignored duplicate, so are its folds
            else:
                headers[name] += ", " + value
                current_name = name

        return headers
