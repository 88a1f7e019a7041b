"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lookupserver import LookupServer, ServerConfig
from lookupserver.http import HTTPRequest


TOKEN = "s3cret"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample lookup GET request."""
    return (
        b"GET /items/123?verbose=1&verbose=2 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Authorization: s3cret\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a body."""
    body = b'{"id": "123"}'
    return (
        b"POST /items HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
        + body
    )


@pytest.fixture
def config() -> ServerConfig:
    """Default test configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        auth_token=TOKEN,
        timeout=5.0,
        log_level="WARNING",
    )


def make_request(
    path: str,
    authorization: Optional[str] = TOKEN,
    method: str = "GET",
) -> HTTPRequest:
    """Build an already-parsed request for handler tests."""
    headers = {"host": "localhost"}
    if authorization is not None:
        headers["authorization"] = authorization
    return HTTPRequest(
        method=method,
        path=path,
        headers=headers,
        client_address=("127.0.0.1", 50000),
    )


class RawResponse:
    """A response read off the socket."""

    def __init__(self, status: int, headers: Dict[str, str], body: bytes):
        self.status = status
        self.headers = headers
        self.body = body

    def __repr__(self) -> str:
        return f"RawResponse({self.status}, {self.body!r})"


def http_get(
    port: int,
    path: str,
    authorization: Optional[str] = TOKEN,
    timeout: float = 10.0,
    method: str = "GET",
) -> RawResponse:
    """
    Send one request with "Connection: close" and read until the server closes.
    """
    lines = [f"{method} {path} HTTP/1.1", "Host: 127.0.0.1", "Connection: close"]
    if authorization is not None:
        lines.append(f"Authorization: {authorization}")
    request = ("\r\n".join(lines) + "\r\n\r\n").encode()

    return send_raw(port, request, timeout=timeout)


def send_raw(port: int, request: bytes, timeout: float = 10.0) -> RawResponse:
    """Send raw bytes and parse whatever comes back."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(request)
        data = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            data += chunk

    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return RawResponse(status, headers, body)


class TestServer:
    """Runs a LookupServer on a background thread."""

    __test__ = False

    def __init__(self, server: LookupServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown(timeout=10.0)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def get(self, path: str, authorization: Optional[str] = TOKEN) -> RawResponse:
        return http_get(self.port, path, authorization)


def start_server(**overrides) -> TestServer:
    values = dict(
        host="127.0.0.1",
        port=0,
        auth_token=TOKEN,
        timeout=5.0,
        log_level="WARNING",
    )
    values.update(overrides)
    test_srv = TestServer(LookupServer(ServerConfig(**values)))
    test_srv.start()
    return test_srv


@pytest.fixture
def test_server() -> Generator[TestServer, None, None]:
    """Lookup server on /items/ with no processing delay."""
    test_srv = start_server()
    yield test_srv
    test_srv.stop()


@pytest.fixture
def slow_server() -> Generator[TestServer, None, None]:
    """Lookup server on /items/ taking 600 ms per admitted request."""
    test_srv = start_server(processing_delay_ms=600)
    yield test_srv
    test_srv.stop()


def concurrent_gets(
    port: int,
    requests: Tuple[Tuple[str, Optional[str]], ...],
) -> list:
    """
    Fire GETs from separate threads at the same moment.

    Returns responses in the order the requests were given.
    """
    results: list = [None] * len(requests)
    barrier = threading.Barrier(len(requests))

    def worker(index: int, path: str, authorization: Optional[str]):
        barrier.wait()
        results[index] = http_get(port, path, authorization)

    threads = [
        threading.Thread(target=worker, args=(i, path, auth))
        for i, (path, auth) in enumerate(requests)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30.0)
    return results
