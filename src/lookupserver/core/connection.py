"""
One accepted client socket, owned by a single worker thread.

read_request() buffers recv() output until a full request (headers plus
Content-Length body) is available and keeps any pipelined surplus for the
next call.

Waiting for a request is done in short polls. Between polls the worker
asks ``should_yield()``; when it returns True and nothing of the next
request has arrived yet, the connection is given up so the worker can
serve queued clients instead of an idle one.

    first request       waits up to config.timeout, then TimeoutError (408)
    keep-alive request  waits up to config.keep_alive_timeout, then closes
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, Optional
import uuid


logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        id: Short random id used to correlate log lines.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    def read_request(
        self,
        should_yield: Optional[Callable[[], bool]] = None,
    ) -> Optional[bytes]:
        """
        Read one complete HTTP request.

        Args:
            should_yield: Polled while no byte of the request has arrived;
                          True gives the connection up.

        Returns:
            The request bytes, or None if the client closed the connection,
            went quiet on a keep-alive connection, or was given up.

        Raises:
            TimeoutError: If the first request never arrives in time.
            ValueError: If the request exceeds max_request_size.
        """
        self.state = ConnectionState.READING

        wait = self.keep_alive_timeout if self.requests_handled > 0 else self.timeout
        deadline = time.monotonic() + wait if wait else None
        self.socket.settimeout(POLL_INTERVAL)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv(deadline, should_yield)
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv(deadline)
                if not chunk:
                    break  # closed mid-body; the parser reports it
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _recv(
        self,
        deadline: Optional[float],
        should_yield: Optional[Callable[[], bool]] = None,
    ) -> bytes:
        """
        recv() in POLL_INTERVAL slices until data, EOF or the deadline.

        Returns b"" on EOF, on an abrupt disconnect, and when the
        connection is given up.

        Raises:
            socket.timeout: When the deadline passes.
        """
        while True:
            try:
                return self.socket.recv(self.buffer_size)
            except socket.timeout:
                if deadline is not None and time.monotonic() >= deadline:
                    raise
                if should_yield is not None and not self._buffer and should_yield():
                    logger.debug(f"[{self.id}] Idle connection given up for queued work")
                    return b""
            except (ConnectionResetError, BrokenPipeError):
                return b""

    def _check_size(self):
        if len(self._buffer) > self.max_request_size:
            raise ValueError(f"Request too large: {len(self._buffer)} bytes")

    def _parse_content_length(self, headers: bytes) -> int:
        """Content-Length to wait for; garbled values count as 0."""
        header_str = headers.decode("utf-8", errors="replace").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(0, int(line.split(":", 1)[1].strip()))
                except ValueError:
                    return 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        Send a whole serialized response.

        Returns:
            True on success, False if the client has gone away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        return True

    def close(self):
        """
        Send FIN, drain what the client still had in flight, then close.

        Draining keeps the kernel from answering late client bytes with a
        RST that could discard the response just sent.
        """
        if self.state == ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.requests_handled} requests")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
