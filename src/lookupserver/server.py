"""
=============================================================================
LOOKUP SERVER
=============================================================================

Ties the transport to the lookup handler.

    SocketServer ──accept──► _handle_connection ──submit──► ThreadPool
                                                                │
                                   worker thread: _process_connection
                                                                │
         read_request ──► RequestParser ──► LoggingMiddleware ──► LookupHandler

=============================================================================
WHAT THE TRANSPORT ANSWERS ITSELF
=============================================================================

These never reach the handler and never touch the in-flight counter:

    400/405/413/505   request could not be parsed
    408               client connected but never sent a request
    503               task queue full, or a connection waited too long
                      for a worker
    500               the handler raised (after releasing its slot)

=============================================================================
IDLE CONNECTIONS
=============================================================================

A worker is pinned to its connection while it waits for the next request.
So that idle clients cannot starve new lookups of workers (which would
turn an immediate 429 into a long wait), a worker gives up a connection
with nothing in flight as soon as other connections are queued, and stops
offering keep-alive while the queue is non-empty.

=============================================================================
"""

import logging
import threading
from typing import Optional, Callable

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, error_response,
)
from .lookup import LookupHandler, InFlightCounter
from .middleware import MiddlewarePipeline, LoggingMiddleware


logger = logging.getLogger(__name__)


class LookupServer:
    """
    The lookup test-double server.

    Usage:
        config = ServerConfig(auth_token="s3cret", processing_delay_ms=200)
        server = LookupServer(config)
        server.run()   # blocks until Ctrl+C / SIGTERM / shutdown()

    In tests, run() is started on a background thread and
    wait_until_ready() tells when the (possibly ephemeral) port is bound.
    """

    def __init__(
        self,
        config: ServerConfig,
        handler: Optional[LookupHandler] = None,
        access_log: bool = True,
    ):
        """
        Args:
            config: Server configuration; validated here, before any
                    socket or thread exists.
            handler: Lookup handler to serve. Built from config if omitted.
            access_log: Install LoggingMiddleware in front of the handler.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self.config = config
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self.handler = handler or LookupHandler(self.config)

        self._middleware = MiddlewarePipeline()
        if access_log:
            self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))

        self._handler_chain: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False
        self._stopped = threading.Event()

    @property
    def counter(self) -> InFlightCounter:
        """The handler's in-flight counter."""
        return self.handler.counter

    @property
    def port(self) -> int:
        """Port actually bound (differs from config.port when that is 0)."""
        return self._socket_server.address[1]

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Serve until shutdown() or a termination signal. Blocking.

        Raises:
            OSError: If the port cannot be bound.
        """
        self._setup_logging()
        self._running = True
        self._stopped.clear()

        self._handler_chain = self._middleware.wrap(self.handler)
        self._thread_pool.start()

        try:
            self._socket_server.start(
                self._handle_connection, on_listening=self.log_startup
            )
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound."""
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Stop the server from another thread and wait for run() to return.

        Returns:
            True if the server stopped within ``timeout``.
        """
        self._socket_server.shutdown()
        return self._stopped.wait(timeout)

    def log_startup(self):
        """Announce what the server is listening for."""
        logger.info(
            f"lookup-server listening for .../{self.config.route}/:id on port "
            f"{self.port} requiring authorization token {self.config.auth_token} "
            f"with processing time {self.config.processing_delay_ms}."
        )

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("lookupserver").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(timeout=30.0)
        self._stopped.set()
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Queue a new connection for a worker, or answer 503."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            timeout=self.config.timeout,
            on_drop=self._reject_connection,
        )

        if not submitted:
            logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
            self._reject_connection(conn)

    def _reject_connection(self, conn: Connection):
        self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
        conn.close()

    def _has_backlog(self) -> bool:
        return self._thread_pool.pending > 0

    def _process_connection(self, conn: Connection):
        """
        Serve one connection on a worker thread: read, parse, handle,
        send, and repeat while the connection stays alive.
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request(should_yield=self._has_backlog)
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except ValueError as e:
                    self._send_error(conn, HTTPStatus.PAYLOAD_TOO_LARGE, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    self._send_error(conn, HTTPStatus(e.status_code), str(e))
                    break

                conn.state = ConnectionState.PROCESSING

                try:
                    response = self._handler_chain(request)
                except Exception as e:
                    logger.exception(f"[{conn.id}] Handler error: {e}")
                    response = error_response(
                        HTTPStatus.INTERNAL_SERVER_ERROR,
                        "Internal Server Error",
                        content_type=self.config.content_type,
                    )

                if request.method == "HEAD":
                    response.headers["Content-Length"] = str(len(response.body))
                    response.body = b""

                keep_alive = (
                    request.is_keep_alive
                    and self.config.keep_alive
                    and not self._has_backlog()
                )
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                if not keep_alive:
                    break

                conn.state = ConnectionState.KEEP_ALIVE

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Answer a request that never reached the handler."""
        response = error_response(status, message, content_type=self.config.content_type)
        response.headers["Connection"] = "close"
        conn.send_response(response.to_bytes(self.config.server_name))
