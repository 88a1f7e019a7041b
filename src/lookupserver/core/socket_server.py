"""
Listening socket and accept loop.

Every accepted client becomes a Connection handed to a callback; this
module never reads HTTP itself. accept() times out once a second so the
loop notices shutdown() even when nobody connects.

SIGINT and SIGTERM call shutdown(). Python only lets the main thread
install signal handlers, so a server started from a background thread
(as in the tests) leaves them alone.
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Bind, listen, accept, hand off.

        server = SocketServer(config)
        server.start(on_connection)   # blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_port: Optional[int] = None
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def address(self) -> Tuple[str, int]:
        """(host, port); after start() the port is the one actually bound."""
        return (self.config.host, self._bound_port or self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        # Restarting right after a stop must not hit TIME_WAIT sockets
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, leaving signal handlers alone")
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(
        self,
        connection_handler: Callable[[Connection], None],
        on_listening: Optional[Callable[[], None]] = None,
    ):
        """
        Bind, listen and run the accept loop until shutdown().

        Args:
            connection_handler: Called with every accepted Connection; it
                                must only queue the connection.
            on_listening: Called once the port is bound.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_port = self._socket.getsockname()[1]

        self._running = True
        self._setup_signals()

        logger.info(f"Server listening on {self.config.host}:{self._bound_port}")
        if on_listening is not None:
            on_listening()
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            logger.debug(f"[{conn.id}] Accepted {client_address[0]}:{client_address[1]}")
            connection_handler(conn)

    def shutdown(self):
        """Ask the accept loop to stop. Safe from any thread; idempotent."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening; False on timeout."""
        return self._ready_event.wait(timeout)
