"""
Transport plumbing: sockets, connections and worker threads.

    socket_server.py  listening socket + accept loop
    connection.py     one client socket, buffered reads and writes
    thread_pool.py    workers that process connections concurrently
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
