"""
=============================================================================
CORE: SOCKETS, CONNECTIONS, THREADS, LOCKS
=============================================================================

    SocketServer   listening socket + accept loop
    Connection     one client socket, buffered request reads, keep-alive
    ThreadPool     worker threads that process connections
    ReadWriteLock  many readers or one writer (guards the user table)

One connection is handled by one worker thread from start to finish.
Handlers never block on anything but the store's lock.

=============================================================================
"""

from .connection import Connection, ConnectionState, RequestTooLargeError
from .rwlock import ReadWriteLock
from .socket_server import SocketServer
from .thread_pool import ThreadPool

__all__ = [
    "Connection",
    "ConnectionState",
    "RequestTooLargeError",
    "ReadWriteLock",
    "SocketServer",
    "ThreadPool",
]
