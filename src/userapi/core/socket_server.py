"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. Every accepted client is
wrapped in a Connection and handed to a callback (the HTTP server, which
queues it on the thread pool).

    socket() → setsockopt() → bind() → listen() → accept() loop
                                │
                                └── OSError here is fatal: logged, re-raised

accept() runs with a 1 second timeout so the loop notices shutdown()
within a second even when no client connects.

SIGINT and SIGTERM are turned into a graceful shutdown when the server
runs on the main thread (Python only delivers signals there; tests run
the server on a background thread and stop it with shutdown()).

=============================================================================
"""

import logging
import signal
import socket
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP server.

    Usage:
        server = SocketServer(config)
        server.start(handle_connection)   # blocks until shutdown()
    """

    ACCEPT_POLL_INTERVAL = 1.0

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._listening = threading.Event()
        self._stopped = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port). After binding port 0 this is the real port."""
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        # Responses are written in one sendall(); don't let Nagle hold them
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        sock.settimeout(self.ACCEPT_POLL_INTERVAL)
        return sock

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.shutdown()

        for sig in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. Blocks until shutdown().

        Raises:
            OSError: If the address cannot be bound (port in use,
                     permission denied). Nothing is running at that
                     point, so the caller should treat it as fatal.
        """
        self._socket = self._create_socket()
        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self.config.port = self._socket.getsockname()[1]
        self._socket.listen(self.config.backlog)
        self._running = True
        self._stopped.clear()
        self._setup_signals()
        self._listening.set()

        logger.info(f"Listening on {self.config.host}:{self.config.port}")

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

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                keep_alive_timeout=self.config.keep_alive_timeout,
                max_request_size=self.config.max_request_size,
            )
            connection_handler(conn)

    def shutdown(self):
        """Ask the accept loop to stop. Safe from any thread, idempotent."""
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        self._listening.clear()
        self._stopped.set()
        logger.info("Socket server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is bound and listening. False on timeout."""
        return self._listening.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop has exited. False on timeout."""
        return self._stopped.wait(timeout)
