"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌──────────────┐   Connection   ┌──────────────┐
    │ SocketServer │ ─────────────► │  ThreadPool  │
    └──────────────┘                └──────┬───────┘
                                           │ worker thread
                                           ▼
                      read_request() → RequestParser.parse()
                                           │
                                           ▼
                       MiddlewarePipeline → Router → handler
                                           │
                                           ▼
                      HTTPResponse.to_bytes() → send_response()
                                           │
                              keep-alive? ─┴─ loop, or close

=============================================================================
ERROR MAPPING
=============================================================================

    malformed HTTP (HTTPParseError)      → its status (400/405/505), close
    request over max_request_size        → 413, close
    first request never arrives          → 408, close
    handler raises                       → 500, logged with traceback;
                                           the connection stays usable
    worker queue full                    → 503, close

Handler-level errors (bad user body, unknown id) never get here: the
handlers turn them into 400/404 responses themselves.

=============================================================================
"""

import logging
from typing import Callable, Optional

from .config import ServerConfig
from .core import (
    Connection,
    ConnectionState,
    RequestTooLargeError,
    SocketServer,
    ThreadPool,
)
from .http import (
    HTTPParseError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    ResponseBuilder,
    Router,
    internal_error,
)
from .middleware import Middleware, MiddlewarePipeline


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Threaded HTTP/1.1 server.

        server = HTTPServer(ServerConfig(port=8080))
        server.use(LoggingMiddleware())

        @server.get("/health")
        def health(request):
            return ok("up")

        server.run()   # blocks until SIGINT/SIGTERM or stop()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._router = Router()
        self._middleware = MiddlewarePipeline()

        # middleware.wrap(router.handle), built lazily
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Append middleware; the first one added runs outermost."""
        self._middleware.add(middleware)
        self._handler = None
        return self

    @property
    def router(self) -> Router:
        return self._router

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def port(self) -> int:
        """Listening port (the real one, if the config asked for port 0)."""
        return self.config.port

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Serve until stopped. Blocks.

        Raises:
            OSError: The listening socket could not be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._running = True
        self._thread_pool.start()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def stop(self):
        """Request shutdown; run() returns once in-flight work drains."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_listening(timeout)

    def print_banner(self):
        print(f"Server starting on http://{self.config.host}:{self.config.port}")
        print(f"Workers: {self.config.min_workers}-{self.config.max_workers} threads")
        print("Routes:")
        for line in self._router.describe():
            print(f"  {line}")
        print("Press Ctrl+C to stop")

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("userapi").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True, timeout=30.0)
        logger.info("Server stopped")

    # =========================================================================
    # REQUEST HANDLING
    # =========================================================================

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one parsed request through middleware and router.

        Exceptions from handlers become 500 responses. Used by the
        connection loop, and directly by tests that don't need sockets.
        """
        if self._handler is None:
            self._handler = self._middleware.wrap(self._router.handle)
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            return internal_error()

    def _handle_connection(self, conn: Connection):
        try:
            submitted = self._thread_pool.submit(self._process_connection, args=(conn,))
        except RuntimeError:
            submitted = False

        if not submitted:
            logger.warning(f"[{conn.id}] No worker available, rejecting connection")
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """Keep-alive loop for one connection (runs on a worker thread)."""
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except RequestTooLargeError as e:
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
                response = self.handle_request(request)

                keep_alive = request.is_keep_alive and self.config.keep_alive
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive", f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break
                if not keep_alive:
                    break
                conn.set_keep_alive()

    def _send_error(self, conn: Connection, status: HTTPStatus, message: str):
        """Error response for failures before a handler ran."""
        response = (ResponseBuilder()
            .status(status)
            .json({"error": message})
            .close_connection()
            .build())
        conn.send_response(response.to_bytes(self.config.server_name))
