"""
pytest configuration and fixtures.
"""

import socket
import threading
from datetime import datetime, timedelta, timezone
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from userapi import HTTPServer, ServerConfig, UserStore, create_app


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request for one user."""
    return (
        b"GET /users/1?verbose=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request creating a user."""
    body = b'{"name": "Ann", "email": "ann@x.com"}'
    return (
        b"POST /users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + b"Content-Length: %d\r\n" % len(body)
        + b"Connection: close\r\n"
        + b"\r\n"
    ) + body


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class FixedClock:
    """Clock for UserStore that advances one second per call."""

    def __init__(self, start: datetime = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store() -> UserStore:
    return UserStore()


class LiveServer:
    """Runs an HTTPServer on a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.stop()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def live_server(config: ServerConfig, store: UserStore) -> Generator[LiveServer, None, None]:
    """The full user API on a free port, backed by the ``store`` fixture."""
    live = LiveServer(create_app(config, store=store))
    live.start()

    yield live

    live.stop()
