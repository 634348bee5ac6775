"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables in one dataclass, validated once at startup.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHERE SETTINGS COME FROM                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │   1. Command-line flags      python -m userapi --port 3000          │
    │   2. Environment variables   USERAPI_PORT=3000 python -m userapi    │
    │   3. Defaults below                                                 │
    └─────────────────────────────────────────────────────────────────────┘

The CLI starts from ``ServerConfig.from_env()`` and overrides whatever
flags were given, so flags beat environment beats defaults.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the user API server.

    Development:
        ServerConfig(log_level="DEBUG")

    Container:
        ServerConfig(host="0.0.0.0", max_workers=32, log_format="json")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Bind address. "0.0.0.0" listens on every interface."""

    port: int = 8080
    """Bind port. 0 asks the OS for a free port (SocketServer writes the real one back)."""

    backlog: int = 128
    """Pending-connection queue length passed to listen()."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """Seconds to wait for the first request on a connection."""

    # ─────────────────────────────────────────────────────────────────────
    # HTTP
    # ─────────────────────────────────────────────────────────────────────

    keep_alive: bool = True
    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 1024 * 1024
    """Largest accepted request (headers + body). User records are tiny."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16
    queue_size: int = 100
    """Connections allowed to wait for a worker before new ones get 503."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    log_format: str = "text"
    """Access log format: "text" for people, "json" for log shippers."""

    server_name: str = "userapi/1.0"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a config from environment variables.

            USERAPI_HOST        bind address       (default 127.0.0.1)
            USERAPI_PORT        bind port          (default 8080)
            USERAPI_WORKERS     max worker threads (default 16)
            USERAPI_TIMEOUT     read timeout, s    (default 30)
            USERAPI_LOG_LEVEL   DEBUG/INFO/...     (default INFO)
            USERAPI_LOG_FORMAT  text/json          (default text)

        Raises:
            ValueError: If a numeric variable does not parse.
        """
        defaults = cls()
        max_workers = int(os.getenv("USERAPI_WORKERS", str(defaults.max_workers)))
        return cls(
            host=os.getenv("USERAPI_HOST", defaults.host),
            port=int(os.getenv("USERAPI_PORT", str(defaults.port))),
            min_workers=min(defaults.min_workers, max_workers),
            max_workers=max_workers,
            timeout=float(os.getenv("USERAPI_TIMEOUT", str(defaults.timeout))),
            log_level=os.getenv("USERAPI_LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("USERAPI_LOG_FORMAT", defaults.log_format).lower(),
        )

    def validate(self) -> None:
        """
        Raise ValueError on the first bad setting.

        Called from HTTPServer.__init__ so a typo in the environment stops
        the process at startup, not on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}")
