"""
=============================================================================
USERAPI - In-Memory User Management over HTTP/1.1
=============================================================================

A small JSON service that creates users and looks them up by id, served by
a threaded HTTP/1.1 server written on raw sockets.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST LIFECYCLE                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   client ──TCP──► SocketServer ──► ThreadPool worker                │
    │                                         │                           │
    │                          RequestParser ─┤                           │
    │                      LoggingMiddleware ─┤                           │
    │                                 Router ─┤                           │
    │                                         ▼                           │
    │                   UserHandler ──► UserStore (read/write lock)       │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    userapi/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m userapi)
    ├── app.py               # create_app(): routes + store wiring
    ├── server.py            # HTTPServer: connection loop, error mapping
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listening socket, accept loop, signals
    │   ├── connection.py    # Buffered reads, keep-alive
    │   ├── thread_pool.py   # Bounded worker pool
    │   └── rwlock.py        # Writer-preferring read/write lock
    ├── http/
    │   ├── request.py       # HTTP request parsing
    │   ├── response.py      # HTTP response building
    │   ├── router.py        # Method + path routing, :param segments
    │   └── status_codes.py  # HTTPStatus enum
    ├── middleware/
    │   ├── base.py          # Middleware ABC, pipeline
    │   └── logging.py       # Access log, X-Request-ID
    ├── handlers/
    │   ├── health.py        # GET /health
    │   └── users.py         # POST /users, GET /users/:id
    └── store/
        ├── models.py        # User, NewUser
        └── user_store.py    # Thread-safe in-memory UserStore

=============================================================================
QUICK START
=============================================================================

    from userapi import ServerConfig, create_app

    server = create_app(ServerConfig(port=8080))
    server.run()

    $ curl -X POST localhost:8080/users -d '{"name":"Ann","email":"a@x.io"}'
    {"id": 1}
    $ curl localhost:8080/users/1
    {"id": 1, "name": "Ann", "email": "a@x.io", "created_at": "..."}

=============================================================================
"""

__version__ = "1.0.0"

from .app import create_app
from .config import ServerConfig
from .server import HTTPServer
from .store import NewUser, User, UserStore

__all__ = [
    "HTTPServer",
    "NewUser",
    "ServerConfig",
    "User",
    "UserStore",
    "create_app",
    "__version__",
]
