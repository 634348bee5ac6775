"""
=============================================================================
APPLICATION FACTORY
=============================================================================

Builds a ready-to-run server with the user API mounted:

    GET  /health       HealthHandler.handle
    POST /users        UserHandler.create
    GET  /users/:id    UserHandler.retrieve

One UserStore is created per application and shared by every worker
thread. Pass your own to pre-seed it or to inspect it from tests:

    store = UserStore()
    server = create_app(ServerConfig(port=0), store=store)
    threading.Thread(target=server.run, daemon=True).start()
    server.wait_until_ready(5)
    ...
    assert len(store) == 1

=============================================================================
"""

from typing import Optional

from .config import ServerConfig
from .handlers import HealthHandler, UserHandler
from .middleware import LoggingMiddleware
from .server import HTTPServer
from .store import UserStore


def create_app(
    config: Optional[ServerConfig] = None,
    store: Optional[UserStore] = None,
) -> HTTPServer:
    config = config or ServerConfig()
    store = store if store is not None else UserStore()

    server = HTTPServer(config)
    server.use(LoggingMiddleware(log_format=config.log_format))

    health = HealthHandler()
    users = UserHandler(store)

    server.get("/health", name="health")(health.handle)
    server.post("/users", name="create_user")(users.create)
    server.get("/users/:id", name="get_user")(users.retrieve)

    return server
