"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to a handler function.

    GET  /health       → HealthHandler.handle
    POST /users        → UserHandler.create
    GET  /users/:id    → UserHandler.retrieve

Patterns are made of static segments and ``:name`` segments. A ``:name``
segment matches exactly one path segment and is handed to the handler in
``request.path_params``:

    pattern "/users/:id"  +  path "/users/42"  →  {"id": "42"}

Each pattern is compiled to an anchored regex once, at registration:

    "/users/:id"  →  ^/users/(?P<id>[^/]+)$

Matching is first-registered, first-matched. When nothing matches the
router tells 404 (no pattern matches the path) apart from 405 (a pattern
matches but not for this method).

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .request import HTTPRequest
from .response import HTTPResponse, method_not_allowed, not_found


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A URL pattern bound to a handler for one method (or any, if None)."""

    path: str
    method: Optional[str]
    handler: Handler
    name: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


class Router:
    """
    Decorator-style router.

        router = Router()

        @router.get("/users/:id")
        def get_user(request):
            return ok({"id": request.path_params["id"]})

    ``handle`` is the terminal handler of the middleware pipeline.
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """Register ``handler`` for ``path`` (and ``method``; None means any)."""
        pattern, param_names = self._compile_pattern(path)
        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            meta=meta,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple[re.Pattern, List[str]]:
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue
            regex_parts.append("/")
            if segment.startswith(":"):
                param_name = segment[1:]
                if not param_name.isidentifier():
                    raise ValueError(f"Invalid path parameter {segment!r} in {path!r}")
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # root path
        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    @staticmethod
    def _normalize(path: str) -> str:
        # "/users/" and "/users" are the same resource
        return "/" + path.strip("/") if path != "/" else "/"

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        path = self._normalize(path)
        method = method.upper()

        for route in self._routes:
            if route.method and route.method != method:
                continue
            found = route._pattern.match(path)
            if found:
                return RouteMatch(route=route, params=found.groupdict())
        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods registered for ``path``; feeds the 405 Allow header."""
        path = self._normalize(path)
        methods = set()
        for route in self._routes:
            if route._pattern.match(path):
                if route.method is None:
                    return ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]
                methods.add(route.method)
        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """Dispatch ``request`` to its handler, or answer 404/405."""
        found = self.match(request.method, request.path)
        if found:
            request.path_params = found.params
            return found.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)
        return not_found(f"No route matches {request.path}")

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
        **meta: Any
    ) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name, **meta)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name, **meta)

    def post(self, path: str, name: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name, **meta)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        return list(self._routes)

    def describe(self) -> List[str]:
        """
        One line per route, for the startup banner:

            GET      /health
            POST     /users
            GET      /users/:id
        """
        return [f"{route.method or 'ANY':8} {route.path}" for route in self._routes]
