"""
=============================================================================
MIDDLEWARE
=============================================================================

A middleware sees every request before the router and every response
after it:

    request ──► Logging ──► ... ──► Router ──► handler
    response ◄── Logging ◄── ... ◄── Router ◄──┘

Each one is a callable ``(request, next) -> response``. Calling ``next``
continues the chain; returning without calling it short-circuits.

    class Timing(Middleware):
        def __call__(self, request, next):
            start = time.time()
            response = next(request)
            response.set_header("X-Elapsed", f"{time.time() - start:.3f}")
            return response

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """Base class for request/response middleware."""

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """Handle ``request``, normally by returning ``next(request)``."""

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered middleware list. The first one added is the outermost layer.

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(router.handle)
        response = handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around ``handler``.

        Wrapping runs back to front so that, for [A, B], the result is
        A(B(handler)).
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._middleware)
