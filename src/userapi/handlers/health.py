"""
=============================================================================
HEALTH CHECK
=============================================================================

    GET /health   200 text/plain   "server is okely dokely!"

A liveness probe answers one question: is the process up and serving
requests? So the handler touches nothing: no store, no locks, no I/O.
If a worker thread can run it, the answer is yes.

It always returns the same body, sends ``Cache-Control: no-store`` so no
proxy answers on the server's behalf, and has no side effects.

=============================================================================
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder
from ..http.status_codes import HTTPStatus


OPERATIONAL_MESSAGE = "server is okely dokely!"


class HealthHandler:
    """Fixed-response liveness endpoint."""

    def __init__(self, message: str = OPERATIONAL_MESSAGE):
        self.message = message

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text(self.message)
            .no_cache()
            .build())
