"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows what HTTP/1.1 looks like, and nothing that knows
about sockets or users:

    request.py       raw bytes → HTTPRequest
    response.py      HTTPResponse → raw bytes, plus ok()/created()/... helpers
    router.py        (method, path) → handler
    status_codes.py  HTTPStatus enum

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,                  # 200 OK
    created,             # 201 Created
    error_response,      # any status, {"error": ...}
    bad_request,         # 400 Bad Request
    not_found,           # 404 Not Found
    method_not_allowed,  # 405 Method Not Allowed
    internal_error,      # 500 Internal Server Error
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus

__all__ = [
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",

    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "error_response",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "internal_error",

    "Router",
    "Route",
    "RouteMatch",

    "HTTPStatus",
]
