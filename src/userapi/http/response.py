"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds and serializes HTTP/1.1 responses.

=============================================================================
WHAT A RESPONSE LOOKS LIKE ON THE WIRE
=============================================================================

    HTTP/1.1 201 Created\r\n                     ← status line
    Content-Type: application/json; charset=utf-8\r\n
    Location: /users/1\r\n
    Content-Length: 9\r\n                        ← added by to_bytes()
    Date: Mon, 19 Oct 2026 09:30:00 GMT\r\n      ← added by to_bytes()
    Server: userapi/1.0\r\n                      ← added by to_bytes()
    \r\n
    {"id": 1}

Handlers build responses in one of two ways:

    # Helpers for the common cases
    return created({"id": user_id}, location=f"/users/{user_id}")
    return not_found("User not found")

    # The fluent builder for anything else
    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .text("server is okely dokely!")
        .no_cache()
        .build())

Errors always use the same JSON envelope: ``{"error": "<message>"}``.

=============================================================================
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any, Dict, Optional, Union

from .status_codes import HTTPStatus


JSON_CONTENT_TYPE = "application/json; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass
class HTTPResponse:
    """
    A response ready to be written to a connection.

    Middleware may mutate ``headers`` on the way out (the access log adds
    X-Request-ID, the server adds Connection/Keep-Alive).
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def json(self) -> Any:
        """Decode a JSON body. Convenience for tests and middleware."""
        return json.loads(self.body.decode("utf-8")) if self.body else None

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "userapi/1.0") -> bytes:
        """
        Serialize status line, headers and body.

        Content-Length, Date and Server are filled in unless the handler
        already set them.
        """
        response_headers = dict(self.headers)
        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)

        lines = [self.status_line]
        lines.extend(f"{name}: {value}" for name, value in response_headers.items())
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

    Every setter returns ``self``; ``build()`` ends the chain:

        ResponseBuilder().status(HTTPStatus.NOT_FOUND).json({"error": "..."}).build()
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def headers(self, headers: Dict[str, str]) -> "ResponseBuilder":
        self._headers.update(headers)
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str, content_type: str = TEXT_CONTENT_TYPE) -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def json(self, data: Any, pretty: bool = False) -> "ResponseBuilder":
        """
        Serialize ``data`` as the JSON body.

        ensure_ascii=False keeps non-ASCII names readable on the wire
        ("José" instead of "Jos\\u00e9"); the body is UTF-8 either way.
        """
        indent = 2 if pretty else None
        self._body = json.dumps(data, indent=indent, ensure_ascii=False).encode("utf-8")
        self._headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def no_cache(self) -> "ResponseBuilder":
        self._headers["Cache-Control"] = "no-store"
        return self

    def close_connection(self) -> "ResponseBuilder":
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

        >>> format_http_date(datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc))
        'Mon, 19 Oct 2026 09:30:00 GMT'
    """
    return format_datetime(dt.astimezone(timezone.utc), usegmt=True)


# =============================================================================
# RESPONSE HELPERS
# =============================================================================

def ok(body: Union[str, bytes, dict, list] = "", content_type: Optional[str] = None) -> HTTPResponse:
    """
    200 OK. dict/list bodies become JSON, str becomes text/plain, bytes
    are sent as-is.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, (dict, list)):
        builder.json(body)
    elif isinstance(body, str):
        builder.text(body, content_type or TEXT_CONTENT_TYPE)
    else:
        builder.body(body)
        if content_type:
            builder.content_type(content_type)
    return builder.build()


def created(body: Union[dict, list], location: Optional[str] = None) -> HTTPResponse:
    """201 Created with a JSON body and an optional Location header."""
    builder = ResponseBuilder().status(HTTPStatus.CREATED).json(body)
    if location:
        builder.header("Location", location)
    return builder.build()


def error_response(status: HTTPStatus, message: str) -> HTTPResponse:
    """Any error status with the ``{"error": message}`` envelope."""
    return ResponseBuilder().status(status).json({"error": message}).build()


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def not_found(message: str = "Not Found") -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, message)


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with the Allow header RFC 7231 requires."""
    return (ResponseBuilder()
        .status(HTTPStatus.METHOD_NOT_ALLOWED)
        .header("Allow", ", ".join(allowed_methods))
        .json({"error": "Method Not Allowed", "allowed": allowed_methods})
        .build())


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """500. Never put exception details in ``message``; they go to the log."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
