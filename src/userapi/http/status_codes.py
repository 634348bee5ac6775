"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this service can emit, with their reason phrases.

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK          - health check, user lookup              │
    │        │ 201 Created     - user created                           │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request - unparseable user body / bad HTTP       │
    │        │ 404 Not Found   - unknown user id or unknown route       │
    │        │ 405 Method Not Allowed - route exists, method does not   │
    │        │ 408 Request Timeout    - client too slow to send         │
    │        │ 413 Payload Too Large  - over max_request_size           │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Server Error - handler raised               │
    │        │ 503 Service Unavailable   - worker queue full            │
    │        │ 505 HTTP Version Not Supported                           │
    └────────┴───────────────────────────────────────────────────────────┘

Codes are an IntEnum so they compare equal to plain integers:

    >>> HTTPStatus.CREATED == 201
    True
    >>> HTTPStatus.CREATED.phrase
    'Created'

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """HTTP status codes used by the server, with a ``phrase`` property."""

    # 2xx SUCCESS
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # 4xx CLIENT ERROR
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    UNSUPPORTED_MEDIA_TYPE = 415

    # 5xx SERVER ERROR
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    SERVICE_UNAVAILABLE = 503
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.1 201 Created
                     ─── ───────
                      │     └── phrase
                      └──────── code
        """
        return _PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """4xx or 5xx. Used by the access log to pick a log level."""
        return self >= 400


_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.NO_CONTENT: "No Content",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.REQUEST_TIMEOUT: "Request Timeout",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "Unsupported Media Type",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
    HTTPStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}
