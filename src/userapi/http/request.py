"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read off a connection into an HTTPRequest.

=============================================================================
WHAT A REQUEST LOOKS LIKE ON THE WIRE
=============================================================================

    POST /users HTTP/1.1\r\n                      ← request line
    Host: localhost:8080\r\n                      ← headers
    Content-Type: application/json\r\n
    Content-Length: 38\r\n
    \r\n                                          ← blank line
    {"name": "Ann", "email": "ann@x.com"}         ← body (Content-Length bytes)

The parser works in four passes:

    1. size check             → 413 if the request is over the limit
    2. split at \r\n\r\n      → header section / body
    3. request line           → method, path, query, version
    4. header lines           → lowercase name → value

Anything malformed raises HTTPParseError carrying the status code the
server should answer with. The server turns that into a JSON error
response and closes the connection.

=============================================================================
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, unquote, urlparse


class HTTPParseError(Exception):
    """
    Raised when a request (or its body) cannot be parsed.

    Attributes:
        status_code: HTTP status the server should respond with.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Header names are stored lowercase (HTTP headers are case-insensitive),
    so ``request.headers["content-type"]`` works no matter how the client
    spelled it. ``path_params`` is filled in by the router once a route
    matches: ``/users/:id`` against ``/users/7`` gives ``{"id": "7"}``.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    # Set by Router.handle()
    path_params: Dict[str, str] = field(default_factory=dict)

    client_address: tuple[str, int] = ("", 0)

    _body_json: Optional[Any] = field(default=None, repr=False)

    @property
    def content_type(self) -> Optional[str]:
        """Media type without parameters ("application/json; charset=utf-8" → "application/json")."""
        ct = self.headers.get("content-type", "")
        return ct.split(";")[0].strip().lower() or None

    @property
    def content_length(self) -> int:
        try:
            return int(self.headers.get("content-length", 0))
        except ValueError:
            return 0

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def json(self) -> Any:
        """
        The body decoded as JSON (parsed once, then cached).

        Returns None for an empty body.

        Raises:
            HTTPParseError: If the body is not valid UTF-8 JSON.
        """
        if self._body_json is None and self.body:
            try:
                self._body_json = json.loads(self.body.decode("utf-8"))
            except (ValueError, RecursionError) as e:
                raise HTTPParseError(f"Invalid JSON body: {e}")
        return self._body_json

    @property
    def is_keep_alive(self) -> bool:
        """
        Whether the client wants the connection kept open.

            HTTP/1.1: keep alive unless "Connection: close"
            HTTP/1.0: close unless "Connection: keep-alive"
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    def get_header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter, or ``default``."""
        values = self.query_params.get(name, [])
        return values[0] if values else default


class RequestParser:
    """
    Parses raw HTTP/1.x request bytes into HTTPRequest objects.

    One parser is shared by all worker threads; it keeps no per-request
    state, so that is safe.

    Usage:
        parser = RequestParser(max_request_size=1024 * 1024)
        request = parser.parse(raw_bytes, ("127.0.0.1", 53122))
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS",
    }

    SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse one complete request.

        Args:
            data: Raw bytes of exactly one request (headers + body).
            client_address: (ip, port) of the peer, kept for logging.

        Returns:
            The parsed request.

        Raises:
            HTTPParseError: If the request is malformed or too large.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413,
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, path, query_params, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        # ─────────────────────────────────────────────────────────────────
        # Body is exactly Content-Length bytes; anything after it belongs
        # to the next pipelined request.
        # ─────────────────────────────────────────────────────────────────
        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError(
                f"Invalid Content-Length: {headers['content-length']!r}"
            )
        if content_length < 0:
            raise HTTPParseError(f"Invalid Content-Length: {content_length}")
        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            query_params=query_params,
            body=body[:content_length],
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str,
    ) -> tuple[str, str, Dict[str, list[str]], str]:
        """
        Split "METHOD SP REQUEST-URI SP HTTP-VERSION".

            "GET /users/7?verbose=1 HTTP/1.1"
             ─┬─ ───────┬────────── ────┬───
              │         │               └── version
              │         └── path "/users/7", query {"verbose": ["1"]}
              └── method
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, uri, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in self.SUPPORTED_VERSIONS:
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505,
            )

        parsed = urlparse(uri)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        if ".." in path:
            raise HTTPParseError("Invalid path: contains ..")

        return method, path, query_params, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a dict keyed by lowercase name.

        Repeated headers are joined with ", " (RFC 7230 §3.2.2).
        Obsolete line folding (continuation lines starting with SP/HTAB)
        is appended to the previous header. Lines without a colon are
        skipped.
        """
        headers: Dict[str, str] = {}
        current_name: Optional[str] = None

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if current_name is not None:
                    headers[current_name] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            name = name.strip().lower()
            value = value.strip()
            current_name = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 1024 * 1024,
) -> HTTPRequest:
    """Parse a single request with a throwaway RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
