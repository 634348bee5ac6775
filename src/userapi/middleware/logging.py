"""
=============================================================================
ACCESS LOG MIDDLEWARE
=============================================================================

Writes one line per request to the ``userapi.access`` logger.

    text:
        127.0.0.1 "POST /users" 201 9B 0.41ms 2026-10-19T09:30:00.123456+00:00 id=3f9a0c1e

    json:
        {"request_id": "3f9a0c1e", "method": "POST", "path": "/users",
         "client_ip": "127.0.0.1", "status_code": 201, "content_length": 9,
         "duration_ms": 0.41, "timestamp": "2026-10-19T09:30:00.123456+00:00"}

The timestamp is RFC 3339 in UTC, the same format the API uses for
``created_at``. Every response gets an ``X-Request-ID`` header matching
the log line so a client report can be tied to a log entry.

Put this middleware first so its timing covers everything after it.

=============================================================================
"""

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("userapi.access")


@dataclass
class RequestLog:
    """One access log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} "{self.method} {self.path}" {self.status_code} '
            f'{self.content_length}B {self.duration_ms:.2f}ms {self.timestamp} '
            f'id={self.request_id}'
        )


class LoggingMiddleware(Middleware):
    """
    Access logging.

    Args:
        log_format: "text" or "json".
        include_request_id: Add X-Request-ID to responses.
        log_level: Level for successful requests. 4xx/5xx responses are
                   logged at WARNING regardless.
        skip_paths: Paths not to log (e.g. ["/health"] for busy probes).
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        start = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                f"{request.method} {request.path} failed after {duration_ms:.2f}ms "
                f"id={request_id}: {type(e).__name__}: {e}"
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if request.path in self.skip_paths:
            return response

        entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            client_ip=request.client_address[0],
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

        level = logging.WARNING if response.status >= 400 else self.log_level
        if self.log_format == "json":
            logger.log(level, json.dumps(entry.to_dict()))
        else:
            logger.log(level, entry.to_text())

        return response
