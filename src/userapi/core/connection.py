"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket.

TCP is a byte stream, not a message stream. recv() hands back whatever
has arrived, which may be half a request or a request and a half. The
Connection buffers bytes until it holds one complete request:

    1. recv() until the buffer contains "\r\n\r\n" (end of headers)
    2. read Content-Length from the header block
    3. recv() until Content-Length body bytes follow the headers
    4. cut that request off the front of the buffer; keep the rest
       (it is the start of the next pipelined request)

=============================================================================
STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► KEEP_ALIVE ─┐
     │         │                          │             │       │
     │         └──────────┐               │             └─► READING
     ▼                    ▼               ▼
    CLOSING ◄─────────────┴───────────────┘
       │
       ▼
    CLOSED

The first request waits up to ``timeout`` seconds; later requests on a
kept-alive connection only wait ``keep_alive_timeout``, and running out
of that is a normal close rather than an error.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)


class RequestTooLargeError(ValueError):
    """The client sent more than ``max_request_size`` bytes for one request."""


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection with buffered request reads.

    Attributes:
        socket: The accepted client socket.
        address: Client (ip, port).
        id: Short random id used to tag log lines.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple[str, int]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: Optional[float] = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    def read_request(self) -> Optional[bytes]:
        """
        Read exactly one request from the socket.

        Returns:
            The request bytes, or None if the client closed the connection
            (or went idle past the keep-alive timeout).

        Raises:
            TimeoutError: The first request did not arrive in time.
            RequestTooLargeError: The request exceeds max_request_size.
        """
        self.state = ConnectionState.READING
        if self.requests_handled > 0:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                if not self._fill():
                    return None

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])
            if body_start + content_length > self.max_request_size:
                raise RequestTooLargeError(
                    f"Request too large: {body_start + content_length} bytes"
                )

            while len(self._buffer) - body_start < content_length:
                if not self._fill():
                    # Client hung up mid-body; let the parser report it
                    break

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]
            self.requests_handled += 1
            return request_data

        except socket.timeout:
            if self.requests_handled > 0 and not self._buffer:
                logger.debug(f"[{self.id}] Keep-alive timeout")
                return None
            raise TimeoutError("Request read timeout")
        finally:
            self.socket.settimeout(self.timeout)

    def _fill(self) -> bool:
        """recv() one chunk into the buffer. False means the peer closed."""
        try:
            chunk = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return False
        if not chunk:
            return False
        self._buffer += chunk
        if len(self._buffer) > self.max_request_size:
            raise RequestTooLargeError(f"Request too large: {len(self._buffer)} bytes")
        return True

    @staticmethod
    def _parse_content_length(header_block: bytes) -> int:
        # Only Content-Length is needed before full parsing. A bad value
        # reads as 0 here; RequestParser rejects it properly.
        for line in header_block.decode("latin-1").lower().split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """sendall() the response. False if the client has gone away."""
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def close(self):
        """
        Close politely: shutdown(SHUT_WR) sends FIN, then briefly drain
        anything the client still sends so the kernel does not answer it
        with RST, then release the descriptor. Idempotent.
        """
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Closed after {self.requests_handled} requests")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
