"""
=============================================================================
CONNECTION HANDLING
=============================================================================

One accepted client, one request, one response.

A Connection starts as a plain TCP socket. The TLS handshake happens in
handshake(), on the connection's own thread, so a slow client never holds
up the accept loop.

=============================================================================
REQUEST FRAMING
=============================================================================

Clients are not required to speak proper HTTP/1.1, so framing is lenient:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        read_request()                               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. recv(chunk_size) until a blank line ends the headers           │
    │      ("\\n\\n" or "\\n\\r\\n"), or the client closes                    │
    │                                                                      │
    │   2. Content-Length present?                                        │
    │         yes → read until exactly that many body bytes               │
    │         no  → keep reading while recv() returns full chunks,        │
    │               stop on the first short read                          │
    │                                                                      │
    │   3. Anything over max_request_size → RequestTooLargeError          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The short-read fallback is what old clients rely on. A body that happens
to be an exact multiple of chunk_size only frames reliably with
Content-Length.

=============================================================================
"""

import socket
import ssl
import time
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..errors import ProtocolError, RequestTooLargeError


logger = logging.getLogger(__name__)


HEADER_TERMINATORS = (b"\n\n", b"\n\r\n")


class ConnectionState(Enum):
    NEW = "new"
    HANDSHAKING = "handshaking"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: Raw TCP socket until handshake(), then the TLS socket.
        address: Client's (ip, port) tuple.
        id: Short identifier for log lines.
        state: Current lifecycle state.
        chunk_size: Bytes requested per recv().
        timeout: Socket timeout in seconds.
        max_request_size: Upper bound on request bytes.
    """

    socket: socket.socket
    address: Tuple[str, int]
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    chunk_size: int = 256
    timeout: Optional[float] = 30.0
    max_request_size: int = 10 * 1024 * 1024

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        return time.time() - self.created_at

    def handshake(self, context: ssl.SSLContext) -> None:
        """
        Complete the server side of the TLS handshake.

        Raises:
            ssl.SSLError, OSError: If the handshake fails or times out.
        """
        self.state = ConnectionState.HANDSHAKING
        self.socket = context.wrap_socket(self.socket, server_side=True)
        logger.debug(f"[{self.id}] TLS established ({self.socket.version()})")

    def read_request(self) -> Optional[bytes]:
        """
        Read one request's bytes off the socket.

        Returns:
            The request bytes, or None if the client sent nothing.

        Raises:
            RequestTooLargeError: If the request exceeds max_request_size.
            ProtocolError: If the client stalls past the socket timeout.
        """
        self.state = ConnectionState.READING
        buffer = b""

        try:
            # ─────────────────────────────────────────────────────────────
            # HEADERS
            # ─────────────────────────────────────────────────────────────
            header_end = -1
            chunk = b""
            while header_end < 0:
                chunk = self._recv()
                if not chunk:
                    break
                buffer += chunk
                self._check_size(len(buffer))
                header_end = self._find_header_end(buffer)

            if not buffer:
                return None
            if header_end < 0:
                # Closed before the blank line
                return buffer

            # ─────────────────────────────────────────────────────────────
            # BODY
            # ─────────────────────────────────────────────────────────────
            content_length = self._parse_content_length(buffer[:header_end])

            if content_length is not None:
                request_end = header_end + content_length
                self._check_size(request_end)
                while len(buffer) < request_end:
                    chunk = self._recv()
                    if not chunk:
                        break
                    buffer += chunk
                return buffer[:request_end]

            while len(chunk) == self.chunk_size:
                chunk = self._recv()
                buffer += chunk
                self._check_size(len(buffer))
            return buffer

        except socket.timeout:
            raise ProtocolError(
                f"Timed out reading request after {len(buffer)} bytes"
            ) from None

    def _recv(self) -> bytes:
        try:
            return self.socket.recv(self.chunk_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _check_size(self, size: int) -> None:
        if size > self.max_request_size:
            raise RequestTooLargeError(f"Request too large: {size} bytes")

    @staticmethod
    def _find_header_end(buffer: bytes) -> int:
        """
        Locate the blank line that ends the headers.

        Returns:
            Offset just past the terminator, or -1 if not seen yet.
        """
        ends = [
            buffer.find(marker) + len(marker)
            for marker in HEADER_TERMINATORS
            if marker in buffer
        ]
        return min(ends) if ends else -1

    @staticmethod
    def _parse_content_length(headers: bytes) -> Optional[int]:
        """
        Find Content-Length in the raw header bytes.

        The name is matched case-insensitively here even though the parsed
        request keeps header names exactly as sent.

        Returns:
            The length, or None if absent or not a non-negative integer.
        """
        for line in headers.split(b"\n")[1:]:
            name, sep, value = line.partition(b":")
            if not sep or name.strip().lower() != b"content-length":
                continue
            try:
                length = int(value.strip())
            except ValueError:
                return None
            return length if length >= 0 else None
        return None

    def send_response(self, data: bytes) -> bool:
        """
        Send the serialized response.

        Returns:
            True if sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection: shutdown(SHUT_WR), drain, close.
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
        except (socket.timeout, OSError):
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
