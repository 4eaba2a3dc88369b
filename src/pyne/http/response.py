"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds and serializes the responses the notes server sends.

=============================================================================
WIRE FORMAT
=============================================================================

A response with a body:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   HTTP/1.1 200 OK\r\n                                               │
    │   Server: pyne-notes-server\r\n                                     │
    │   Content-Length: 5\r\n            ← byte length of the body        │
    │   Content-Type: text/plain\r\n                                      │
    │   Access-Control-Allow-Origin: *\r\n                                │
    │   \r\n                                                              │
    │   hello                                                             │
    └─────────────────────────────────────────────────────────────────────┘

A response without a body (status, delete) has no Content-Type:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   HTTP/1.1 200 OK\r\n                                               │
    │   Server: pyne-notes-server\r\n                                     │
    │   Content-Length: 0\r\n                                             │
    │   Access-Control-Allow-Origin: *\r\n                                │
    │   \r\n                                                              │
    └─────────────────────────────────────────────────────────────────────┘

The CORS header is unconditional so browser front-ends on any origin can
talk to a personal instance.

=============================================================================
ERROR BODIES
=============================================================================

    401  →  "401 Unauthorized"
    404  →  "404 Not Found"
    500  →  "500 Internal Server Error\r\n\r\n<context>"

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Optional
import json

from .status_codes import ContentType, HTTPStatus


DEFAULT_SERVER_NAME = "pyne-notes-server"


@dataclass
class HTTPResponse:
    """
    A response to be serialized exactly once.

    Attributes:
        status: One of the four supported status codes.
        body: Response body text, or None for an empty response.
        content_type: Tag for the body (ignored when body is None).
    """

    status: HTTPStatus = HTTPStatus.OK
    body: Optional[str] = None
    content_type: ContentType = ContentType.TEXT
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """Example: "HTTP/1.1 404 Not Found"."""
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    @property
    def body_bytes(self) -> bytes:
        """Body encoded as UTF-8 (empty when there is no body)."""
        return self.body.encode("utf-8") if self.body is not None else b""

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response for socket.sendall().

        Args:
            server_name: Value of the Server header.

        Returns:
            Complete response bytes.
        """
        body = self.body_bytes

        lines = [
            self.status_line,
            f"Server: {server_name}",
            f"Content-Length: {len(body)}",
        ]
        if self.body is not None:
            lines.append(f"Content-Type: {self.content_type.value}")
        lines.append("Access-Control-Allow-Origin: *")

        # Trailing empty string yields the blank separator line
        lines.append("")
        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"

        return header_bytes + body


class ResponseBuilder:
    """
    Fluent builder for responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .json(["a.txt", "b.txt"])
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._body: Optional[str] = None
        self._content_type = ContentType.TEXT

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def text(self, text: str) -> "ResponseBuilder":
        """Plain text body."""
        self._body = text
        self._content_type = ContentType.TEXT
        return self

    def html(self, html: str) -> "ResponseBuilder":
        """HTML body."""
        self._body = html
        self._content_type = ContentType.HTML
        return self

    def json(self, data: Any) -> "ResponseBuilder":
        """
        JSON body.

        Args:
            data: Anything json.dumps() accepts.
        """
        self._body = json.dumps(data)
        self._content_type = ContentType.JSON
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            body=self._body,
            content_type=self._content_type,
        )


# =============================================================================
# CONVENIENCE CONSTRUCTORS
# =============================================================================

def ok(body: Optional[str] = None) -> HTTPResponse:
    """200 OK, optionally with a plain text body."""
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if body is not None:
        builder.text(body)
    return builder.build()


def not_found() -> HTTPResponse:
    """404 Not Found."""
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).text("404 Not Found").build()


def unauthorized() -> HTTPResponse:
    """401 Unauthorized."""
    return ResponseBuilder().status(HTTPStatus.UNAUTHORIZED).text("401 Unauthorized").build()


def internal_error() -> HTTPResponse:
    """500 with the bare phrase, for failures that have nothing to explain."""
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .text("500 Internal Server Error")
        .build())


def error_with_context(context: str) -> HTTPResponse:
    """
    500 Internal Server Error with a context message after a blank line.

    Used for every rejected note path, failed write and bad listing bound,
    so the client can tell the failures apart.
    """
    return (ResponseBuilder()
        .status(HTTPStatus.INTERNAL_SERVER_ERROR)
        .text(f"500 Internal Server Error\r\n\r\n{context}")
        .build())
