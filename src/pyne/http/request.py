"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the raw bytes read from one connection into an immutable HTTPRequest.

The notes server speaks a deliberately small, lenient dialect of HTTP/1.1.
Lines are split on "\n" (so both LF and CRLF clients work), the method is
chosen by prefix, and anything the parser does not understand is skipped
rather than rejected. The only hard failure is a buffer that is not valid
UTF-8.

=============================================================================
PARSING RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   POST /notes/todo HTTP/1.1\r\n      ← request line                 │
    │   ──┬─ ─────┬─────                                                  │
    │     │       └── second token = path (default "/")                   │
    │     └────────── prefix match: GET / POST / DELETE / UNKNOWN         │
    │                                                                      │
    │   Authorization: s3cret\r\n          ← split once on first ':'      │
    │   Content-Length: 5\r\n                                              │
    │   no colon here\r\n                  ← skipped                      │
    │   \r\n                               ← first line of length <= 1    │
    │                                        ends the header section      │
    │   hello                              ← everything after = body      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Header names are kept exactly as received (case-sensitive). Values keep
their surrounding whitespace, including the trailing "\r" of CRLF lines.
When a header repeats, the last one wins.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from ..errors import InvalidEncodingError, RequestTooLargeError


class Method(Enum):
    """
    Request methods the router distinguishes.

    Anything that is not GET, POST or DELETE collapses to UNKNOWN.
    """

    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_request_line(cls, line: str) -> "Method":
        """Pick the method by prefix match against the request line."""
        for method in (cls.GET, cls.POST, cls.DELETE):
            if line.startswith(method.value):
                return method
        return cls.UNKNOWN


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request. Constructed once per connection, never mutated.

    Attributes:
        method:         GET, POST, DELETE or UNKNOWN.
        path:           Second token of the request line, query included
                        ("/list?0:10" stays as is).
        headers:        Header name → raw value, names as received.
        body:           Everything after the header section, decoded.
        client_address: (ip, port) of the peer, for logging.
    """

    method: Method
    path: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    client_address: tuple[str, int] = ("", 0)

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """
        Look up a header by its exact name.

        Lookups are case-sensitive: "authorization" does not find
        "Authorization".
        """
        return self.headers.get(name, default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

        Raw bytes
            │
            ▼
        1. Size check          too large? → RequestTooLargeError
            │
            ▼
        2. UTF-8 decode        invalid?   → InvalidEncodingError
            │
            ▼
        3. Walk lines          method, path, headers, body offset
            │
            ▼
        HTTPRequest
    """

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        """
        Args:
            max_request_size: Maximum accepted request size in bytes.
        """
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw request data.

        Args:
            data: Request bytes as framed by the connection.
            client_address: Peer (ip, port) for logging.

        Returns:
            The parsed request.

        Raises:
            RequestTooLargeError: If data exceeds max_request_size.
            InvalidEncodingError: If data is not valid UTF-8.
        """
        if len(data) > self.max_request_size:
            raise RequestTooLargeError(f"Request too large: {len(data)} bytes")

        try:
            data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEncodingError(f"Request is not valid UTF-8: {e}") from e

        method = Method.UNKNOWN
        path = "/"
        headers: Dict[str, str] = {}

        # Offsets are counted in bytes so the body slice stays exact for
        # multi-byte characters.
        offset = 0
        for index, raw_line in enumerate(data.split(b"\n")):
            line = raw_line.decode("utf-8")

            if index == 0:
                method = Method.from_request_line(line)
                tokens = line.split(" ")
                if len(tokens) > 1:
                    path = tokens[1]

            offset += len(raw_line) + 1

            if len(raw_line) <= 1:
                break

            if index == 0:
                continue

            name, sep, value = line.partition(":")
            if not sep:
                continue
            headers[name] = value

        body = data[offset:].decode("utf-8")

        return HTTPRequest(
            method=method,
            path=path,
            headers=headers,
            body=body,
            client_address=client_address,
        )


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """Convenience wrapper: parse one request with a throwaway parser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
