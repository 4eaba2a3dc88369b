"""
=============================================================================
HTTP STATUS CODES AND CONTENT TYPES
=============================================================================

The notes server answers with exactly four status codes:

    ┌────────┬─────────────────────────┬──────────────────────────────────┐
    │  Code  │  Phrase                 │  When                            │
    ├────────┼─────────────────────────┼──────────────────────────────────┤
    │  200   │  OK                     │  Read, write, delete, list,      │
    │        │                         │  status                          │
    │  401   │  Unauthorized           │  Missing or wrong secret         │
    │  404   │  Not Found              │  Unknown route or missing note   │
    │  500   │  Internal Server Error  │  Validation or storage failure   │
    └────────┴─────────────────────────┴──────────────────────────────────┘

Response bodies are tagged with one of three content types.

=============================================================================
"""

from enum import Enum, IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the notes server.

    IntEnum means a status compares equal to its number:
        HTTPStatus.NOT_FOUND == 404  → True
    """

    OK = 200
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES[self]

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


class ContentType(str, Enum):
    """Content-Type tags a response body can carry."""

    TEXT = "text/plain"
    HTML = "text/html"
    JSON = "application/json"
