"""
Status endpoint.

GET /status answers 200 with an empty body once a client is past the
auth check. Clients use it to verify their secret and that the server
is up.
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok


def status(request: HTTPRequest) -> HTTPResponse:
    """200 OK, no body."""
    return ok()
