"""
Shared-secret authentication.

Every request must carry the instance secret in the Authorization header:

    Authorization: <secret>

The header name is matched exactly. Surrounding whitespace on both sides
is ignored and the comparison is constant-time. A missing or wrong
secret answers 401 and the router never runs.
"""

import hmac
import logging

from .base import Middleware, NextHandler
from ..errors import AuthenticationError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, unauthorized


logger = logging.getLogger(__name__)


AUTH_HEADER = "Authorization"


class AuthMiddleware(Middleware):
    """
    Rejects requests whose Authorization header does not match the token.

    Args:
        token: The shared secret. Must be non-empty.
    """

    def __init__(self, token: str):
        if not token or not token.strip():
            raise ValueError("AuthMiddleware needs a non-empty token")
        self._token = token.strip().encode("utf-8")

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        try:
            self._verify(request)
        except AuthenticationError as e:
            logger.warning(f"{request.client_address[0] or '-'} {request.path}: {e.message}")
            return unauthorized()

        return next(request)

    def _verify(self, request: HTTPRequest) -> None:
        """
        Raises:
            AuthenticationError: If the header is absent or does not match.
        """
        presented = request.get_header(AUTH_HEADER)
        if presented is None:
            raise AuthenticationError("Missing Authorization header")

        if not hmac.compare_digest(presented.strip().encode("utf-8"), self._token):
            raise AuthenticationError("Authorization does not match")
