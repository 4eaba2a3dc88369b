"""
HTTP protocol components: request parsing, response building, routing.
"""

from .status_codes import HTTPStatus, ContentType
from .request import HTTPRequest, Method, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    not_found,
    unauthorized,
    internal_error,
    error_with_context,
)
from .router import Router, Route

__all__ = [
    # Status codes
    "HTTPStatus",
    "ContentType",
    # Request
    "HTTPRequest",
    "Method",
    "RequestParser",
    "parse_request",
    # Response
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "not_found",
    "unauthorized",
    "internal_error",
    "error_with_context",
    # Router
    "Router",
    "Route",
]
