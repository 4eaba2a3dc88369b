"""
Middleware wrapped around the router: access logging and authentication.
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .auth import AuthMiddleware, AUTH_HEADER

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "RequestLog",
    "AuthMiddleware",
    "AUTH_HEADER",
]
