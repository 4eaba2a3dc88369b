"""
Access log middleware.

One line per request on the "pyne.access" logger:

    127.0.0.1 [a1b2c3d4] "GET /notes/todo.txt" 200 42 0.81ms

Requests rejected by auth are logged too, since this layer sits outside
the auth check. Header values (including Authorization) never appear in
the log.
"""

import time
import uuid
import logging
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("pyne.access")


@dataclass
class RequestLog:
    """A single access log entry."""

    request_id: str
    method: str
    path: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float

    def to_text(self) -> str:
        return (
            f'{self.client_ip or "-"} [{self.request_id}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Times each request and logs the outcome.

    Args:
        log_level: Level for access lines (INFO by default).
    """

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method.value} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        entry = RequestLog(
            request_id=request_id,
            method=request.method.value,
            path=request.path,
            client_ip=request.client_address[0],
            status_code=int(response.status),
            content_length=len(response.body_bytes),
            duration_ms=duration_ms,
        )
        logger.log(self.log_level, entry.to_text())

        return response
