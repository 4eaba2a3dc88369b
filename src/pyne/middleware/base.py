"""
=============================================================================
MIDDLEWARE PIPELINE
=============================================================================

Middleware wraps the request handler like layers of an onion. The notes
server runs two layers around the router:

    ┌─────────────────────────────────────────────────────────────────┐
    │  LoggingMiddleware          sees every request, even 401s       │
    │  ┌───────────────────────────────────────────────────────────┐  │
    │  │  AuthMiddleware         401 short-circuits here           │  │
    │  │  ┌─────────────────────────────────────────────────────┐  │  │
    │  │  │                                                     │  │  │
    │  │  │   FINAL HANDLER  (router on the I/O pool)           │  │  │
    │  │  │                                                     │  │  │
    │  │  └─────────────────────────────────────────────────────┘  │  │
    │  └───────────────────────────────────────────────────────────┘  │
    └─────────────────────────────────────────────────────────────────┘

Each middleware is called as middleware(request, next) and either returns
next(request) (maybe after looking at it) or answers on its own.

    pipeline = MiddlewarePipeline()
    pipeline.use(LoggingMiddleware(), AuthMiddleware(token))
    handler = pipeline.wrap(router.handle)
    response = handler(request)

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """Base class for request middleware."""

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The parsed request.
            next: The rest of the chain. Skip it to short-circuit.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Ordered middleware chain. First added is outermost.
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a handler with every middleware in the pipeline.

        Wrapping happens in reverse so that [A, B] yields A → B → handler.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    @staticmethod
    def _create_wrapped_handler(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)
