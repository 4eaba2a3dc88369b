"""
=============================================================================
PREFIX ROUTER
=============================================================================

Maps a request path to a handler by checking routes in registration order.

The notes server has a tiny, fixed routing table, so instead of compiled
patterns and path parameters the router does plain prefix matching with
first-match-wins priority:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       ROUTING TABLE (in order)                      │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1.  /notes...      prefix    → NotesHandler                       │
    │   2.  /list...       prefix    → ListHandler                        │
    │   3.  /status        exact     → status                             │
    │   4.  anything else            → 404 Not Found                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Order matters: "/notes/list" is a note, not a listing, because /notes is
checked first. The method never takes part in matching; handlers decide
what to do with it.

=============================================================================
"""

from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from .request import HTTPRequest
from .response import HTTPResponse, not_found


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """
    A single routing table entry.

    Attributes:
        pattern: Path prefix (or the full path when exact is True).
        handler: Function called with the request.
        exact: Match the whole path instead of a prefix.
    """

    pattern: str
    handler: Handler
    exact: bool = False

    def matches(self, path: str) -> bool:
        if self.exact:
            return path == self.pattern
        return path.startswith(self.pattern)


class Router:
    """
    First-match prefix router.

    Usage:
        router = Router()
        router.add_route("/notes", notes.handle)
        router.add_route("/status", status, exact=True)

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    def add_route(self, pattern: str, handler: Handler, exact: bool = False) -> Route:
        """
        Append a route. Earlier routes take priority.

        Returns:
            The created Route.
        """
        route = Route(pattern=pattern, handler=handler, exact=exact)
        self._routes.append(route)
        logger.debug(f"Registered route {'=' if exact else '^'}{pattern}")
        return route

    def match(self, path: str) -> Optional[Route]:
        """Find the first route matching the path, or None."""
        for route in self._routes:
            if route.matches(path):
                return route
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler.

        Returns:
            The handler's response, or 404 if nothing matched.
        """
        route = self.match(request.path)
        if route is None:
            return not_found()
        return route.handler(request)

    @property
    def routes(self) -> List[Route]:
        """Registered routes in priority order."""
        return list(self._routes)
