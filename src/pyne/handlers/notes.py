"""
=============================================================================
NOTE HANDLERS
=============================================================================

HTTP adapters over the NoteStore: one handler for the /notes prefix and
one for the /list endpoint.

=============================================================================
/notes<path>
=============================================================================

    GET     /notes/todo          read       200 + content | 404
    POST    /notes/todo  <body>  write      200 + stored content | 500
    DELETE  /notes/todo          delete     200 | 404 | 500
    other                                   404

=============================================================================
/list?<start>:<end>
=============================================================================

Lists note file names sorted by name, sliced to the half-open range
[start, end). Both bounds are unsigned 16-bit integers.

    /list?0:10       → ["a.txt", "b.txt"]
    /list            → 500  Missing query string '?<start>:<end>'
    /list?:5         → 500  Missing start bounds '?<start>:<end>'
    /list?5          → 500  Missing end bounds '?<start>:<end>'
    /list?x:5        → 500  Start bounds is not a valid number
    /list?0:70000    → 500  End bounds is not a valid number
    /list?5:2        → 500  Start of the bounds is bigger then the end

=============================================================================
"""

import logging
from typing import Optional

from ..errors import NoteError, NoteNotFoundError, NoteValidationError
from ..http.request import HTTPRequest, Method
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    error_with_context,
    not_found,
    ok,
)
from ..store import NoteStore


logger = logging.getLogger(__name__)


U16_MAX = 65535


def note_error_response(error: NoteError) -> HTTPResponse:
    """Turn a store error into its response."""
    if isinstance(error, NoteNotFoundError):
        return not_found()
    return error_with_context(error.message)


class NotesHandler:
    """
    Read, write and delete notes addressed by the path after a URL prefix.

    Usage:
        handler = NotesHandler(store)
        router.add_route("/notes", handler.handle)
    """

    def __init__(self, store: NoteStore, url_prefix: str = "/notes"):
        self.store = store
        self.url_prefix = url_prefix

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        relative = request.path[len(self.url_prefix):]

        try:
            if request.method is Method.GET:
                return ok(self.store.read(relative))

            if request.method is Method.POST:
                return ok(self.store.write(relative, request.body))

            if request.method is Method.DELETE:
                self.store.delete(relative)
                return ok()

        except NoteError as e:
            return note_error_response(e)

        return not_found()


class ListHandler:
    """Answer /list?<start>:<end> with a JSON array of note names."""

    QUERY_HINT = "'?<start>:<end>'"

    def __init__(self, store: NoteStore, url_prefix: str = "/list"):
        self.store = store
        self.url_prefix = url_prefix

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        try:
            start, end = self.parse_bounds(request.path)
            names = self.store.list_names(start, end)
        except NoteError as e:
            return note_error_response(e)

        return ResponseBuilder().json(names).build()

    def parse_bounds(self, path: str) -> tuple[int, int]:
        """
        Extract (start, end) from a listing path.

        The query is everything after "<prefix>?", split on ':'.
        Tokens beyond the second are ignored.

        Raises:
            NoteValidationError: With a message naming the failed check.
        """
        query_start = len(self.url_prefix) + 1
        if len(path) <= query_start or "?" not in path:
            raise NoteValidationError(f"Missing query string {self.QUERY_HINT}")

        bounds = path[query_start:].split(":")

        start_text = bounds[0]
        if not start_text:
            raise NoteValidationError(f"Missing start bounds {self.QUERY_HINT}")

        end_text = bounds[1] if len(bounds) > 1 else ""
        if not end_text:
            raise NoteValidationError(f"Missing end bounds {self.QUERY_HINT}")

        start = parse_u16(start_text)
        if start is None:
            raise NoteValidationError("Start bounds is not a valid number")

        end = parse_u16(end_text)
        if end is None:
            raise NoteValidationError("End bounds is not a valid number")

        if start > end:
            raise NoteValidationError("Start of the bounds is bigger then the end")

        return start, end


def parse_u16(text: str) -> Optional[int]:
    """
    Parse an unsigned 16-bit integer.

    Accepts ASCII digits with an optional leading '+'. Returns None for
    anything else, including values above 65535.
    """
    digits = text[1:] if text.startswith("+") else text
    if not (digits.isascii() and digits.isdigit()):
        return None

    value = int(digits)
    if value > U16_MAX:
        return None
    return value
