"""
Wiring of the notes server's routing table.

    router = create_router(NoteStore("instance/notes"))
    response = router.handle(request)

evaluate() is the one-shot form: a pure function of the request and the
state of the notes directory.
"""

from pathlib import Path
from typing import Union

from .handlers import ListHandler, NotesHandler, status
from .http.request import HTTPRequest
from .http.response import HTTPResponse
from .http.router import Router
from .store import NoteStore


def create_router(store: NoteStore) -> Router:
    """Build the router for a note store. Registration order is priority."""
    router = Router()
    router.add_route("/notes", NotesHandler(store).handle)
    router.add_route("/list", ListHandler(store).handle)
    router.add_route("/status", status, exact=True)
    return router


def evaluate(request: HTTPRequest, notes_root: Union[str, Path]) -> HTTPResponse:
    """Route a single request against the notes under notes_root."""
    return create_router(NoteStore(notes_root)).handle(request)
