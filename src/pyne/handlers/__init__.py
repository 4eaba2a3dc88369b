"""
Request handlers for the notes server.

    NotesHandler    /notes<path>            read, write, delete
    ListHandler     /list?<start>:<end>     sorted note names
    status          /status                 liveness check
"""

from .notes import NotesHandler, ListHandler, note_error_response, parse_u16
from .status import status

__all__ = [
    "NotesHandler",
    "ListHandler",
    "note_error_response",
    "parse_u16",
    "status",
]
