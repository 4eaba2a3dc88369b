"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the notes server knows how to describe is an exception in
this module. Each one carries the HTTP status that should be returned to
the client, the same way a parse error carries its status code.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ERROR → RESPONSE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   AuthenticationError    401   "401 Unauthorized"                   │
    │   NoteNotFoundError      404   "404 Not Found"                      │
    │   NoteValidationError    500   500 with context message             │
    │   NoteStorageError       500   500 with the OS error text           │
    │   ProtocolError          ---   connection aborted, nothing sent     │
    │   ConfigError            ---   raised at startup, process exits     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Request-level errors are recovered at the connection boundary. None of
them stop the accept loop.

=============================================================================
"""

from typing import Optional


class PyneError(Exception):
    """
    Base class for all notes server errors.

    Args:
        message: Human readable description. For 500 responses this is
                 the context text shown to the client.
        status_code: HTTP status to answer with (None = no response).
    """

    status_code: Optional[int] = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


# ─────────────────────────────────────────────────────────────────────────
# STARTUP ERRORS
# ─────────────────────────────────────────────────────────────────────────

class ConfigError(PyneError, ValueError):
    """Invalid or incomplete server configuration (fail fast at startup)."""

    status_code = None


class InstanceError(PyneError):
    """An instance directory could not be created."""

    status_code = None


# ─────────────────────────────────────────────────────────────────────────
# CONNECTION ERRORS
# ─────────────────────────────────────────────────────────────────────────

class ProtocolError(PyneError):
    """
    The bytes on the wire could not be turned into a request.

    The connection is dropped without a response.
    """

    status_code = None


class InvalidEncodingError(ProtocolError):
    """Request bytes are not valid UTF-8."""


class RequestTooLargeError(ProtocolError):
    """Request exceeded the configured size limit."""


# ─────────────────────────────────────────────────────────────────────────
# REQUEST ERRORS
# ─────────────────────────────────────────────────────────────────────────

class AuthenticationError(PyneError):
    """Missing or mismatched shared secret."""

    status_code = 401


class NoteError(PyneError):
    """Base class for note store failures."""


class NoteNotFoundError(NoteError):
    """The note does not exist (or cannot be read)."""

    status_code = 404


class NoteValidationError(NoteError):
    """The note path or listing bounds were rejected."""

    status_code = 500


class NoteStorageError(NoteError):
    """The filesystem refused a write or delete."""

    status_code = 500
