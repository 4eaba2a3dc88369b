"""
=============================================================================
NOTE STORE
=============================================================================

Filesystem-backed CRUD over plain-text notes under one fixed root.

The filesystem is the only source of truth: nothing is cached and no
metadata is tracked. Concurrent writers to the same note are not
serialized; the last write wins.

=============================================================================
PATH CONTAINMENT
=============================================================================

Every operation maps a client-supplied relative path onto the root and
refuses anything that would land outside it:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   "/todo"            → <root>/./todo        ✓                       │
    │   "/work/plan"       → <root>/./work/plan   ✓                       │
    │   "/../etc/passwd"   → contains ".."        ✗ rejected              │
    │   "/link-out"        → symlink resolving                            │
    │                        outside the root     ✗ rejected              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The check runs before the filesystem is touched, for reads, writes and
deletes alike. A delete checks the note's parent directory only, so a
symlink is removed without touching whatever it points at.

=============================================================================
"""

import logging
from pathlib import Path
from typing import List, Union

from .errors import NoteNotFoundError, NoteStorageError, NoteValidationError


logger = logging.getLogger(__name__)


TRAVERSAL_MESSAGE = "'..' is not allowed in note paths."
SAVE_FAILED_MESSAGE = "Failed to save note file."


class NoteStore:
    """
    Read, write, delete and list notes under a root directory.

    Usage:
        store = NoteStore("my-instance/notes")
        store.write("/todo", "buy milk")
        store.read("/todo")          # → "buy milk"
        store.list_names(0, 10)      # → ["todo"]
        store.delete("/todo")
    """

    def __init__(self, root: Union[str, Path]):
        """
        Args:
            root: Notes directory. Resolved once; fixed for the store's life.
        """
        self.root = Path(root).resolve()

    def resolve(self, relative: str, follow_links: bool = True) -> Path:
        """
        Map a relative note path onto the root.

        The path is joined as "." + relative, so "/todo" becomes
        "<root>/./todo" and a leading "/" can never make it absolute. The
        joined path is returned as is; resolving is only used for the
        containment check.

        Args:
            relative: Client-supplied path, e.g. "/work/plan".
            follow_links: Check where the note itself leads. When False only
                          its parent directory is checked, so a symlink can
                          be removed without touching its target.

        Raises:
            NoteValidationError: If the path contains ".." or resolves
                                 outside the root.
            ValueError: If the path cannot name a file (e.g. a NUL byte).
        """
        if ".." in relative:
            logger.warning(f"Rejected note path with '..': {relative!r}")
            raise NoteValidationError(TRAVERSAL_MESSAGE)

        full_path = self.root / f".{relative}"
        checked = full_path if follow_links else full_path.parent
        resolved = checked.resolve()
        try:
            resolved.relative_to(self.root)
        except ValueError:
            logger.warning(f"Rejected note path outside root: {relative!r}")
            raise NoteValidationError(TRAVERSAL_MESSAGE) from None

        return full_path

    def read(self, relative: str) -> str:
        """
        Return a note's content.

        Raises:
            NoteNotFoundError: If the note is missing or unreadable.
            NoteValidationError: If the path escapes the root.
        """
        try:
            path = self.resolve(relative)
            # newline="" keeps CRLF notes byte-for-byte
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except (OSError, ValueError) as e:
            logger.debug(f"Read failed for {relative!r}: {e}")
            raise NoteNotFoundError(f"Note not found: {relative}") from e

    def write(self, relative: str, content: str) -> str:
        """
        Create or overwrite a note, then read it back.

        Returns:
            The content as now stored on disk.

        Raises:
            NoteStorageError: If the file could not be written.
            NoteValidationError: If the path escapes the root.
        """
        try:
            path = self.resolve(relative)
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except (OSError, ValueError) as e:
            logger.error(f"Write failed for {relative!r}: {e}")
            raise NoteStorageError(SAVE_FAILED_MESSAGE) from e

        return self.read(relative)

    def delete(self, relative: str) -> None:
        """
        Remove a note. A symlink is removed itself, never its target.

        Raises:
            NoteNotFoundError: If there is no such note.
            NoteStorageError: For any other OS error (message = OS text).
            NoteValidationError: If the path escapes the root.
        """
        try:
            path = self.resolve(relative, follow_links=False)
            path.unlink()
        except FileNotFoundError as e:
            raise NoteNotFoundError(f"Note not found: {relative}") from e
        except OSError as e:
            logger.error(f"Delete failed for {relative!r}: {e}")
            raise NoteStorageError(e.strerror or str(e)) from e
        except ValueError as e:
            logger.error(f"Delete failed for {relative!r}: {e}")
            raise NoteStorageError(str(e)) from e

    def list_names(self, start: int, end: int) -> List[str]:
        """
        Entry names of the notes directory, sorted, sliced to [start, end).

        Raises:
            NoteStorageError: If the directory cannot be listed.
        """
        try:
            names = sorted(entry.name for entry in self.root.iterdir())
        except OSError as e:
            logger.error(f"Listing failed for {self.root}: {e}")
            raise NoteStorageError(e.strerror or str(e)) from e

        return names[start:end]
