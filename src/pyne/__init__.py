"""
=============================================================================
PYNE - Personal Notes Server over TLS
=============================================================================

A single-user server that keeps plain-text notes in a directory and
serves them over TLS with a minimal HTTP dialect. One shared secret
guards everything.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                           ROUTES                                    │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET    /notes/<path>       read a note                            │
    │   POST   /notes/<path>       write a note (body = content)          │
    │   DELETE /notes/<path>       delete a note                          │
    │   GET    /list?<start>:<end> sorted note names, JSON array          │
    │   GET    /status             200, empty body                        │
    │                                                                      │
    │   Every request:  Authorization: <secret>                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    pyne/
    ├── __main__.py          # CLI: pyne new / pyne run
    ├── server.py            # NotesServer, per-connection flow
    ├── config.py            # ServerConfig dataclass
    ├── instance.py          # instance scaffolding (cert, key, secret)
    ├── tls.py               # server SSLContext
    ├── store.py             # NoteStore, filesystem CRUD
    ├── routes.py            # routing table wiring
    ├── errors.py            # exception hierarchy
    ├── core/                # listener, connection framing, I/O pool
    ├── http/                # request parsing, responses, router
    ├── handlers/            # notes, list, status
    └── middleware/          # access log, auth

=============================================================================
QUICK START
=============================================================================

    $ pyne new my-notes
    $ pyne run 8443 my-notes

    $ curl --cacert my-notes/server.crt \\
           --resolve tls-server:8443:127.0.0.1 \\
           -H "Authorization: $(cat my-notes/secret)" \\
           https://tls-server:8443/status

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .instance import create_instance
from .server import NotesServer

__all__ = [
    "NotesServer",
    "ServerConfig",
    "create_instance",
    "__version__",
]
