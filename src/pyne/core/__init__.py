"""
Core networking: listener, per-connection framing, blocking-I/O pool.
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import ThreadPool, WorkerState

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "ThreadPool",
    "WorkerState",
]
