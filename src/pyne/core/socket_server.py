"""
=============================================================================
TCP LISTENER
=============================================================================

Binds the configured address and hands every accepted socket to a
connection handler running on its own thread.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         ACCEPT LOOP                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   bind() → listen() → while running:                                │
    │                           accept()        (1s timeout to re-check)  │
    │                           Connection(...)                           │
    │                           Thread(handler, conn).start()             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no admission control: each connection gets a thread, and the
thread does its own TLS handshake. The accept loop only ever accepts.

SIGTERM and SIGINT trigger a graceful shutdown when the server runs on
the main thread. Signal handlers can only be installed there, so a server
started from a background thread (tests) is stopped with shutdown().

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    Low-level TCP server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """The configured (host, port)."""
        return (self.config.host, self.config.port)

    @property
    def bound_address(self) -> Optional[Tuple[str, int]]:
        """The address actually bound. Differs from address when port is 0."""
        return self._bound_address

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        # Wake up every second to notice shutdown()
        sock.settimeout(1.0)
        return sock

    def _setup_signals(self):
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: ConnectionHandler):
        """
        Bind, listen and accept until shutdown() is called.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]
        self._running = True
        self._setup_signals()
        self._ready_event.set()

        host, port = self._bound_address
        logger.info(f"Server listening on {host}:{port}")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: ConnectionHandler):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                chunk_size=self.config.chunk_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
            thread = threading.Thread(
                target=connection_handler,
                args=(conn,),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            thread.start()

    def shutdown(self):
        """Stop accepting. Safe to call more than once, from any thread."""
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._restore_signals()
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)
