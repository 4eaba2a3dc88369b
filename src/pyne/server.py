"""
=============================================================================
NOTES SERVER
=============================================================================

Ties the pieces together. Per accepted connection, on its own thread:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   TLS handshake        fails? → log, close                          │
    │        │                                                             │
    │   read_request()       nothing? → close                             │
    │        │               too large / stalled? → log, close            │
    │   parse                not UTF-8? → log, close                      │
    │        │                                                             │
    │   LoggingMiddleware                                                  │
    │     AuthMiddleware     bad secret? → 401                            │
    │       dispatch ──────► I/O pool: router.handle(request)             │
    │        │                                                             │
    │   send response, close                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Nothing that goes wrong with one connection stops the accept loop.
Protocol failures get no response at all; anything unexpected inside the
pipeline becomes a bare 500.

=============================================================================
"""

import logging
import ssl
from typing import Callable, Optional, Tuple

from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer, ThreadPool
from .errors import ProtocolError
from .http import HTTPRequest, HTTPResponse, RequestParser, internal_error
from .middleware import AuthMiddleware, LoggingMiddleware, MiddlewarePipeline
from .routes import create_router
from .store import NoteStore
from .tls import build_server_context


logger = logging.getLogger(__name__)


class NotesServer:
    """
    TLS notes server for one instance directory.

        config = ServerConfig.for_instance("my-notes", port=8443)
        NotesServer(config).run()   # blocks until SIGINT/SIGTERM

    Raises ConfigError from the constructor when the instance is
    incomplete, before anything is bound.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig.for_instance(".")
        self.config.validate()

        self._ssl_context = build_server_context(self.config.cert_file, self.config.key_file)
        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.io_workers,
            max_workers=self.config.io_workers * 2,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)

        self._store = NoteStore(self.config.notes_dir)
        self._router = create_router(self._store)

        self._middleware = MiddlewarePipeline()
        self._middleware.use(
            LoggingMiddleware(),
            AuthMiddleware(self.config.auth_token),
        )
        self._handler: Callable[[HTTPRequest], HTTPResponse] = self._middleware.wrap(self._dispatch)
        self._running = False

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        """The bound (host, port) once listening."""
        return self._socket_server.bound_address

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self):
        """Serve until shutdown() or a signal. Blocks."""
        self._setup_logging()
        self._running = True
        self._thread_pool.start()

        logger.info(
            f"Serving notes from {self.config.notes_dir} "
            f"on {self.config.host}:{self.config.port}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask the accept loop to stop. run() returns shortly after."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("pyne").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._running = False
        self._thread_pool.shutdown(wait=True)
        logger.info("Server stopped")

    def _dispatch(self, request: HTTPRequest) -> HTTPResponse:
        """
        Innermost handler: run the router on the I/O pool and wait for it.
        """
        future = self._thread_pool.submit(
            self._router.handle,
            args=(request,),
            timeout=self.config.timeout,
        )
        return future.result(timeout=self.config.timeout)

    def _handle_connection(self, conn: Connection):
        """Serve exactly one request on a freshly accepted connection."""
        with conn:
            try:
                conn.handshake(self._ssl_context)
            except (ssl.SSLError, OSError) as e:
                logger.warning(f"[{conn.id}] TLS handshake with {conn.client_ip} failed: {e}")
                return

            try:
                raw_request = conn.read_request()
                if raw_request is None:
                    logger.debug(f"[{conn.id}] Client sent nothing")
                    return
                request = self._parser.parse(raw_request, conn.address)
            except ProtocolError as e:
                logger.warning(f"[{conn.id}] Dropping connection: {e.message}")
                return
            except OSError as e:
                logger.warning(f"[{conn.id}] Read failed: {e}")
                return

            conn.state = ConnectionState.PROCESSING
            try:
                response = self._handler(request)
            except Exception as e:
                logger.exception(f"[{conn.id}] Handler error: {e}")
                response = internal_error()

            conn.send_response(response.to_bytes(self.config.server_name))
