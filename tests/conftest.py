"""
pytest configuration and fixtures.
"""

import socket
import ssl
import threading
from pathlib import Path
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pyne import NotesServer, ServerConfig, create_instance
from pyne.http import HTTPRequest, Method


SECRET = "test-secret-token"


def make_request(
    method: Method,
    path: str,
    body: str = "",
    headers: Optional[Dict[str, str]] = None,
) -> HTTPRequest:
    """Build a request directly, bypassing the parser."""
    return HTTPRequest(method=method, path=path, headers=headers or {}, body=body)


@pytest.fixture
def notes_dir(tmp_path: Path) -> Path:
    """An empty notes root."""
    path = tmp_path / "notes"
    path.mkdir()
    return path


@pytest.fixture
def instance(tmp_path: Path) -> Path:
    """A freshly scaffolded instance directory."""
    return create_instance(tmp_path / "instance")


@pytest.fixture
def config(instance: Path) -> ServerConfig:
    """Test configuration: OS-assigned port, short timeout, fixed secret."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        instance_dir=str(instance),
        auth_token=SECRET,
        timeout=5.0,
        io_workers=2,
        log_level="WARNING",
    )


class RunningServer:
    """A NotesServer running in a background thread."""

    def __init__(self, server: NotesServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


class TLSClient:
    """
    Minimal client that speaks the server's dialect over TLS.

    Sends one request per connection and reads until the server closes.
    """

    def __init__(self, port: int, secret: Optional[str] = SECRET):
        self.port = port
        self.secret = secret
        # Self-signed instance certificate; the instance tests check its contents
        self.context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        self.context.check_hostname = False
        self.context.verify_mode = ssl.CERT_NONE

    def send_raw(self, data: bytes) -> bytes:
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as raw:
            with self.context.wrap_socket(raw, server_hostname="tls-server") as tls:
                tls.sendall(data)
                chunks = []
                while True:
                    chunk = tls.recv(4096)
                    if not chunk:
                        break
                    chunks.append(chunk)
        return b"".join(chunks)

    def request(
        self,
        method: str,
        path: str,
        body: str = "",
        secret: Optional[str] = None,
        content_length: bool = True,
    ) -> Tuple[int, str]:
        """
        Send a request and return (status, body).
        """
        token = self.secret if secret is None else secret
        payload = body.encode("utf-8")

        lines = [f"{method} {path} HTTP/1.1"]
        if token:
            lines.append(f"Authorization: {token}")
        if content_length:
            lines.append(f"Content-Length: {len(payload)}")
        head = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

        return parse_response(self.send_raw(head + payload))


def parse_response(data: bytes) -> Tuple[int, str]:
    """Split a raw response into (status code, body text)."""
    head, _, body = data.partition(b"\r\n\r\n")
    status_line = head.split(b"\r\n", 1)[0].decode("utf-8")
    return int(status_line.split(" ")[1]), body.decode("utf-8")


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A live server on a free port."""
    server = RunningServer(NotesServer(config))
    server.start()

    yield server

    server.stop()


@pytest.fixture
def client(running_server: RunningServer) -> TLSClient:
    """TLS client for the running server."""
    return TLSClient(running_server.port)
