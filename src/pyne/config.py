"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the notes server needs to know at startup lives in one
dataclass. An instance directory supplies most of it:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                       INSTANCE DIRECTORY                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   my-notes/                                                         │
    │   ├── notes/          ← note files (the notes root)                 │
    │   ├── server.crt      ← TLS certificate chain (PEM)                 │
    │   ├── server.key      ← TLS private key (PKCS#8 PEM)                │
    │   └── secret          ← shared secret, mode 0600                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHERE THE SECRET COMES FROM
=============================================================================

    1. PYNE_SECRET environment variable (if set and non-empty)
    2. <instance>/secret file, surrounding whitespace stripped

Nothing is compiled into the program. validate() refuses to start
without one.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .http.response import DEFAULT_SERVER_NAME


SECRET_ENV_VAR = "PYNE_SECRET"


def load_secret(secret_file: Path) -> Optional[str]:
    """
    Resolve the shared secret.

    Returns:
        The secret from the environment or the secret file, or None.
    """
    from_env = os.getenv(SECRET_ENV_VAR)
    if from_env and from_env.strip():
        return from_env.strip()

    try:
        token = Path(secret_file).read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ConfigError(f"Cannot read secret file {secret_file}: {e}") from e

    return token or None


@dataclass
class ServerConfig:
    """
    Configuration for the notes server.

    Development:
        ServerConfig.for_instance("my-notes", port=8443, log_level="DEBUG")

    Tests:
        ServerConfig(instance_dir=str(tmp), port=0, auth_token="s3cret")
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Bind address. Loopback only unless overridden."""

    port: int = 8443
    """
    Port to listen on. 0 asks the OS for a free port, which tests use.
    """

    backlog: int = 128
    """Maximum number of queued connections."""

    timeout: float = 30.0
    """
    Socket timeout in seconds for each client connection. Also bounds how
    long a connection waits for its filesystem work.
    """

    # ─────────────────────────────────────────────────────────────────────
    # INSTANCE
    # ─────────────────────────────────────────────────────────────────────

    instance_dir: str = "."
    """Directory holding notes/, server.crt, server.key and secret."""

    auth_token: Optional[str] = None
    """Shared secret clients send in the Authorization header."""

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST FRAMING
    # ─────────────────────────────────────────────────────────────────────

    chunk_size: int = 256
    """Bytes requested per recv() while reading a request."""

    max_request_size: int = 10 * 1024 * 1024  # 10 MB
    """Requests larger than this are dropped without a response."""

    # ─────────────────────────────────────────────────────────────────────
    # WORKERS / LOGGING
    # ─────────────────────────────────────────────────────────────────────

    io_workers: int = 4
    """Threads in the blocking-I/O pool that run note store work."""

    log_level: str = "INFO"

    server_name: str = DEFAULT_SERVER_NAME
    """Value of the Server response header."""

    # ─────────────────────────────────────────────────────────────────────
    # DERIVED PATHS
    # ─────────────────────────────────────────────────────────────────────

    @property
    def instance_path(self) -> Path:
        return Path(self.instance_dir)

    @property
    def notes_dir(self) -> Path:
        return self.instance_path / "notes"

    @property
    def cert_file(self) -> Path:
        return self.instance_path / "server.crt"

    @property
    def key_file(self) -> Path:
        return self.instance_path / "server.key"

    @property
    def secret_file(self) -> Path:
        return self.instance_path / "secret"

    @classmethod
    def for_instance(cls, instance_dir: str = ".", **overrides) -> "ServerConfig":
        """
        Build a configuration for an instance directory, loading its secret.

        An explicit auth_token in overrides wins over the environment and
        the secret file.
        """
        config = cls(instance_dir=str(instance_dir), **overrides)
        if config.auth_token is None:
            config.auth_token = load_secret(config.secret_file)
        return config

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        PYNE_HOST        Bind address (default: 127.0.0.1)
        PYNE_PORT        Port (default: 8443)
        PYNE_INSTANCE    Instance directory (default: .)
        PYNE_SECRET      Shared secret (default: <instance>/secret)
        PYNE_TIMEOUT     Socket timeout in seconds (default: 30)
        PYNE_IO_WORKERS  Blocking-I/O threads (default: 4)
        PYNE_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        try:
            port = int(os.getenv("PYNE_PORT", "8443"))
            timeout = float(os.getenv("PYNE_TIMEOUT", "30"))
            io_workers = int(os.getenv("PYNE_IO_WORKERS", "4"))
        except ValueError as e:
            raise ConfigError(f"Invalid environment configuration: {e}") from e

        return cls.for_instance(
            os.getenv("PYNE_INSTANCE", "."),
            host=os.getenv("PYNE_HOST", "127.0.0.1"),
            port=port,
            timeout=timeout,
            io_workers=io_workers,
            log_level=os.getenv("PYNE_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Check the configuration before anything binds or spawns.

        Raises:
            ConfigError: On the first problem found.
        """
        if not 0 <= self.port < 65536:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535 (0 picks a free port).")

        if self.chunk_size < 1:
            raise ConfigError("chunk_size must be >= 1")

        if self.max_request_size < self.chunk_size:
            raise ConfigError("max_request_size must be >= chunk_size")

        if self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.io_workers < 1:
            raise ConfigError("io_workers must be >= 1")

        if not self.auth_token or not self.auth_token.strip():
            raise ConfigError(
                f"No shared secret: set {SECRET_ENV_VAR} or create {self.secret_file}"
            )

        if not self.notes_dir.is_dir():
            raise ConfigError(f"Notes directory not found: {self.notes_dir}")

        for path in (self.cert_file, self.key_file):
            if not path.is_file():
                raise ConfigError(f"TLS file not found: {path}")
