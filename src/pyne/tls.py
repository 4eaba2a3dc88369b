"""
Server-side TLS context.

One certificate chain and private key, no client certificate
verification. TLS 1.2 is the floor and compression is off.
"""

import logging
import ssl
from pathlib import Path
from typing import Union

from .errors import ConfigError


logger = logging.getLogger(__name__)


def build_server_context(
    cert_file: Union[str, Path],
    key_file: Union[str, Path],
) -> ssl.SSLContext:
    """
    Load the instance's certificate and key into a server context.

    Raises:
        ConfigError: If the files are missing, unreadable or don't match.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.options |= ssl.OP_NO_COMPRESSION
    context.verify_mode = ssl.CERT_NONE

    try:
        context.load_cert_chain(certfile=str(cert_file), keyfile=str(key_file))
    except (ssl.SSLError, OSError) as e:
        raise ConfigError(f"Cannot load TLS certificate/key: {e}") from e

    logger.debug(f"Loaded TLS certificate {cert_file}")
    return context
