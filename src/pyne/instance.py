"""
=============================================================================
INSTANCE SCAFFOLDING
=============================================================================

`pyne new NAME` lays out everything a server needs to run:

    NAME/
    ├── notes/          empty notes root
    ├── server.crt      self-signed certificate, SAN "tls-server"
    ├── server.key      EC P-256 private key, PKCS#8 PEM, mode 0600
    └── secret          random shared secret, mode 0600

Clients talk to the server by pinning server.crt and connecting with the
server name "tls-server", so the certificate does not have to match the
host it runs on.

=============================================================================
"""

import datetime
import logging
import os
import secrets
from pathlib import Path
from typing import Union

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from .errors import InstanceError


logger = logging.getLogger(__name__)


SERVER_NAME = "tls-server"
CERT_VALIDITY_DAYS = 3650
SECRET_BYTES = 32


def generate_certificate(common_name: str = SERVER_NAME):
    """
    Create a self-signed certificate and its private key.

    Returns:
        (certificate_pem, private_key_pem) as bytes
    """
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)

    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=CERT_VALIDITY_DAYS))
        .add_extension(
            x509.SubjectAlternativeName([x509.DNSName(common_name)]),
            critical=False,
        )
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return cert_pem, key_pem


def _write_private(path: Path, data: bytes) -> None:
    path.write_bytes(data)
    os.chmod(path, 0o600)


def create_instance(name: Union[str, Path]) -> Path:
    """
    Create a new server instance directory.

    Args:
        name: Directory to create. Must not exist yet.

    Returns:
        Path of the created instance.

    Raises:
        InstanceError: If the directory exists or cannot be populated.
    """
    root = Path(name)
    if root.exists():
        raise InstanceError(f"Directory {root} already exists")

    try:
        root.mkdir(parents=True)
        (root / "notes").mkdir()

        cert_pem, key_pem = generate_certificate()
        (root / "server.crt").write_bytes(cert_pem)
        _write_private(root / "server.key", key_pem)

        token = secrets.token_urlsafe(SECRET_BYTES)
        _write_private(root / "secret", (token + "\n").encode("utf-8"))
    except OSError as e:
        raise InstanceError(f"Failed to create instance {root}: {e}") from e

    logger.info(f"Created new server instance in {root}")
    return root
