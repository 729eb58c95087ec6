"""
Private Key Loading

Parses PEM-encoded private keys into Signer objects.
Uses the cryptography library for all cryptographic operations.

A Signer is anything with an `algorithm` name and a `sign(data) -> bytes`
method. Key types are dispatched on the PEM block label through
_KEY_PARSERS, so supporting another algorithm means adding a parser and a
Signer class; callers never change.
"""

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import Callable, Dict, Protocol, Union, runtime_checkable

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from sdc_client.errors import KeyFormatError, KeyLoadIOError, UnsupportedKeyTypeError

logger = logging.getLogger(__name__)


# Name sent in the Authorization header. Tied to SHA-256 + PKCS#1 v1.5;
# changing either breaks verification on the server.
RSA_SHA256 = "rsa-sha256"

_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n"
    rb"(?P<body>.*?)"
    rb"-----END (?P=label)-----",
    re.DOTALL,
)


@runtime_checkable
class Signer(Protocol):
    """Produces raw signatures that verify against a public key."""

    algorithm: str

    def sign(self, data: bytes) -> bytes:
        """Hash `data` with the key type's digest and sign it."""
        ...


class RSASigner:
    """
    rsa-sha256 signer.

    PKCS#1 v1.5 padding is deterministic: the same key and message always
    yield the same signature.
    """

    algorithm = RSA_SHA256

    def __init__(self, private_key: RSAPrivateKey):
        self._private_key = private_key

    def sign(self, data: bytes) -> bytes:
        return self._private_key.sign(data, padding.PKCS1v15(), hashes.SHA256())

    def public_key(self) -> RSAPublicKey:
        return self._private_key.public_key()

    def __repr__(self) -> str:
        return f"RSASigner(key_size={self._private_key.key_size})"


def _parse_rsa_private_key(der: bytes) -> RSASigner:
    try:
        private_key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyFormatError(f"malformed RSA private key: {e}") from e
    if not isinstance(private_key, RSAPrivateKey):
        raise KeyFormatError(f"expected an RSA key, got {type(private_key).__name__}")
    return RSASigner(private_key)


# PEM label -> parser of the DER payload
_KEY_PARSERS: Dict[str, Callable[[bytes], Signer]] = {
    "RSA PRIVATE KEY": _parse_rsa_private_key,
}


def parse_private_key(pem_data: bytes) -> Signer:
    """
    Parse a PEM-encoded private key.

    Only the first PEM block is considered.

    Args:
        pem_data: Raw PEM bytes

    Returns:
        Signer for the key

    Raises:
        KeyFormatError: No PEM block, encrypted block, or malformed DER
        UnsupportedKeyTypeError: PEM label has no registered parser
    """
    if isinstance(pem_data, str):
        pem_data = pem_data.encode("ascii", errors="replace")

    match = _PEM_BLOCK.search(pem_data)
    if match is None:
        raise KeyFormatError("no PEM key block found")

    label = match.group("label").decode("ascii")
    parser = _KEY_PARSERS.get(label)
    if parser is None:
        raise UnsupportedKeyTypeError(label)

    body = match.group("body")
    if b":" in body:
        # RFC 1421 headers (Proc-Type, DEK-Info) mean a passphrase-protected key
        raise KeyFormatError("encrypted private keys are not supported")

    try:
        der = base64.b64decode(b"".join(body.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise KeyFormatError(f"invalid base64 in PEM block: {e}") from e

    return parser(der)


def load_private_key(path: Union[str, Path]) -> Signer:
    """
    Load and parse a private key file.

    Args:
        path: Path to PEM file (~ is expanded)

    Returns:
        Signer for the key

    Raises:
        KeyLoadIOError: File missing or unreadable
        KeyFormatError, UnsupportedKeyTypeError: File content is not a usable key
    """
    path = Path(path).expanduser()
    try:
        pem_data = path.read_bytes()
    except OSError as e:
        raise KeyLoadIOError(str(path), e.strerror or str(e)) from e

    signer = parse_private_key(pem_data)
    logger.info(f"Loaded {signer.algorithm} signing key from {path}")
    return signer
