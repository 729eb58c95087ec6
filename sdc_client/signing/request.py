"""
HTTP Signature Request Signing

Signs outgoing requests the way CloudAPI verifies them.

Signing String:
    date: {timestamp}

Where timestamp is the RFC 1123 date (UTC, "GMT" zone) that is also sent
verbatim in the `date` header. Only this one synthetic line is signed.

Authorization Header:
    Signature keyId="/{user}/keys/{key_id}",algorithm="rsa-sha256" {base64 signature}
"""

import base64
import binascii
import logging
import re
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional, Tuple

import httpx
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from sdc_client.errors import SigningError
from sdc_client.signing.keys import RSA_SHA256, Signer

logger = logging.getLogger(__name__)


_AUTHORIZATION = re.compile(
    r'^Signature keyId="(?P<key_id>[^"]*)",algorithm="(?P<algorithm>[^"]*)" (?P<signature>\S+)$'
)


def format_date(now: Optional[datetime] = None) -> str:
    """
    Format a timestamp for the `date` header.

    Args:
        now: Moment to format (default: current time). Naive values are
             taken as UTC.

    Returns:
        e.g. 'Thu, 05 Jan 2012 21:31:40 GMT'
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return format_datetime(now.astimezone(timezone.utc), usegmt=True)


def create_signing_string(date: str) -> str:
    """Build the exact text that gets signed for a given date header."""
    return f"date: {date}"


def format_authorization(key_id: str, algorithm: str, signature: bytes) -> str:
    """
    Build the Authorization header value.

    Key id and algorithm are quoted, the base64 signature is not.
    """
    signature_b64 = base64.b64encode(signature).decode("ascii")
    return f'Signature keyId="{key_id}",algorithm="{algorithm}" {signature_b64}'


def parse_authorization(header: str) -> Tuple[str, str, bytes]:
    """
    Split an Authorization header back into its parts.

    Returns:
        Tuple of (key_id, algorithm, raw signature bytes)

    Raises:
        ValueError: If the header is not a Signature header
    """
    match = _AUTHORIZATION.match(header)
    if match is None:
        raise ValueError(f"Not a Signature authorization header: {header!r}")
    try:
        signature = base64.b64decode(match.group("signature"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 signature: {e}") from e
    return match.group("key_id"), match.group("algorithm"), signature


def sign_request(
    request: httpx.Request,
    key_id: str,
    signer: Signer,
    now: Optional[datetime] = None,
) -> None:
    """
    Sign a request in place.

    Sets the `date` and `Authorization` headers. The signature is computed
    before either header is written, so a signer failure leaves the
    request untouched.

    Args:
        request: Outgoing request (mutated)
        key_id: Key identifier, '/<user>/keys/<key id>'
        signer: Signer for the private key
        now: Signing time (default: current time)

    Raises:
        SigningError: If the signer fails
    """
    date = format_date(now)
    signing_string = create_signing_string(date)

    try:
        signature = signer.sign(signing_string.encode("utf-8"))
    except SigningError:
        raise
    except Exception as e:
        raise SigningError(f"could not sign request: {e}") from e

    request.headers["date"] = date
    request.headers["Authorization"] = format_authorization(key_id, signer.algorithm, signature)
    logger.debug(f"Signed {request.method} {request.url.path} as {key_id}")


def verify_request_signature(request: httpx.Request, public_key: RSAPublicKey) -> bool:
    """
    Check a signed request against an RSA public key.

    Verifier-side counterpart of sign_request(), useful for debugging key
    setups without a round trip to the server.

    Returns:
        True if the Authorization header verifies over the request's date header
    """
    header = request.headers.get("Authorization")
    date = request.headers.get("date")
    if not header or not date:
        return False

    try:
        _key_id, algorithm, signature = parse_authorization(header)
    except ValueError:
        return False
    if algorithm != RSA_SHA256:
        return False

    try:
        public_key.verify(
            signature,
            create_signing_string(date).encode("utf-8"),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except InvalidSignature:
        return False
    return True
