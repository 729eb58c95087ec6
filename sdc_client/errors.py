"""
Error Taxonomy and Response Classification

Every failure raised by the client derives from SDCClientError so callers can
tell infrastructure problems apart from errors reported by CloudAPI itself.

    SDCError           - remote-reported {code, message} (the domain error)
    everything else    - local or transport failure, treat as opaque

classify_response() inspects an HTTP response and turns a CloudAPI error
envelope into an SDCError.
"""

import json
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


# Status codes CloudAPI documents as carrying an error envelope.
# Anything else is treated as success.
ERROR_STATUS_CODES = frozenset({
    400,  # Bad Request
    401,  # Unauthorized
    403,  # Forbidden
    404,  # Not Found
    405,  # Method Not Allowed
    406,  # Not Acceptable
    409,  # Conflict
    413,  # Request Entity Too Large
    415,  # Unsupported Media Type
    420,  # Slow Down
    449,  # Retry With
    500,  # Internal Error
    502,  # Bad Gateway
    503,  # Service Unavailable
})


class SDCClientError(Exception):
    """Base class for all client errors."""
    pass


class PrivateKeyError(SDCClientError):
    """The signing key could not be materialized."""
    pass


class KeyFormatError(PrivateKeyError):
    """Key data is not a usable PEM-encoded private key."""
    pass


class UnsupportedKeyTypeError(PrivateKeyError):
    """PEM block carries a key type this client cannot sign with."""
    def __init__(self, label: str):
        super().__init__(f"unsupported key type {label!r}")
        self.label = label


class KeyLoadIOError(PrivateKeyError):
    """Key file is missing or unreadable."""
    def __init__(self, path: str, reason: str):
        super().__init__(f"could not read private key {path!r}: {reason}")
        self.path = path


class SigningError(SDCClientError):
    """Signer failed to produce a signature."""
    pass


class SerializationError(SDCClientError):
    """Request body could not be encoded as JSON."""
    pass


class RequestConstructionError(SDCClientError):
    """Request URL could not be built from base URL and path."""
    pass


class TransportError(SDCClientError):
    """Request never reached the server (DNS, refused connection, timeout)."""
    pass


class ResponseDecodeError(SDCClientError):
    """Response body could not be decoded into the expected shape."""
    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SDCError(SDCClientError):
    """
    Error reported by CloudAPI in its own error envelope.

    Attributes:
        code: Remote error code (e.g. "InvalidArgument")
        message: Human-readable message from the server
        status_code: HTTP status the error arrived with (if known)
    """
    def __init__(self, code: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status_code = status_code

    def to_dict(self) -> dict:
        """Serialize to the same {code, message} shape the API uses."""
        return {"code": self.code, "message": self.message}


def classify_response(response: httpx.Response) -> Optional[SDCError]:
    """
    Turn an error response into a domain error.

    Args:
        response: Received HTTP response

    Returns:
        SDCError if the status is one of ERROR_STATUS_CODES, None otherwise

    Raises:
        ResponseDecodeError: If an error status arrived with a body that is
            not a {"code": str, "message": str} object
    """
    if response.status_code not in ERROR_STATUS_CODES:
        return None

    body = response.text
    try:
        payload = json.loads(response.content)
    except ValueError as e:
        logger.warning(f"Undecodable error body (HTTP {response.status_code}): {body[:200]!r}")
        raise ResponseDecodeError(
            f"HTTP {response.status_code} with non-JSON error body: {e}",
            status_code=response.status_code,
            body=body,
        ) from e

    if not isinstance(payload, dict):
        raise ResponseDecodeError(
            f"HTTP {response.status_code} error body is not an object",
            status_code=response.status_code,
            body=body,
        )

    code = payload.get("code")
    message = payload.get("message")
    if not isinstance(code, str) or not isinstance(message, str):
        raise ResponseDecodeError(
            f"HTTP {response.status_code} error body lacks string 'code'/'message'",
            status_code=response.status_code,
            body=body,
        )

    logger.warning(f"API error {response.status_code}: {code}: {message}")
    return SDCError(code, message, status_code=response.status_code)
