"""
HTTP Signature Request Signing

rsa-sha256 request signing for CloudAPI authentication.
"""

from sdc_client.signing.keys import (
    RSA_SHA256,
    RSASigner,
    Signer,
    load_private_key,
    parse_private_key,
)
from sdc_client.signing.request import (
    create_signing_string,
    format_authorization,
    format_date,
    parse_authorization,
    sign_request,
    verify_request_signature,
)

__all__ = [
    # Keys
    "RSA_SHA256",
    "RSASigner",
    "Signer",
    "load_private_key",
    "parse_private_key",
    # Requests
    "create_signing_string",
    "format_authorization",
    "format_date",
    "parse_authorization",
    "sign_request",
    "verify_request_signature",
]
