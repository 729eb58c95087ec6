"""
SmartDataCenter CloudAPI Client

Client for the Joyent SmartDataCenter CloudAPI. Requests are authenticated
with HTTP Signatures (rsa-sha256 over the `date` header).

    from sdc_client import SDCClient, SDCError, resolve_config

    with SDCClient(resolve_config(account="bert", key_id="laptop")) as client:
        try:
            machines = client.list_machines()
        except SDCError as e:
            print(e.code, e.message)
"""
from sdc_client.api_client import SDC_CLIENT_VERSION, APIResponse, SDCClient
from sdc_client.config import ClientConfig, Settings, get_settings, resolve_config
from sdc_client.errors import (
    KeyFormatError,
    KeyLoadIOError,
    PrivateKeyError,
    RequestConstructionError,
    ResponseDecodeError,
    SDCClientError,
    SDCError,
    SerializationError,
    SigningError,
    TransportError,
    UnsupportedKeyTypeError,
    classify_response,
)
from sdc_client.schemas import CreateMachineRequest, Machine

__version__ = SDC_CLIENT_VERSION

__all__ = [
    "APIResponse",
    "SDCClient",
    "ClientConfig",
    "Settings",
    "get_settings",
    "resolve_config",
    "CreateMachineRequest",
    "Machine",
    "classify_response",
    # Errors
    "SDCClientError",
    "PrivateKeyError",
    "KeyFormatError",
    "KeyLoadIOError",
    "UnsupportedKeyTypeError",
    "SigningError",
    "SerializationError",
    "RequestConstructionError",
    "TransportError",
    "ResponseDecodeError",
    "SDCError",
]
