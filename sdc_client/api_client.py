"""
API Client for Joyent SmartDataCenter CloudAPI

Every request is authenticated with an HTTP Signature over its `date`
header, made with the account's RSA private key.

Request pipeline (dispatch):
    encode JSON body -> build URL -> sign -> send -> classify -> decode

Nothing is retried. Each failure is raised to the caller as a subclass of
SDCClientError; SDCError is the only one carrying a server-reported code.

Thread safety:
    The signing key is loaded lazily on first use under a lock, so one
    client may be shared between threads. A key that fails to load is not
    cached; the next request tries again.
"""
import json as json_module
import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Union

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from sdc_client.config import ClientConfig, get_settings, resolve_config
from sdc_client.errors import (
    RequestConstructionError,
    ResponseDecodeError,
    SerializationError,
    TransportError,
    classify_response,
)
from sdc_client.schemas import CreateMachineRequest, Machine
from sdc_client.signing.keys import Signer, load_private_key
from sdc_client.signing.request import sign_request

logger = logging.getLogger(__name__)

SDC_CLIENT_VERSION = "0.1.0"

# Sent on every request
SDC_API_VERSION = "~7.0"
USER_AGENT = f"sdc-client-python/{SDC_CLIENT_VERSION}"


@dataclass
class APIResponse:
    """
    Result of a successful dispatch.

    Attributes:
        response: The raw HTTP response (status, headers, body)
        data: Decoded body if a response_model was given, else None
    """
    response: httpx.Response
    data: Any = None

    @property
    def status_code(self) -> int:
        return self.response.status_code


class SDCClient:
    """
    HTTP client for the SmartDataCenter CloudAPI.

    Usage:
        with SDCClient(resolve_config(account="bert", key_id="laptop")) as client:
            machines = client.list_machines()
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: Optional[float] = None,
        verify: Optional[bool] = None,
    ):
        """
        Initialize API client.

        Args:
            config: Resolved identity (default: resolve_config() from environment)
            transport: httpx transport override (tests, proxies)
            timeout: Request timeout in seconds (default: SDC_TIMEOUT or httpx default)
            verify: TLS verification (default: SDC_VERIFY_SSL)
        """
        self.config = config or resolve_config()

        settings = get_settings()
        if timeout is None:
            timeout = settings.timeout
        if verify is None:
            verify = settings.verify_ssl

        client_kwargs = {"verify": verify}
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        if transport is not None:
            client_kwargs["transport"] = transport
        self._http = httpx.Client(**client_kwargs)

        self._signer: Optional[Signer] = None
        self._signer_lock = threading.Lock()

        logger.debug(f"SDCClient initialized: {self.config.url} (user={self.config.user})")

    def __enter__(self) -> "SDCClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def get_signer(self) -> Signer:
        """
        Return the signer, loading the private key on first use.

        Raises:
            PrivateKeyError: If the key cannot be loaded (not cached)
        """
        signer = self._signer
        if signer is not None:
            return signer

        with self._signer_lock:
            if self._signer is None:
                try:
                    self._signer = load_private_key(self.config.key_path)
                except Exception as e:
                    logger.warning(f"Failed to load signing key {self.config.key_path}: {e}")
                    raise
            return self._signer

    def sign_request(self, request: httpx.Request) -> None:
        """Sign `request` in place with this client's key."""
        sign_request(request, self.config.key_identifier, self.get_signer())

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def new_request(self, method: str, path: str, content: Optional[bytes] = None) -> httpx.Request:
        """
        Build a request for `path` on the configured endpoint.

        Raises:
            RequestConstructionError: If base URL + path is not a valid absolute URL
        """
        raw_url = f"{self.config.url}{path}"
        try:
            url = httpx.URL(raw_url)
        except httpx.InvalidURL as e:
            raise RequestConstructionError(f"invalid URL {raw_url!r}: {e}") from e

        if url.scheme not in ("http", "https") or not url.host:
            raise RequestConstructionError(f"invalid URL {raw_url!r}: not an absolute http(s) URL")

        return httpx.Request(method.upper(), url, content=content)

    @staticmethod
    def _encode_body(data: Any) -> bytes:
        try:
            if isinstance(data, BaseModel):
                data = data.model_dump(mode="json", exclude_none=True)
            return json_module.dumps(data, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError, PydanticSerializationError) as e:
            raise SerializationError(f"could not encode request body as JSON: {e}") from e

    def dispatch(
        self,
        method: str,
        path: str,
        data: Any = None,
        response_model: Any = None,
    ) -> APIResponse:
        """
        Send an authenticated request.

        Args:
            method: HTTP method
            path: Path appended to the base URL (e.g. '/bert/machines')
            data: JSON-serializable body or pydantic model (None: no body)
            response_model: Type to decode a successful body into, e.g. a
                pydantic model or List[Machine] (None: leave body undecoded)

        Returns:
            APIResponse with the raw response and decoded data

        Raises:
            SerializationError: Body not JSON-serializable (nothing sent)
            RequestConstructionError: Bad URL (nothing sent)
            PrivateKeyError: Signing key could not be loaded (nothing sent)
            SigningError: Signer failed (nothing sent)
            TransportError: Server never reached
            SDCError: Server returned an error envelope
            ResponseDecodeError: Body did not decode (error or success path)
        """
        body = self._encode_body(data) if data is not None else None

        request = self.new_request(method, path, content=body)
        self.sign_request(request)

        if body is not None:
            request.headers["Content-Type"] = "application/json"
        request.headers["Api-Version"] = SDC_API_VERSION
        request.headers["User-Agent"] = USER_AGENT

        try:
            response = self._http.send(request)
        except httpx.DecodingError as e:
            raise ResponseDecodeError(
                f"could not decode {request.method} {request.url} response content: {e}",
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request error: {request.method} {request.url}: {e}")
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")

        domain_error = classify_response(response)
        if domain_error is not None:
            raise domain_error

        if response_model is None:
            return APIResponse(response=response)

        try:
            decoded = TypeAdapter(response_model).validate_json(response.content)
        except ValidationError as e:
            raise ResponseDecodeError(
                f"could not decode HTTP {response.status_code} body: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e
        return APIResponse(response=response, data=decoded)

    def get(self, path: str, response_model: Any = None) -> APIResponse:
        return self.dispatch("GET", path, response_model=response_model)

    def post(self, path: str, data: Any = None, response_model: Any = None) -> APIResponse:
        return self.dispatch("POST", path, data, response_model)

    def put(self, path: str, data: Any = None, response_model: Any = None) -> APIResponse:
        return self.dispatch("PUT", path, data, response_model)

    def delete(self, path: str, data: Any = None, response_model: Any = None) -> APIResponse:
        return self.dispatch("DELETE", path, data, response_model)

    # ------------------------------------------------------------------
    # Machines
    # ------------------------------------------------------------------

    def _machines_path(self, machine_id: Optional[str] = None) -> str:
        path = f"/{self.config.user}/machines"
        if machine_id:
            path = f"{path}/{machine_id}"
        return path

    def list_machines(self) -> List[Machine]:
        """
        Fetch all machines of the acting user.

        Calls: GET /:login/machines
        """
        return self.get(self._machines_path(), List[Machine]).data

    def get_machine(self, machine_id: str) -> Machine:
        """Calls: GET /:login/machines/:id"""
        return self.get(self._machines_path(machine_id), Machine).data

    def create_machine(self, request: Union[CreateMachineRequest, dict]) -> Machine:
        """
        Provision a machine.

        The returned machine is incomplete; poll get_machine() until its
        state is "running" to get IPs and credentials.

        Calls: POST /:login/machines
        """
        if isinstance(request, dict):
            try:
                request = CreateMachineRequest(**request)
            except ValidationError as e:
                raise SerializationError(f"invalid create machine request: {e}") from e
        return self.post(self._machines_path(), request, Machine).data

    def delete_machine(self, machine_id: str) -> None:
        """
        Delete a machine. It must be in state "stopped".

        Calls: DELETE /:login/machines/:id
        """
        self.delete(self._machines_path(machine_id))

    def stop_machine(self, machine_id: str) -> None:
        """Calls: POST /:login/machines/:id?action=stop"""
        self.post(f"{self._machines_path(machine_id)}?action=stop")

    def start_machine(self, machine_id: str) -> None:
        """Calls: POST /:login/machines/:id?action=start"""
        self.post(f"{self._machines_path(machine_id)}?action=start")
