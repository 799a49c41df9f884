"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Blocking SDKMS client and builder.

Usage::

    from sdkms import SdkmsClient

    client = SdkmsClient.builder().set_api_endpoint("https://sdkms.example.com").build()
    with client.authenticate_with_api_key(api_key) as session:
        signed = session.sign(SignRequest(key=SobjectDescriptor.by_name("k"), ...))
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Optional, Tuple, Type, Union
from uuid import UUID

from pydantic import ValidationError

from sdkms.adapters.base import BaseAdapter, SDKRequest, SDKResponse
from sdkms.adapters.http import RequestsAdapter
from sdkms.api.accounts import AccountOperations
from sdkms.api.approval_requests import (
    ApprovalRequestOperations,
    ApprovalRequestRequest,
    OperationCreateApprovalRequest,
)
from sdkms.api.apps import AppOperations
from sdkms.api.crypto import CryptoOperations
from sdkms.api.groups import GroupOperations
from sdkms.api.health import HealthOperations
from sdkms.api.keys import SobjectOperations
from sdkms.api.plugins import PluginOperations
from sdkms.api.session import (
    AuthResponse,
    OperationAuthenticate,
    OperationTerminate,
    SessionOperations,
)
from sdkms.api.users import UserOperations
from sdkms.api.version import VersionOperations
from sdkms.approvals import PendingApproval
from sdkms.config.settings import DEFAULT_API_ENDPOINT, SdkmsConfig
from sdkms.exceptions import (
    ApiError,
    EncoderError,
    IoError,
    SDKConfigurationError,
    SdkmsError,
    error_from_status,
)
from sdkms.logging_config import get_logger, log_api_exchange, log_authentication_failure
from sdkms.operations import Operation, PathParams, QueryParams, type_adapter
from sdkms.session import Credential, SessionState

logger = get_logger(__name__)

# Marker for "use the credential held by the session"
_SESSION_CREDENTIAL = object()


class BaseSdkmsClient(
    SessionOperations,
    ApprovalRequestOperations,
    CryptoOperations,
    SobjectOperations,
    AccountOperations,
    AppOperations,
    GroupOperations,
    PluginOperations,
    UserOperations,
    VersionOperations,
    HealthOperations,
):
    """State and request/response handling shared by both clients.

    Subclasses provide ``execute``, the authentication calls and
    ``terminate`` in their own calling convention.
    """

    def __init__(
        self,
        adapter: Any,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        credential: Optional[Credential] = None,
        auth_response: Optional[AuthResponse] = None,
        owns_adapter: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._adapter = adapter
        self._api_endpoint = api_endpoint.rstrip("/")
        self._state = SessionState(credential, auth_response, clock)
        self._owns_adapter = owns_adapter

    # -- Session accessors ---------------------------------------------------

    @property
    def api_endpoint(self) -> str:
        return self._api_endpoint

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def auth_response(self) -> Optional[AuthResponse]:
        return self._state.auth_response

    @property
    def entity_id(self) -> Optional[UUID]:
        """ID of the app, user or plugin the session belongs to."""
        auth = self._state.auth_response
        return auth.entity_id if auth is not None else None

    @property
    def last_activity(self) -> float:
        return self._state.last_activity

    def has_session(self) -> bool:
        """True when requests carry a session (bearer) token."""
        return self._state.has_session()

    def expires_in(self) -> Optional[int]:
        """Seconds until the session expires, None if unknown or already expired."""
        return self._state.expires_in()

    def _derive(self, credential: Credential, auth_response: AuthResponse):
        return type(self)(
            adapter=self._adapter,
            api_endpoint=self._api_endpoint,
            credential=credential,
            auth_response=auth_response,
            owns_adapter=False,
            clock=self._state.clock,
        )

    # -- Dispatch ------------------------------------------------------------

    def _build_request(
        self,
        operation: Type[Operation],
        body: Any = None,
        path_params: PathParams = None,
        query_params: Optional[QueryParams] = None,
        credential: Any = _SESSION_CREDENTIAL,
    ) -> SDKRequest:
        path = operation.path(path_params, query_params)
        headers = {}

        payload = None
        value = operation.to_body(body)
        if operation.has_body():
            try:
                payload = json.dumps(value).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise EncoderError(f"cannot serialize {operation.__name__} request body: {e}") from e
            headers["Content-Type"] = "application/json"

        if credential is _SESSION_CREDENTIAL:
            authorization = self._state.authorization_header()
        else:
            authorization = credential.header_value() if credential is not None else None
        if authorization is not None:
            headers["Authorization"] = authorization

        return SDKRequest(
            method=operation.method.value,
            url=f"{self._api_endpoint}{path}",
            headers=headers,
            body=payload,
        )

    def _handle_response(
        self,
        operation: Type[Operation],
        request: SDKRequest,
        response: SDKResponse,
    ) -> Any:
        self._state.touch()
        log_api_exchange(
            logger, request.method, request.url, response.status_code, response.elapsed_ms
        )

        if not response.is_success:
            try:
                message = response.body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise IoError(f"cannot read error response body: {e}") from e
            raise error_from_status(response.status_code, message)

        if operation.output_type is None:
            return None
        if response.body.strip():
            try:
                value = json.loads(response.body)
            except ValueError as e:
                raise EncoderError(f"invalid JSON in {operation.__name__} response: {e}") from e
        else:
            value = None
        return operation.decode_output(value)

    def _log_network_failure(self, request: SDKRequest, error: SdkmsError) -> None:
        logger.info(
            "request_failed",
            method=request.method,
            url=request.url,
            error=str(error),
        )

    def _approval_request_for(
        self,
        operation: Type[Operation],
        body: Any,
        path_params: PathParams,
        query_params: Optional[QueryParams],
        description: Optional[str],
    ) -> ApprovalRequestRequest:
        return ApprovalRequestRequest(
            operation=operation.path(path_params, query_params),
            method=operation.method.value,
            body=operation.to_body(body),
            description=description,
        )

    def request_approval(
        self,
        operation: Type[Operation],
        body: Any = None,
        path_params: PathParams = None,
        query_params: Optional[QueryParams] = None,
        description: Optional[str] = None,
    ):
        """
        Ask for approval to run an operation instead of running it.

        Returns:
            ``PendingApproval`` for the created request (awaitable on the async client)
        """
        req = self._approval_request_for(operation, body, path_params, query_params, description)
        return self._map_result(
            self.execute(OperationCreateApprovalRequest, req),
            lambda record: PendingApproval(record.request_id, operation),
        )

    @staticmethod
    def _decode_as(output_type: Any, value: Any) -> Any:
        try:
            return type_adapter(output_type).validate_python(value)
        except ValidationError as e:
            raise EncoderError(f"cannot decode value as {output_type}: {e}") from e

    def _session_ended(self) -> None:
        self._state.clear()
        logger.info("session_terminated", api_endpoint=self._api_endpoint)

    def _authenticated(self, auth_method: str, auth: AuthResponse):
        logger.info(
            "session_authenticated",
            auth_method=auth_method,
            entity_id=str(auth.entity_id),
            expires_in=auth.expires_in,
        )
        return self._derive(Credential.bearer(auth.access_token), auth)

    @staticmethod
    def _cert_credential(app_id: Optional[Union[UUID, str]]) -> Optional[Credential]:
        if app_id is None:
            return None
        return Credential.from_user_pass(app_id, "")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(api_endpoint={self._api_endpoint!r}, "
            f"has_session={self.has_session()})"
        )


class SdkmsClient(BaseSdkmsClient):
    """Blocking client for the SDKMS REST API.

    Every endpoint wrapper (``sign``, ``list_sobjects``, ...) returns the
    decoded response or raises an ``SdkmsError``. A client may be shared
    between threads.
    """

    def __init__(
        self,
        adapter: Optional[BaseAdapter] = None,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        credential: Optional[Credential] = None,
        auth_response: Optional[AuthResponse] = None,
        owns_adapter: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(
            adapter or RequestsAdapter(),
            api_endpoint=api_endpoint,
            credential=credential,
            auth_response=auth_response,
            owns_adapter=owns_adapter,
            clock=clock,
        )

    @staticmethod
    def builder() -> "SdkmsClientBuilder":
        return SdkmsClientBuilder()

    def execute(
        self,
        operation: Type[Operation],
        body: Any = None,
        path_params: PathParams = None,
        query_params: Optional[QueryParams] = None,
    ) -> Any:
        """
        Run one operation and decode its output.

        Args:
            operation: Operation descriptor class
            body: Request body, validated against ``operation.body_type``
            path_params: Values for the path placeholders, in order
            query_params: Query parameter structure

        Returns:
            Decoded output, None for operations without output

        Raises:
            ApiError: On a non-2xx response (subclass chosen by status)
            NetworkError: If no response was received
            EncoderError: If the body cannot be encoded or the output decoded
        """
        request = self._build_request(operation, body, path_params, query_params)
        return self._send(operation, request)

    def _send(self, operation: Type[Operation], request: SDKRequest) -> Any:
        try:
            response = self._adapter.send(request)
        except SdkmsError as e:
            self._log_network_failure(request, e)
            raise
        return self._handle_response(operation, request, response)

    @staticmethod
    def _map_result(result: Any, fn: Callable[[Any], Any]) -> Any:
        return fn(result)

    # -- Authentication ------------------------------------------------------

    def _authenticate(self, credential: Optional[Credential], auth_method: str) -> "SdkmsClient":
        request = self._build_request(OperationAuthenticate, credential=credential)
        try:
            auth = self._send(OperationAuthenticate, request)
        except ApiError as e:
            log_authentication_failure(
                logger, auth_method, reason=e.message, status_code=e.status_code
            )
            raise
        return self._authenticated(auth_method, auth)

    def authenticate_with_api_key(self, api_key: str) -> "SdkmsClient":
        """Start a session with an API key; returns a new client holding the session."""
        return self._authenticate(Credential.from_api_key(api_key), "api_key")

    def authenticate_user(self, email: str, password: str) -> "SdkmsClient":
        return self._authenticate(Credential.from_user_pass(email, password), "user")

    def authenticate_app(self, app_id: Union[UUID, str], secret: str) -> "SdkmsClient":
        return self._authenticate(Credential.from_user_pass(app_id, secret), "app")

    def authenticate_with_cert(self, app_id: Optional[Union[UUID, str]] = None) -> "SdkmsClient":
        """Start a session with the client certificate configured on the transport."""
        return self._authenticate(self._cert_credential(app_id), "cert")

    def terminate(self) -> None:
        """End the session, if any. Calling it again is a no-op.

        The token is dropped locally even if the service call fails.
        """
        credential = self._state.take_bearer()
        if credential is None:
            return
        try:
            request = self._build_request(OperationTerminate, credential=credential)
            self._send(OperationTerminate, request)
        finally:
            self._session_ended()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_adapter:
            self._adapter.close()

    def __enter__(self) -> "SdkmsClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            self.terminate()
        except SdkmsError as e:
            logger.warning("session_teardown_failed", error=str(e))
        finally:
            self.close()


class SdkmsClientBuilder:
    """Builder for ``SdkmsClient``.

    Example::

        client = (
            SdkmsClientBuilder()
            .set_api_endpoint("https://sdkms.example.com")
            .set_api_key(api_key)
            .build()
        )
    """

    def __init__(self) -> None:
        self._api_endpoint = DEFAULT_API_ENDPOINT
        self._credential: Optional[Credential] = None
        self._adapter: Any = None
        self._timeout = 30.0
        self._verify: Union[bool, str] = True
        self._cert: Optional[Union[str, Tuple[str, str]]] = None
        self._pool_connections = 10
        self._pool_maxsize = 20
        self._clock: Callable[[], float] = time.time

    @classmethod
    def from_config(cls, config: SdkmsConfig):
        """Start from a loaded ``SdkmsConfig``."""
        builder = cls().set_api_endpoint(config.api.endpoint)
        if config.api.api_key:
            builder.set_api_key(config.api.api_key)
        if config.api.access_token:
            builder.set_access_token(config.api.access_token)

        transport = config.transport
        builder.set_timeout(transport.timeout_seconds)
        if not transport.verify_tls:
            builder.set_verify_tls(False)
        elif transport.ca_file:
            builder.set_verify_tls(transport.ca_file)
        if transport.client_cert_file:
            builder.set_client_cert(transport.client_cert_file, transport.client_key_file)
        builder.set_pool_size(transport.pool_connections, transport.pool_maxsize)
        return builder

    def set_api_endpoint(self, api_endpoint: str):
        if not api_endpoint.startswith(("http://", "https://")):
            raise SDKConfigurationError(
                f"API endpoint must start with http:// or https://, got {api_endpoint!r}"
            )
        self._api_endpoint = api_endpoint
        return self

    def set_api_key(self, api_key: str):
        """Send the API key as ``Basic`` credentials on every request."""
        self._credential = Credential.from_api_key(api_key)
        return self

    def set_access_token(self, access_token: str):
        """Reuse an existing session token."""
        self._credential = Credential.bearer(access_token)
        return self

    def set_adapter(self, adapter: Any):
        """Use a custom transport. The built client will not close it."""
        self._adapter = adapter
        return self

    def set_timeout(self, timeout: float):
        if timeout <= 0:
            raise SDKConfigurationError(f"timeout must be positive, got {timeout}")
        self._timeout = timeout
        return self

    def set_verify_tls(self, verify: Union[bool, str]):
        """True, False or a CA bundle path."""
        self._verify = verify
        return self

    def set_client_cert(self, cert_file: str, key_file: Optional[str] = None):
        self._cert = (cert_file, key_file) if key_file else cert_file
        return self

    def set_pool_size(self, pool_connections: int, pool_maxsize: int):
        if pool_connections < 1 or pool_maxsize < 1:
            raise SDKConfigurationError("pool sizes must be at least 1")
        self._pool_connections = pool_connections
        self._pool_maxsize = pool_maxsize
        return self

    def set_clock(self, clock: Callable[[], float]):
        self._clock = clock
        return self

    def _check_adapter(self, adapter: Any) -> None:
        if not isinstance(adapter, BaseAdapter):
            raise SDKConfigurationError(
                f"SdkmsClient requires a BaseAdapter, got {type(adapter).__name__}"
            )

    def _default_adapter(self) -> BaseAdapter:
        return RequestsAdapter(
            timeout=self._timeout,
            verify=self._verify,
            cert=self._cert,
            pool_connections=self._pool_connections,
            pool_maxsize=self._pool_maxsize,
        )

    def _client_kwargs(self) -> dict:
        owns_adapter = self._adapter is None
        adapter = self._default_adapter() if owns_adapter else self._adapter
        self._check_adapter(adapter)
        return {
            "adapter": adapter,
            "api_endpoint": self._api_endpoint,
            "credential": self._credential,
            "owns_adapter": owns_adapter,
            "clock": self._clock,
        }

    def build(self) -> SdkmsClient:
        return SdkmsClient(**self._client_kwargs())
