"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Asyncio SDKMS client. Same operations as ``SdkmsClient``; every endpoint
wrapper returns an awaitable.

Usage::

    async with AsyncSdkmsClient.builder().build() as client:
        session = await client.authenticate_app(app_id, secret)
        async with session:
            version = await session.version()
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Optional, Type, Union
from uuid import UUID

from sdkms.adapters.async_http import HttpxAdapter
from sdkms.adapters.base import AsyncBaseAdapter, SDKRequest
from sdkms.api.session import AuthResponse, OperationAuthenticate, OperationTerminate
from sdkms.client import BaseSdkmsClient, SdkmsClientBuilder
from sdkms.config.settings import DEFAULT_API_ENDPOINT
from sdkms.exceptions import ApiError, SDKConfigurationError, SdkmsError
from sdkms.logging_config import get_logger, log_authentication_failure
from sdkms.operations import Operation, PathParams, QueryParams
from sdkms.session import Credential

logger = get_logger(__name__)


class AsyncSdkmsClient(BaseSdkmsClient):
    """Asyncio client for the SDKMS REST API. Safe to share between tasks."""

    def __init__(
        self,
        adapter: Optional[AsyncBaseAdapter] = None,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        credential: Optional[Credential] = None,
        auth_response: Optional[AuthResponse] = None,
        owns_adapter: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(
            adapter or HttpxAdapter(),
            api_endpoint=api_endpoint,
            credential=credential,
            auth_response=auth_response,
            owns_adapter=owns_adapter,
            clock=clock,
        )

    @staticmethod
    def builder() -> "AsyncSdkmsClientBuilder":
        return AsyncSdkmsClientBuilder()

    async def execute(
        self,
        operation: Type[Operation],
        body: Any = None,
        path_params: PathParams = None,
        query_params: Optional[QueryParams] = None,
    ) -> Any:
        """Run one operation and decode its output. See ``SdkmsClient.execute``."""
        request = self._build_request(operation, body, path_params, query_params)
        return await self._send(operation, request)

    async def _send(self, operation: Type[Operation], request: SDKRequest) -> Any:
        try:
            response = await self._adapter.send(request)
        except SdkmsError as e:
            self._log_network_failure(request, e)
            raise
        return self._handle_response(operation, request, response)

    @staticmethod
    def _map_result(result: Awaitable[Any], fn: Callable[[Any], Any]) -> Awaitable[Any]:
        async def apply() -> Any:
            return fn(await result)

        return apply()

    # -- Authentication ------------------------------------------------------

    async def _authenticate(
        self, credential: Optional[Credential], auth_method: str
    ) -> "AsyncSdkmsClient":
        request = self._build_request(OperationAuthenticate, credential=credential)
        try:
            auth = await self._send(OperationAuthenticate, request)
        except ApiError as e:
            log_authentication_failure(
                logger, auth_method, reason=e.message, status_code=e.status_code
            )
            raise
        return self._authenticated(auth_method, auth)

    async def authenticate_with_api_key(self, api_key: str) -> "AsyncSdkmsClient":
        return await self._authenticate(Credential.from_api_key(api_key), "api_key")

    async def authenticate_user(self, email: str, password: str) -> "AsyncSdkmsClient":
        return await self._authenticate(Credential.from_user_pass(email, password), "user")

    async def authenticate_app(self, app_id: Union[UUID, str], secret: str) -> "AsyncSdkmsClient":
        return await self._authenticate(Credential.from_user_pass(app_id, secret), "app")

    async def authenticate_with_cert(
        self, app_id: Optional[Union[UUID, str]] = None
    ) -> "AsyncSdkmsClient":
        return await self._authenticate(self._cert_credential(app_id), "cert")

    async def terminate(self) -> None:
        """End the session, if any. Calling it again is a no-op.

        The token is dropped locally even if the service call fails.
        """
        credential = self._state.take_bearer()
        if credential is None:
            return
        try:
            request = self._build_request(OperationTerminate, credential=credential)
            await self._send(OperationTerminate, request)
        finally:
            self._session_ended()

    async def aclose(self) -> None:
        if self._owns_adapter:
            await self._adapter.aclose()

    async def __aenter__(self) -> "AsyncSdkmsClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            await self.terminate()
        except SdkmsError as e:
            logger.warning("session_teardown_failed", error=str(e))
        finally:
            await self.aclose()


class AsyncSdkmsClientBuilder(SdkmsClientBuilder):
    """Builder for ``AsyncSdkmsClient``; accepts the same settings."""

    def _check_adapter(self, adapter: Any) -> None:
        if not isinstance(adapter, AsyncBaseAdapter):
            raise SDKConfigurationError(
                f"AsyncSdkmsClient requires an AsyncBaseAdapter, got {type(adapter).__name__}"
            )

    def _default_adapter(self) -> AsyncBaseAdapter:
        return HttpxAdapter(
            timeout=self._timeout,
            verify=self._verify,
            cert=self._cert,
            max_connections=self._pool_maxsize,
            max_keepalive_connections=self._pool_connections,
        )

    def build(self) -> AsyncSdkmsClient:
        return AsyncSdkmsClient(**self._client_kwargs())
