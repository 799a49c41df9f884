"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Asyncio HTTPS transport adapter.
"""

from __future__ import annotations

import ssl
import time
from typing import Optional, Tuple, Union

import httpx

from sdkms.adapters.base import AsyncBaseAdapter, SDKRequest, SDKResponse
from sdkms.adapters.http import USER_AGENT
from sdkms.exceptions import NetworkError, TlsError
from sdkms.logging_config import get_logger

logger = get_logger(__name__)


class HttpxAdapter(AsyncBaseAdapter):
    """Asyncio transport using ``httpx.AsyncClient``.

    Args:
        timeout: Request timeout in seconds.
        verify: True to verify server certificates, False to skip, or a CA bundle path.
        cert: Client certificate for mutual TLS, a path or ``(cert, key)`` pair.
        max_connections: Maximum concurrent connections.
        max_keepalive_connections: Maximum idle connections kept alive.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify: Union[bool, str] = True,
        cert: Optional[Union[str, Tuple[str, str]]] = None,
        max_connections: int = 20,
        max_keepalive_connections: int = 10,
    ) -> None:
        self._timeout = timeout
        self._verify = verify
        self._cert = cert
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self._client: Optional[httpx.AsyncClient] = None
        self._closed = False

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            try:
                verify = self._verify
                if isinstance(verify, str) or self._cert is not None:
                    verify = self._ssl_context()
                self._client = httpx.AsyncClient(
                    headers={"User-Agent": USER_AGENT},
                    timeout=self._timeout,
                    verify=verify,
                    limits=self._limits,
                )
            except (ssl.SSLError, OSError) as e:
                raise TlsError(f"Failed to set up TLS: {e}") from e
        return self._client

    def _ssl_context(self) -> ssl.SSLContext:
        if self._verify is False:
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        elif isinstance(self._verify, str):
            ctx = ssl.create_default_context(cafile=self._verify)
        else:
            ctx = ssl.create_default_context()
        if self._cert is not None:
            if isinstance(self._cert, tuple):
                ctx.load_cert_chain(certfile=self._cert[0], keyfile=self._cert[1])
            else:
                ctx.load_cert_chain(certfile=self._cert)
        return ctx

    async def send(self, request: SDKRequest) -> SDKResponse:
        if self._closed:
            raise NetworkError("transport is closed")
        client = self._ensure_client()

        start = time.monotonic()
        try:
            resp = await client.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.ConnectError as e:
            if isinstance(e.__cause__, ssl.SSLError) or "SSL" in str(e):
                raise TlsError(f"TLS error: {e}") from e
            raise NetworkError(f"Connection error: {e}") from e
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request failed: {e}") from e
        elapsed = (time.monotonic() - start) * 1000

        return SDKResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=resp.content,
            elapsed_ms=round(elapsed, 2),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._closed = True

    @property
    def is_connected(self) -> bool:
        return not self._closed
