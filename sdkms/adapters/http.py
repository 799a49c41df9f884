"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Blocking HTTPS transport adapter (default).
"""

from __future__ import annotations

import time
from typing import Optional, Tuple, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sdkms.adapters.base import BaseAdapter, SDKRequest, SDKResponse
from sdkms.exceptions import NetworkError, TlsError
from sdkms.logging_config import get_logger

logger = get_logger(__name__)

USER_AGENT = "sdkms-client-python"


class RequestsAdapter(BaseAdapter):
    """Default blocking transport using a pooled ``requests.Session``.

    Args:
        timeout: Request timeout in seconds.
        verify: True to verify server certificates, False to skip, or a CA bundle path.
        cert: Client certificate for mutual TLS, a path or ``(cert, key)`` pair.
        pool_connections: Number of connection pools to cache.
        pool_maxsize: Maximum connections kept per pool.
        session: Optional pre-configured session (e.g. for proxies).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify: Union[bool, str] = True,
        cert: Optional[Union[str, Tuple[str, str]]] = None,
        pool_connections: int = 10,
        pool_maxsize: int = 20,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._timeout = timeout
        self._verify = verify
        self._cert = cert
        self._session = session or requests.Session()

        # Requests are never retried; approval-gated calls must not run twice
        adapter = HTTPAdapter(
            max_retries=Retry(total=0, read=False, redirect=False),
            pool_connections=pool_connections,
            pool_maxsize=pool_maxsize,
        )
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)
        self._session.headers.update({"User-Agent": USER_AGENT})
        self._connected = True

    def send(self, request: SDKRequest) -> SDKResponse:
        if not self._connected:
            raise NetworkError("transport is closed")

        start = time.monotonic()
        try:
            resp = self._session.request(
                method=request.method,
                url=request.url,
                headers=request.headers,
                data=request.body,
                timeout=self._timeout,
                verify=self._verify,
                cert=self._cert,
            )
        except requests.exceptions.SSLError as e:
            raise TlsError(f"TLS error: {e}") from e
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request timeout: {e}") from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection error: {e}") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}") from e
        elapsed = (time.monotonic() - start) * 1000

        return SDKResponse(
            status_code=resp.status_code,
            headers=dict(resp.headers),
            body=resp.content,
            elapsed_ms=round(elapsed, 2),
        )

    def close(self) -> None:
        if self._connected:
            self._session.close()
            self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected
