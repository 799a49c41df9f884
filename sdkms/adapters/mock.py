"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Mock transport adapters for local testing.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from sdkms.adapters.base import AsyncBaseAdapter, BaseAdapter, SDKRequest, SDKResponse

MockResponse = Union[
    SDKResponse,
    Exception,
    Callable[[SDKRequest], SDKResponse],
    List[Union[SDKResponse, Exception]],
]


def json_response(body: Any, status_code: int = 200) -> SDKResponse:
    """Build a JSON response; ``body`` of None gives an empty body."""
    raw = b"" if body is None else json.dumps(body).encode("utf-8")
    return SDKResponse(
        status_code=status_code,
        headers={"Content-Type": "application/json"},
        body=raw,
    )


def text_response(text: str, status_code: int) -> SDKResponse:
    """Build a plain-text response, as the service sends for errors."""
    return SDKResponse(
        status_code=status_code,
        headers={"Content-Type": "text/plain"},
        body=text.encode("utf-8"),
    )


class _MockResponder:
    """Shared lookup logic for the mock adapters.

    Keys are ``(method, path)`` where ``path`` is the request path relative to
    the endpoint. A key with the query string attached is matched first, then
    the bare path. A list value is consumed in order and its last entry
    repeats. Exceptions are raised instead of returned.
    """

    def __init__(self, responses: Optional[Dict[Tuple[str, str], MockResponse]] = None) -> None:
        self._responses: Dict[Tuple[str, str], MockResponse] = dict(responses or {})
        self._calls: Dict[Tuple[str, str], int] = {}
        self._sent: List[SDKRequest] = []

    def add(self, method: str, path: str, response: MockResponse) -> None:
        self._responses[(method.upper(), path)] = response

    def _respond(self, request: SDKRequest) -> SDKResponse:
        self._sent.append(request)
        parts = urlsplit(request.url)
        method = request.method.upper()
        candidates = [(method, parts.path)]
        if parts.query:
            candidates.insert(0, (method, f"{parts.path}?{parts.query}"))

        for key in candidates:
            if key in self._responses:
                return self._resolve(key, request)
        return text_response("not mocked", 404)

    def _resolve(self, key: Tuple[str, str], request: SDKRequest) -> SDKResponse:
        entry = self._responses[key]
        if isinstance(entry, list):
            index = min(self._calls.get(key, 0), len(entry) - 1)
            self._calls[key] = self._calls.get(key, 0) + 1
            entry = entry[index]
        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            return entry(request)
        return entry

    @property
    def sent_requests(self) -> List[SDKRequest]:
        """All requests that have been sent through this adapter."""
        return list(self._sent)

    def requests_to(self, method: str, path: str) -> List[SDKRequest]:
        """Sent requests whose method and path (query excluded) match."""
        return [
            r for r in self._sent
            if r.method.upper() == method.upper() and urlsplit(r.url).path == path
        ]


class MockAdapter(_MockResponder, BaseAdapter):
    """In-memory blocking adapter for unit tests.

    Example::

        adapter = MockAdapter({
            ("GET", "/sys/v1/version"): json_response({"version": "4.2"}),
        })
    """

    def __init__(self, responses: Optional[Dict[Tuple[str, str], MockResponse]] = None) -> None:
        super().__init__(responses)
        self.closed = False

    def send(self, request: SDKRequest) -> SDKResponse:
        return self._respond(request)

    def close(self) -> None:
        self.closed = True

    @property
    def is_connected(self) -> bool:
        return not self.closed


class AsyncMockAdapter(_MockResponder, AsyncBaseAdapter):
    """In-memory asyncio adapter for unit tests."""

    def __init__(self, responses: Optional[Dict[Tuple[str, str], MockResponse]] = None) -> None:
        super().__init__(responses)
        self.closed = False

    async def send(self, request: SDKRequest) -> SDKResponse:
        return self._respond(request)

    async def aclose(self) -> None:
        self.closed = True

    @property
    def is_connected(self) -> bool:
        return not self.closed
