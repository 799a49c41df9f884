"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Transport adapter base classes and data structures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class SDKRequest:
    """Outbound request representation.

    ``url`` is absolute (endpoint plus rendered path and query). ``body`` is
    the serialized JSON payload, or None when no body is sent.
    """
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass
class SDKResponse:
    """Inbound response representation. ``body`` holds the raw bytes."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    elapsed_ms: float = 0.0

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class BaseAdapter(ABC):
    """Abstract base for blocking transport adapters.

    ``send`` returns any HTTP response, successful or not, and raises
    ``NetworkError`` (or ``TlsError``) when no response was received.
    Adapters never retry.
    """

    @abstractmethod
    def send(self, request: SDKRequest) -> SDKResponse:
        """Send a request and return the response."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release adapter resources."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the adapter is in a usable state."""
        ...


class AsyncBaseAdapter(ABC):
    """Abstract base for asyncio transport adapters. Same contract as ``BaseAdapter``."""

    @abstractmethod
    async def send(self, request: SDKRequest) -> SDKResponse:
        """Send a request and return the response."""
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release adapter resources."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether the adapter is in a usable state."""
        ...
