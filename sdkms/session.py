"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Credentials and mutable session state shared by the blocking and asyncio
clients.
"""

from __future__ import annotations

import base64
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union
from uuid import UUID

from sdkms.api.session import AuthResponse


class AuthScheme(str, Enum):
    BASIC = "Basic"
    BEARER = "Bearer"


@dataclass(frozen=True)
class Credential:
    """Value attached as the ``Authorization`` header."""

    scheme: AuthScheme
    token: str

    @classmethod
    def from_api_key(cls, api_key: str) -> "Credential":
        # API keys are issued already base64 encoded
        return cls(AuthScheme.BASIC, api_key)

    @classmethod
    def from_user_pass(cls, username: Union[str, UUID], password: str) -> "Credential":
        raw = f"{username}:{password}".encode("utf-8")
        return cls(AuthScheme.BASIC, base64.b64encode(raw).decode("ascii"))

    @classmethod
    def bearer(cls, access_token: str) -> "Credential":
        return cls(AuthScheme.BEARER, access_token)

    @property
    def is_bearer(self) -> bool:
        return self.scheme is AuthScheme.BEARER

    def header_value(self) -> str:
        return f"{self.scheme.value} {self.token}"

    def __repr__(self) -> str:
        return f"Credential(scheme={self.scheme.value!r}, token=<redacted>)"


class SessionState:
    """Credential, last activity and auth metadata behind one lock.

    Args:
        credential: Initial credential, or None for unauthenticated calls.
        auth_response: Metadata from the authentication that produced the credential.
        clock: Wall-clock source in seconds; injectable for tests.
    """

    def __init__(
        self,
        credential: Optional[Credential] = None,
        auth_response: Optional[AuthResponse] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lock = threading.Lock()
        self._credential = credential
        self._auth_response = auth_response
        self._clock = clock
        self._last_activity = clock()

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    @property
    def credential(self) -> Optional[Credential]:
        with self._lock:
            return self._credential

    @property
    def auth_response(self) -> Optional[AuthResponse]:
        with self._lock:
            return self._auth_response

    @property
    def last_activity(self) -> float:
        with self._lock:
            return self._last_activity

    def touch(self) -> None:
        with self._lock:
            self._last_activity = self._clock()

    def authorization_header(self) -> Optional[str]:
        with self._lock:
            if self._credential is None:
                return None
            return self._credential.header_value()

    def take_bearer(self) -> Optional[Credential]:
        """Claim the session token, clearing it from the state.

        Only one caller gets the token; everyone else gets None.
        """
        with self._lock:
            if self._credential is None or not self._credential.is_bearer:
                return None
            credential, self._credential = self._credential, None
            return credential

    def clear(self) -> None:
        with self._lock:
            self._credential = None
            self._auth_response = None

    def has_session(self) -> bool:
        with self._lock:
            return self._credential is not None and self._credential.is_bearer

    def expires_in(self) -> Optional[int]:
        """Whole seconds until the session expires, None if unknown or expired."""
        with self._lock:
            if self._auth_response is None:
                return None
            expiry = self._last_activity + self._auth_response.expires_in
            now = self._clock()
        if expiry <= now:
            return None
        return int(expiry - now)
