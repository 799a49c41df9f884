"""
Pytest configuration and shared fixtures for SDKMS client tests.
"""

import tempfile
from pathlib import Path
from typing import Generator
from uuid import UUID

import pytest

from sdkms.adapters.mock import AsyncMockAdapter, MockAdapter, json_response
from sdkms.async_client import AsyncSdkmsClient
from sdkms.client import SdkmsClient


API_ENDPOINT = "https://sdkms.test"

ACCT_ID = UUID("9f2c1f6e-5a5e-4b0a-9a57-0b5f5a3b1c01")
APP_ID = UUID("2b7a6c3d-1e4f-4a5b-8c9d-0e1f2a3b4c5d")
USER_ID = UUID("6c1d2e3f-4a5b-4c6d-8e7f-9a0b1c2d3e4f")
KEY_ID = UUID("0e9d8c7b-6a5f-4e3d-9c2b-1a0f9e8d7c6b")
REQUEST_ID = UUID("5a4b3c2d-1e0f-4a9b-8c7d-6e5f4a3b2c1d")


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def client(mock_adapter: MockAdapter, clock: FakeClock) -> SdkmsClient:
    """Unauthenticated blocking client backed by the mock adapter."""
    return SdkmsClient(adapter=mock_adapter, api_endpoint=API_ENDPOINT, clock=clock)


@pytest.fixture
def async_mock_adapter() -> AsyncMockAdapter:
    return AsyncMockAdapter()


@pytest.fixture
def async_client(async_mock_adapter: AsyncMockAdapter, clock: FakeClock) -> AsyncSdkmsClient:
    """Unauthenticated asyncio client backed by the async mock adapter."""
    return AsyncSdkmsClient(adapter=async_mock_adapter, api_endpoint=API_ENDPOINT, clock=clock)


@pytest.fixture
def auth_response_json() -> dict:
    return {
        "token_type": "Bearer",
        "expires_in": 600,
        "access_token": "session-token",
        "entity_id": str(APP_ID),
    }


@pytest.fixture
def auth_ok(auth_response_json: dict):
    return json_response(auth_response_json)


@pytest.fixture
def sobject_json() -> dict:
    """A security object as returned by the service."""
    return {
        "acct_id": str(ACCT_ID),
        "created_at": "20170615T185426Z",
        "creator": {"app": str(APP_ID)},
        "enabled": True,
        "key_ops": ["SIGN", "VERIFY", "APPMANAGEABLE"],
        "key_size": 2048,
        "kid": str(KEY_ID),
        "lastused_at": "19700101T000000Z",
        "name": "signing-key",
        "obj_type": "RSA",
        "origin": "FortanixHSM",
        "public_only": False,
        "state": "Active",
    }


@pytest.fixture
def approval_request_factory():
    """
    Factory for approval request records.

    Returns:
        Callable taking the status and optional overrides.
    """
    def _make(status: str = "PENDING", **overrides) -> dict:
        record = {
            "acct_id": str(ACCT_ID),
            "approvers": [],
            "created_at": "20240101T120000Z",
            "expiry": "20240102T120000Z",
            "method": "POST",
            "operation": "/crypto/v1/sign",
            "request_id": str(REQUEST_ID),
            "requester": {"app": str(APP_ID)},
            "reviewers": [{"user": str(USER_ID), "requires_password": True, "requires_2fa": False}],
            "status": status,
            "subjects": [{"sobject": str(KEY_ID)}],
        }
        record.update(overrides)
        return record

    return _make
