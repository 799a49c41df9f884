"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Transport adapters.
"""

from sdkms.adapters.async_http import HttpxAdapter
from sdkms.adapters.base import AsyncBaseAdapter, BaseAdapter, SDKRequest, SDKResponse
from sdkms.adapters.http import RequestsAdapter
from sdkms.adapters.mock import AsyncMockAdapter, MockAdapter, json_response, text_response

__all__ = [
    "AsyncBaseAdapter",
    "AsyncMockAdapter",
    "BaseAdapter",
    "HttpxAdapter",
    "MockAdapter",
    "RequestsAdapter",
    "SDKRequest",
    "SDKResponse",
    "json_response",
    "text_response",
]
