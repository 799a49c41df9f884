"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

SDKMS Client - Python client for the SDKMS key management REST API

Typed request and response models for accounts, apps, groups, security
objects, cryptographic operations, plugins, users and sessions, a blocking
and an asyncio client, and the approval-request workflow.
"""

from sdkms._version import __version__
from sdkms.adapters import (
    AsyncBaseAdapter,
    AsyncMockAdapter,
    BaseAdapter,
    HttpxAdapter,
    MockAdapter,
    RequestsAdapter,
    SDKRequest,
    SDKResponse,
)
from sdkms.approvals import (
    ApprovalOutcome,
    ApprovalPolicy,
    OperationFailed,
    OperationSucceeded,
    PendingApproval,
    async_call_with_approval_fallback,
    async_wait_for_approval,
    call_with_approval_fallback,
    wait_for_approval,
)
from sdkms.async_client import AsyncSdkmsClient, AsyncSdkmsClientBuilder
from sdkms.client import SdkmsClient, SdkmsClientBuilder
from sdkms.config import SdkmsConfig, load_config
from sdkms.config.settings import DEFAULT_API_ENDPOINT
from sdkms.exceptions import (
    ApiError,
    ApprovalCancelledError,
    ApprovalDeniedError,
    ApprovalError,
    ApprovalTimeoutError,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    EncoderError,
    ForbiddenError,
    InvalidConfigurationError,
    IoError,
    LockedError,
    NetworkError,
    NotFoundError,
    SDKConfigurationError,
    SdkmsError,
    StatusCodeError,
    TlsError,
    UnauthorizedError,
)
from sdkms.operations import Method, Operation, Order, QueryParams, Sort

__all__ = [
    "__version__",
    "DEFAULT_API_ENDPOINT",
    # Clients
    "SdkmsClient",
    "SdkmsClientBuilder",
    "AsyncSdkmsClient",
    "AsyncSdkmsClientBuilder",
    # Adapters
    "BaseAdapter",
    "AsyncBaseAdapter",
    "RequestsAdapter",
    "HttpxAdapter",
    "MockAdapter",
    "AsyncMockAdapter",
    "SDKRequest",
    "SDKResponse",
    # Operations
    "Method",
    "Operation",
    "Order",
    "QueryParams",
    "Sort",
    # Approvals
    "ApprovalOutcome",
    "ApprovalPolicy",
    "OperationFailed",
    "OperationSucceeded",
    "PendingApproval",
    "call_with_approval_fallback",
    "async_call_with_approval_fallback",
    "wait_for_approval",
    "async_wait_for_approval",
    # Configuration
    "SdkmsConfig",
    "load_config",
    # Errors
    "SdkmsError",
    "ApiError",
    "UnauthorizedError",
    "ForbiddenError",
    "BadRequestError",
    "ConflictError",
    "LockedError",
    "NotFoundError",
    "StatusCodeError",
    "EncoderError",
    "IoError",
    "NetworkError",
    "TlsError",
    "ConfigurationError",
    "InvalidConfigurationError",
    "SDKConfigurationError",
    "ApprovalError",
    "ApprovalTimeoutError",
    "ApprovalCancelledError",
    "ApprovalDeniedError",
]
