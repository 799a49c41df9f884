"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Account management.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sdkms.api.common import ApiModel, Blob, Time
from sdkms.operations import Method, Operation, QueryParams


class ObjectCounts(ApiModel):
    groups: int
    apps: int
    users: int
    plugins: int
    sobjects: int
    child_accounts: int


class Account(ApiModel):
    acct_id: UUID
    approval_policy: Optional[Dict[str, Any]] = None
    approval_request_expiry: Optional[int] = None
    auth_config: Optional[Dict[str, Any]] = None
    country: Optional[str] = None
    created_at: Optional[Time] = None
    custom_logo: Optional[Blob] = None
    custom_metadata: Optional[Dict[str, str]] = None
    description: Optional[str] = None
    disabled_at: Optional[Time] = None
    enabled: bool
    log_bad_requests: Optional[bool] = None
    logging_configs: Dict[UUID, Any] = {}
    max_app: Optional[int] = None
    max_group: Optional[int] = None
    max_operation: Optional[int] = None
    max_plugin: Optional[int] = None
    max_sobj: Optional[int] = None
    max_user: Optional[int] = None
    name: str
    organization: Optional[str] = None
    parent_acct_id: Optional[UUID] = None
    phone: Optional[str] = None
    plugin_enabled: Optional[bool] = None
    subscription: Optional[Dict[str, Any]] = None
    totals: Optional[ObjectCounts] = None


class AccountRequest(ApiModel):
    approval_policy: Optional[Dict[str, Any]] = None
    approval_request_expiry: Optional[int] = None
    auth_config: Optional[Dict[str, Any]] = None
    country: Optional[str] = None
    custom_logo: Optional[Blob] = None
    custom_metadata: Optional[Dict[str, str]] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    log_bad_requests: Optional[bool] = None
    name: Optional[str] = None
    organization: Optional[str] = None
    parent_acct_id: Optional[UUID] = None
    phone: Optional[str] = None
    plugin_enabled: Optional[bool] = None
    subscription: Optional[Dict[str, Any]] = None


@dataclass
class GetAccountParams(QueryParams):
    with_totals: Optional[bool] = None


# -- Operations -------------------------------------------------------------

class OperationListAccounts(Operation):
    method = Method.GET
    path_template = "/sys/v1/accounts"
    query_type = GetAccountParams
    output_type = List[Account]


class OperationGetAccount(Operation):
    method = Method.GET
    path_template = "/sys/v1/accounts/{id}"
    query_type = GetAccountParams
    output_type = Account


class OperationCreateAccount(Operation):
    method = Method.POST
    path_template = "/sys/v1/accounts"
    body_type = AccountRequest
    output_type = Account


class OperationUpdateAccount(Operation):
    method = Method.PATCH
    path_template = "/sys/v1/accounts/{id}"
    body_type = AccountRequest
    output_type = Account


class OperationDeleteAccount(Operation):
    method = Method.DELETE
    path_template = "/sys/v1/accounts/{id}"


AccountId = Union[UUID, str]


class AccountOperations:
    """Account management, mixed into both clients."""

    def list_accounts(self, query_params: Optional[GetAccountParams] = None):
        return self.execute(OperationListAccounts, query_params=query_params)

    def get_account(self, id: AccountId, query_params: Optional[GetAccountParams] = None):
        return self.execute(OperationGetAccount, path_params=(id,), query_params=query_params)

    def create_account(self, req: AccountRequest):
        return self.execute(OperationCreateAccount, req)

    def request_approval_to_create_account(
        self, req: AccountRequest, description: Optional[str] = None
    ):
        return self.request_approval(OperationCreateAccount, req, description=description)

    def update_account(self, id: AccountId, req: AccountRequest):
        return self.execute(OperationUpdateAccount, req, path_params=(id,))

    def request_approval_to_update_account(
        self, id: AccountId, req: AccountRequest, description: Optional[str] = None
    ):
        return self.request_approval(
            OperationUpdateAccount, req, path_params=(id,), description=description
        )

    def delete_account(self, id: AccountId):
        return self.execute(OperationDeleteAccount, path_params=(id,))
