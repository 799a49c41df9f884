"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

User management.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union
from uuid import UUID

from sdkms.api.common import ApiModel, Time, UserGroupRole
from sdkms.operations import Method, Operation, Order, QueryParams, Sort


class UserAccountFlag(str, Enum):
    ACCOUNTADMINISTRATOR = "ACCOUNTADMINISTRATOR"
    ACCOUNTMEMBER = "ACCOUNTMEMBER"
    ACCOUNTAUDITOR = "ACCOUNTAUDITOR"
    STATEENABLED = "STATEENABLED"
    PENDINGINVITE = "PENDINGINVITE"


# User's role and state in an account, a list of flag names on the wire
UserAccountFlags = List[UserAccountFlag]


class U2fDevice(ApiModel):
    name: str


class User(ApiModel):
    account_role: UserAccountFlags = []
    created_at: Optional[Time] = None
    description: Optional[str] = None
    email_verified: Optional[bool] = None
    first_name: Optional[str] = None
    groups: Dict[UUID, UserGroupRole] = {}
    has_account: Optional[bool] = None
    has_password: Optional[bool] = None
    last_logged_in_at: Optional[Time] = None
    last_name: Optional[str] = None
    new_email: Optional[str] = None
    u2f_devices: List[U2fDevice] = []
    user_email: Optional[str] = None
    user_id: UUID


class UserRequest(ApiModel):
    account_role: Optional[UserAccountFlags] = None
    add_groups: Optional[Dict[UUID, UserGroupRole]] = None
    del_groups: Optional[Dict[UUID, UserGroupRole]] = None
    description: Optional[str] = None
    enable: Optional[bool] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    mod_groups: Optional[Dict[UUID, UserGroupRole]] = None
    user_email: Optional[str] = None
    user_password: Optional[str] = None


class PasswordChangeRequest(ApiModel):
    current_password: str
    new_password: str


@dataclass
class ListUsersParams(QueryParams):
    group_id: Optional[UUID] = None
    acct_id: Optional[UUID] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Optional[Sort] = None

    @staticmethod
    def sort_by_user_id(order: Order = Order.ASCENDING, start: Optional[UUID] = None) -> Sort:
        return Sort("user_id", order, start)


class OperationListUsers(Operation):
    method = Method.GET
    path_template = "/sys/v1/users"
    query_type = ListUsersParams
    output_type = List[User]


class OperationGetUser(Operation):
    method = Method.GET
    path_template = "/sys/v1/users/{id}"
    output_type = User


class OperationUpdateUser(Operation):
    method = Method.PATCH
    path_template = "/sys/v1/users/{id}"
    body_type = UserRequest
    output_type = User


class OperationDeleteUser(Operation):
    """Removes the calling user."""
    method = Method.DELETE
    path_template = "/sys/v1/users"


class OperationDeleteUserAccount(Operation):
    method = Method.DELETE
    path_template = "/sys/v1/users/{id}/accounts"


class OperationChangePassword(Operation):
    method = Method.POST
    path_template = "/sys/v1/users/change_password"
    body_type = PasswordChangeRequest


UserId = Union[UUID, str]


class UserOperations:
    """User management, mixed into both clients."""

    def list_users(self, query_params: Optional[ListUsersParams] = None):
        return self.execute(OperationListUsers, query_params=query_params)

    def get_user(self, id: UserId):
        return self.execute(OperationGetUser, path_params=(id,))

    def update_user(self, id: UserId, req: UserRequest):
        return self.execute(OperationUpdateUser, req, path_params=(id,))

    def delete_user(self):
        return self.execute(OperationDeleteUser)

    def delete_user_account(self, id: UserId):
        return self.execute(OperationDeleteUserAccount, path_params=(id,))

    def change_password(self, req: PasswordChangeRequest):
        return self.execute(OperationChangePassword, req)
