"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Security group management.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sdkms.api.common import ApiModel, Principal, Time
from sdkms.operations import Method, Operation


class Group(ApiModel):
    acct_id: UUID
    approval_policy: Optional[Dict[str, Any]] = None
    created_at: Time
    creator: Principal
    description: Optional[str] = None
    group_id: UUID
    name: str


class GroupRequest(ApiModel):
    approval_policy: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    name: Optional[str] = None


class OperationListGroups(Operation):
    method = Method.GET
    path_template = "/sys/v1/groups"
    output_type = List[Group]


class OperationGetGroup(Operation):
    method = Method.GET
    path_template = "/sys/v1/groups/{id}"
    output_type = Group


class OperationCreateGroup(Operation):
    method = Method.POST
    path_template = "/sys/v1/groups"
    body_type = GroupRequest
    output_type = Group


class OperationUpdateGroup(Operation):
    method = Method.PATCH
    path_template = "/sys/v1/groups/{id}"
    body_type = GroupRequest
    output_type = Group


class OperationDeleteGroup(Operation):
    method = Method.DELETE
    path_template = "/sys/v1/groups/{id}"


GroupId = Union[UUID, str]


class GroupOperations:
    """Group management, mixed into both clients."""

    def list_groups(self):
        return self.execute(OperationListGroups)

    def get_group(self, id: GroupId):
        return self.execute(OperationGetGroup, path_params=(id,))

    def create_group(self, req: GroupRequest):
        return self.execute(OperationCreateGroup, req)

    def update_group(self, id: GroupId, req: GroupRequest):
        return self.execute(OperationUpdateGroup, req, path_params=(id,))

    def request_approval_to_update_group(
        self, id: GroupId, req: GroupRequest, description: Optional[str] = None
    ):
        return self.request_approval(
            OperationUpdateGroup, req, path_params=(id,), description=description
        )

    def delete_group(self, id: GroupId):
        return self.execute(OperationDeleteGroup, path_params=(id,))
