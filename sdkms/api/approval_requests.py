"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Approval request records and endpoints.

An approval request wraps another operation (its rendered path, verb and
body) that only runs once the configured reviewers approve it. The
``PendingApproval`` handle in ``sdkms.approvals`` drives the workflow on
top of these endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union
from uuid import UUID

from pydantic import model_serializer, model_validator

from sdkms.api.common import ApiModel, Principal, TaggedUnion, Time, U2fAuthRequest
from sdkms.operations import Method, Operation, QueryParams


class ApprovalStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DENIED = "DENIED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING


class ReviewerPrincipal(TaggedUnion):
    """A principal who can approve or deny an approval request."""

    app: Optional[UUID] = None
    user: Optional[UUID] = None


class ApprovalSubject(TaggedUnion):
    """Object acted upon by an approval request; ``"newaccount"`` has no id."""

    group: Optional[UUID] = None
    sobject: Optional[UUID] = None
    app: Optional[UUID] = None
    plugin: Optional[UUID] = None
    account: Optional[UUID] = None
    newaccount: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def accept_unit_variant(cls, data: Any) -> Any:
        if data == "newaccount":
            return {"newaccount": True}
        return data

    @model_serializer(mode="wrap")
    def drop_unset_variants(self, handler):
        if self.newaccount:
            return "newaccount"
        data = handler(self)
        return {k: v for k, v in data.items() if v is not None}


class Reviewer(ApiModel):
    """Reviewer of an approval request: the principal plus its auth requirements."""

    app: Optional[UUID] = None
    user: Optional[UUID] = None
    requires_password: bool = False
    requires_2fa: bool = False

    @model_validator(mode="after")
    def check_single_principal(self):
        if (self.app is None) == (self.user is None):
            raise ValueError("Reviewer requires exactly one of app, user")
        return self

    @property
    def entity(self) -> ReviewerPrincipal:
        return ReviewerPrincipal(app=self.app, user=self.user)


class ApprovalRequest(ApiModel):
    acct_id: UUID
    approvers: List[ReviewerPrincipal] = []
    body: Any = None
    created_at: Time
    denier: Optional[ReviewerPrincipal] = None
    description: Optional[str] = None
    expiry: Time
    method: str
    operation: str
    request_id: UUID
    requester: Principal
    reviewers: Optional[List[Reviewer]] = None
    status: ApprovalStatus
    subjects: Optional[List[ApprovalSubject]] = None


class ApprovalRequestRequest(ApiModel):
    """Request to create an approval request for another operation."""

    body: Any = None
    description: Optional[str] = None
    method: Optional[str] = None
    operation: Optional[str] = None


class ApproveRequest(ApiModel):
    password: Optional[str] = None
    u2f: Optional[U2fAuthRequest] = None


class ApprovableResult(ApiModel):
    """Outcome of the operation behind an approved request: its status and body."""

    status: int
    body: Any = None

    def is_ok(self) -> bool:
        return 200 <= self.status < 300


@dataclass
class ListApprovalRequestsParams(QueryParams):
    requester: Optional[UUID] = None
    reviewer: Optional[UUID] = None
    subject: Optional[UUID] = None
    status: Optional[ApprovalStatus] = None


# -- Operations -------------------------------------------------------------

class OperationListApprovalRequests(Operation):
    method = Method.GET
    path_template = "/sys/v1/approval_requests"
    query_type = ListApprovalRequestsParams
    output_type = List[ApprovalRequest]


class OperationGetApprovalRequest(Operation):
    method = Method.GET
    path_template = "/sys/v1/approval_requests/{id}"
    output_type = ApprovalRequest


class OperationCreateApprovalRequest(Operation):
    method = Method.POST
    path_template = "/sys/v1/approval_requests"
    body_type = ApprovalRequestRequest
    output_type = ApprovalRequest


class OperationApproveRequest(Operation):
    method = Method.POST
    path_template = "/sys/v1/approval_requests/{id}/approve"
    body_type = ApproveRequest
    output_type = ApprovalRequest


class OperationDenyRequest(Operation):
    method = Method.POST
    path_template = "/sys/v1/approval_requests/{id}/deny"
    output_type = ApprovalRequest


class OperationGetApprovalRequestResult(Operation):
    method = Method.POST
    path_template = "/sys/v1/approval_requests/{id}/result"
    output_type = ApprovableResult


class OperationDeleteApprovalRequest(Operation):
    method = Method.DELETE
    path_template = "/sys/v1/approval_requests/{id}"


RequestId = Union[UUID, str]


class ApprovalRequestOperations:
    """Approval request endpoints, mixed into both clients."""

    def list_approval_requests(self, query_params: Optional[ListApprovalRequestsParams] = None):
        return self.execute(OperationListApprovalRequests, query_params=query_params)

    def get_approval_request(self, id: RequestId):
        return self.execute(OperationGetApprovalRequest, path_params=(id,))

    def create_approval_request(self, req: ApprovalRequestRequest):
        return self.execute(OperationCreateApprovalRequest, req)

    def approve_request(self, id: RequestId, req: Optional[ApproveRequest] = None):
        return self.execute(
            OperationApproveRequest, req or ApproveRequest(), path_params=(id,)
        )

    def deny_request(self, id: RequestId):
        return self.execute(OperationDenyRequest, path_params=(id,))

    def get_approval_request_result(self, id: RequestId):
        return self.execute(OperationGetApprovalRequestResult, path_params=(id,))

    def delete_approval_request(self, id: RequestId):
        return self.execute(OperationDeleteApprovalRequest, path_params=(id,))
