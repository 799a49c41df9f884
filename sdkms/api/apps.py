"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

App management and app credentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sdkms.api.common import ApiModel, Blob, Principal, TaggedUnion, Time
from sdkms.operations import Method, Operation, Order, QueryParams, Sort


class AppRole(str, Enum):
    ADMIN = "admin"
    CRYPTO = "crypto"


class AppAuthType(str, Enum):
    SECRET = "Secret"
    CERTIFICATE = "Certificate"
    TRUSTED_CA = "TrustedCa"
    GOOGLE_SERVICE_ACCOUNT = "GoogleServiceAccount"
    SIGNED_JWT = "SignedJwt"
    LDAP = "Ldap"
    AWS_IAM = "AwsIam"


class AppCredential(TaggedUnion):
    """App authentication mechanism, e.g. ``{"secret": "..."}``."""

    secret: Optional[str] = None
    certificate: Optional[Blob] = None
    trustedca: Optional[Dict[str, Any]] = None
    googleserviceaccount: Optional[Dict[str, Any]] = None
    signedjwt: Optional[Dict[str, Any]] = None
    ldap: Optional[UUID] = None
    awsiam: Optional[Dict[str, Any]] = None


class PreviousCredential(ApiModel):
    credential: AppCredential
    valid_until: Time


class AppCredentialResponse(ApiModel):
    app_id: UUID
    credential: AppCredential
    previous_credential: Optional[PreviousCredential] = None


class App(ApiModel):
    acct_id: UUID
    app_id: UUID
    app_type: str
    auth_type: Optional[AppAuthType] = None
    cert_not_after: Optional[Time] = None
    created_at: Time
    creator: Principal
    default_group: Optional[UUID] = None
    description: Optional[str] = None
    enabled: bool
    # group id -> permissions; permissions are only populated when requested
    groups: Dict[UUID, Any] = {}
    interface: Optional[str] = None
    lastused_at: Optional[Time] = None
    legacy_access: bool = False
    name: str
    role: Optional[AppRole] = None


class AppRequest(ApiModel):
    add_groups: Optional[Dict[UUID, Any]] = None
    app_type: Optional[str] = None
    credential: Optional[AppCredential] = None
    credential_migration_period: Optional[int] = None
    default_group: Optional[UUID] = None
    del_groups: Optional[List[UUID]] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    interface: Optional[str] = None
    mod_groups: Optional[Dict[UUID, Any]] = None
    name: Optional[str] = None
    role: Optional[AppRole] = None
    secret_size: Optional[int] = None


class AppResetSecretRequest(ApiModel):
    secret_size: Optional[int] = None
    credential_migration_period: Optional[int] = None


@dataclass
class GetAppParams(QueryParams):
    group_permissions: Optional[bool] = None
    role: Optional[str] = None


@dataclass
class ListAppsParams(QueryParams):
    group_id: Optional[UUID] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Optional[Sort] = None
    group_permissions: Optional[bool] = None
    role: Optional[AppRole] = None

    @staticmethod
    def sort_by_app_id(order: Order = Order.ASCENDING, start: Optional[UUID] = None) -> Sort:
        return Sort("app_id", order, start)


# -- Operations -------------------------------------------------------------

class OperationListApps(Operation):
    method = Method.GET
    path_template = "/sys/v1/apps"
    query_type = ListAppsParams
    output_type = List[App]


class OperationGetApp(Operation):
    method = Method.GET
    path_template = "/sys/v1/apps/{id}"
    query_type = GetAppParams
    output_type = App


class OperationCreateApp(Operation):
    method = Method.POST
    path_template = "/sys/v1/apps"
    query_type = GetAppParams
    body_type = AppRequest
    output_type = App


class OperationUpdateApp(Operation):
    method = Method.PATCH
    path_template = "/sys/v1/apps/{id}"
    query_type = GetAppParams
    body_type = AppRequest
    output_type = App


class OperationDeleteApp(Operation):
    method = Method.DELETE
    path_template = "/sys/v1/apps/{id}"


class OperationGetAppCredential(Operation):
    method = Method.GET
    path_template = "/sys/v1/apps/{id}/credential"
    output_type = AppCredentialResponse


class OperationResetAppSecret(Operation):
    method = Method.POST
    path_template = "/sys/v1/apps/{id}/reset_secret"
    query_type = GetAppParams
    body_type = AppResetSecretRequest
    output_type = App


AppId = Union[UUID, str]


class AppOperations:
    """App management, mixed into both clients."""

    def list_apps(self, query_params: Optional[ListAppsParams] = None):
        return self.execute(OperationListApps, query_params=query_params)

    def get_app(self, id: AppId, query_params: Optional[GetAppParams] = None):
        return self.execute(OperationGetApp, path_params=(id,), query_params=query_params)

    def create_app(self, req: AppRequest, query_params: Optional[GetAppParams] = None):
        return self.execute(OperationCreateApp, req, query_params=query_params)

    def update_app(
        self, id: AppId, req: AppRequest, query_params: Optional[GetAppParams] = None
    ):
        return self.execute(
            OperationUpdateApp, req, path_params=(id,), query_params=query_params
        )

    def request_approval_to_update_app(
        self,
        id: AppId,
        req: AppRequest,
        query_params: Optional[GetAppParams] = None,
        description: Optional[str] = None,
    ):
        return self.request_approval(
            OperationUpdateApp,
            req,
            path_params=(id,),
            query_params=query_params,
            description=description,
        )

    def delete_app(self, id: AppId):
        return self.execute(OperationDeleteApp, path_params=(id,))

    def get_app_credential(self, id: AppId):
        return self.execute(OperationGetAppCredential, path_params=(id,))

    def request_approval_to_get_app_credential(
        self, id: AppId, description: Optional[str] = None
    ):
        return self.request_approval(
            OperationGetAppCredential, path_params=(id,), description=description
        )

    def reset_app_secret(
        self,
        id: AppId,
        req: AppResetSecretRequest,
        query_params: Optional[GetAppParams] = None,
    ):
        return self.execute(
            OperationResetAppSecret, req, path_params=(id,), query_params=query_params
        )

    def request_approval_to_reset_app_secret(
        self,
        id: AppId,
        req: AppResetSecretRequest,
        query_params: Optional[GetAppParams] = None,
        description: Optional[str] = None,
    ):
        return self.request_approval(
            OperationResetAppSecret,
            req,
            path_params=(id,),
            query_params=query_params,
            description=description,
        )
