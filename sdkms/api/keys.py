"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Security object (key) management.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sdkms.api.common import (
    ApiModel,
    BatchResponseItem,
    Blob,
    DigestAlgorithm,
    EllipticCurve,
    KeyOperations,
    ObjectType,
    RevocationReason,
    RsaOptions,
    SignRequest,
    SignResponse,
    Sobject,
    SobjectDescriptor,
    SobjectState,
    Time,
    VerifyRequest,
    VerifyResponse,
)
from sdkms.operations import Method, Operation, Order, QueryParams, Sort


class SobjectEncoding(str, Enum):
    JSON = "json"
    VALUE = "value"


class SobjectRequest(ApiModel):
    """Create, import, update or rotate a security object."""

    activation_date: Optional[Time] = None
    custom_metadata: Optional[Dict[str, str]] = None
    deactivation_date: Optional[Time] = None
    description: Optional[str] = None
    deterministic_signatures: Optional[bool] = None
    elliptic_curve: Optional[EllipticCurve] = None
    enabled: Optional[bool] = None
    fpe: Optional[Dict[str, Any]] = None
    key_ops: Optional[KeyOperations] = None
    key_size: Optional[int] = None
    name: Optional[str] = None
    obj_type: Optional[ObjectType] = None
    pub_exponent: Optional[int] = None
    publish_public_key: Optional[Dict[str, Any]] = None
    rsa: Optional[RsaOptions] = None
    state: Optional[SobjectState] = None
    transient: Optional[bool] = None
    value: Optional[Blob] = None
    group_id: Optional[UUID] = None


class ObjectDigestRequest(ApiModel):
    key: SobjectDescriptor
    alg: DigestAlgorithm


class ObjectDigestResponse(ApiModel):
    kid: Optional[UUID] = None
    digest: Blob


class PersistTransientKeyRequest(ApiModel):
    activation_date: Optional[Time] = None
    deactivation_date: Optional[Time] = None
    name: str
    description: Optional[str] = None
    custom_metadata: Optional[Dict[str, str]] = None
    enabled: Optional[bool] = None
    group_id: Optional[UUID] = None
    state: Optional[SobjectState] = None
    transient_key: Blob


@dataclass
class ListSobjectsParams(QueryParams):
    group_id: Optional[UUID] = None
    creator: Optional[UUID] = None
    name: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Optional[Sort] = None

    @staticmethod
    def sort_by_kid(order: Order = Order.ASCENDING, start: Optional[UUID] = None) -> Sort:
        return Sort("kid", order, start)

    @staticmethod
    def sort_by_name(order: Order = Order.ASCENDING, start: Optional[str] = None) -> Sort:
        return Sort("name", order, start)


@dataclass
class GetSobjectParams(QueryParams):
    view: Optional[SobjectEncoding] = None


BatchSignResponse = List[BatchResponseItem[SignResponse]]
BatchVerifyResponse = List[BatchResponseItem[VerifyResponse]]


# -- Operations -------------------------------------------------------------

class OperationCreateSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys"
    body_type = SobjectRequest
    output_type = Sobject


class OperationImportSobject(Operation):
    method = Method.PUT
    path_template = "/crypto/v1/keys"
    body_type = SobjectRequest
    output_type = Sobject


class OperationUpdateSobject(Operation):
    method = Method.PATCH
    path_template = "/crypto/v1/keys/{id}"
    body_type = SobjectRequest
    output_type = Sobject


class OperationDeleteSobject(Operation):
    method = Method.DELETE
    path_template = "/crypto/v1/keys/{id}"


class OperationListSobjects(Operation):
    method = Method.GET
    path_template = "/crypto/v1/keys"
    query_type = ListSobjectsParams
    output_type = List[Sobject]


class OperationGetSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/info"
    query_type = GetSobjectParams
    body_type = SobjectDescriptor
    output_type = Sobject


class OperationRemovePrivate(Operation):
    method = Method.DELETE
    path_template = "/crypto/v1/keys/{id}/private"


class OperationExportSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/export"
    body_type = SobjectDescriptor
    output_type = Sobject


class OperationDigestSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/digest"
    body_type = ObjectDigestRequest
    output_type = ObjectDigestResponse


class OperationPersistTransientKey(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/persist"
    body_type = PersistTransientKeyRequest
    output_type = Sobject


class OperationRotateSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/rekey"
    body_type = SobjectRequest
    output_type = Sobject


class OperationActivateSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/{id}/activate"


class OperationRevokeSobject(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/{id}/revoke"
    body_type = RevocationReason


class OperationBatchSign(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/batch/sign"
    body_type = List[SignRequest]
    output_type = BatchSignResponse


class OperationBatchVerify(Operation):
    method = Method.POST
    path_template = "/crypto/v1/keys/batch/verify"
    body_type = List[VerifyRequest]
    output_type = BatchVerifyResponse


KeyId = Union[UUID, str]


class SobjectOperations:
    """Security object management, mixed into both clients."""

    def create_sobject(self, req: SobjectRequest):
        return self.execute(OperationCreateSobject, req)

    def import_sobject(self, req: SobjectRequest):
        return self.execute(OperationImportSobject, req)

    def get_sobject(self, req: SobjectDescriptor, query_params: Optional[GetSobjectParams] = None):
        return self.execute(OperationGetSobject, req, query_params=query_params)

    def list_sobjects(self, query_params: Optional[ListSobjectsParams] = None):
        return self.execute(OperationListSobjects, query_params=query_params)

    def update_sobject(self, id: KeyId, req: SobjectRequest):
        return self.execute(OperationUpdateSobject, req, path_params=(id,))

    def request_approval_to_update_sobject(
        self, id: KeyId, req: SobjectRequest, description: Optional[str] = None
    ):
        return self.request_approval(
            OperationUpdateSobject, req, path_params=(id,), description=description
        )

    def delete_sobject(self, id: KeyId):
        return self.execute(OperationDeleteSobject, path_params=(id,))

    def request_approval_to_delete_sobject(self, id: KeyId, description: Optional[str] = None):
        return self.request_approval(
            OperationDeleteSobject, path_params=(id,), description=description
        )

    def remove_private(self, id: KeyId):
        return self.execute(OperationRemovePrivate, path_params=(id,))

    def export_sobject(self, req: SobjectDescriptor):
        return self.execute(OperationExportSobject, req)

    def request_approval_to_export_sobject(
        self, req: SobjectDescriptor, description: Optional[str] = None
    ):
        return self.request_approval(OperationExportSobject, req, description=description)

    def digest_sobject(self, req: ObjectDigestRequest):
        return self.execute(OperationDigestSobject, req)

    def persist_transient_key(self, req: PersistTransientKeyRequest):
        return self.execute(OperationPersistTransientKey, req)

    def rotate_sobject(self, req: SobjectRequest):
        return self.execute(OperationRotateSobject, req)

    def activate_sobject(self, id: KeyId):
        return self.execute(OperationActivateSobject, path_params=(id,))

    def revoke_sobject(self, id: KeyId, req: RevocationReason):
        return self.execute(OperationRevokeSobject, req, path_params=(id,))

    def batch_sign(self, req: List[SignRequest]):
        return self.execute(OperationBatchSign, req)

    def request_approval_to_batch_sign(
        self, req: List[SignRequest], description: Optional[str] = None
    ):
        return self.request_approval(OperationBatchSign, req, description=description)

    def batch_verify(self, req: List[VerifyRequest]):
        return self.execute(OperationBatchVerify, req)
