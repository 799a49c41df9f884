"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Shared wire types: base64 blobs, compact timestamps, enums and the
externally tagged unions used across several API areas.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar, Union
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    model_serializer,
    model_validator,
)

TIME_FORMAT = "%Y%m%dT%H%M%SZ"


def _decode_blob(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"invalid base64 data: {e}")
    raise ValueError(f"expected base64 string or bytes, got {type(value).__name__}")


def _encode_blob(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


def _parse_time(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            return datetime.strptime(value, TIME_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            raise ValueError(f"invalid timestamp '{value}', expected {TIME_FORMAT}")
    raise ValueError(f"expected timestamp string, got {type(value).__name__}")


def _format_time(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIME_FORMAT)


# Binary data, standard base64 on the wire
Blob = Annotated[
    bytes,
    PlainValidator(_decode_blob),
    PlainSerializer(_encode_blob, return_type=str, when_used="json"),
]

# UTC timestamp, e.g. 20170615T185426Z
Time = Annotated[
    datetime,
    PlainValidator(_parse_time),
    PlainSerializer(_format_time, return_type=str, when_used="json"),
]


class ApiModel(BaseModel):
    """Base for request and response records. Unknown response fields are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class TaggedUnion(BaseModel):
    """Externally tagged union: exactly one field is set, e.g. ``{"kid": "..."}``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @model_validator(mode="after")
    def check_exactly_one_variant(self):
        present = [name for name in type(self).model_fields if getattr(self, name) is not None]
        if len(present) != 1:
            raise ValueError(
                f"{type(self).__name__} requires exactly one of "
                f"{sorted(type(self).model_fields)}, got {present or 'none'}"
            )
        return self

    @model_serializer(mode="wrap")
    def drop_unset_variants(self, handler):
        data = handler(self)
        return {k: v for k, v in data.items() if v is not None}

    @property
    def variant(self) -> str:
        """Name of the variant that is set."""
        for name in type(self).model_fields:
            if getattr(self, name) is not None:
                return name
        raise AssertionError("validated union has no variant")


class Empty(ApiModel):
    """Empty object ``{}`` used by field-less variants."""


# -- Enums ------------------------------------------------------------------

class ObjectType(str, Enum):
    AES = "AES"
    DES = "DES"
    DES3 = "DES3"
    RSA = "RSA"
    EC = "EC"
    OPAQUE = "OPAQUE"
    HMAC = "HMAC"
    SECRET = "SECRET"
    CERTIFICATE = "CERTIFICATE"


class ObjectOrigin(str, Enum):
    FORTANIX_HSM = "FortanixHSM"
    TRANSIENT = "Transient"
    EXTERNAL = "External"


class EllipticCurve(str, Enum):
    X25519 = "X25519"
    ED25519 = "Ed25519"
    X448 = "X448"
    SECP192K1 = "SecP192K1"
    SECP224K1 = "SecP224K1"
    SECP256K1 = "SecP256K1"
    NIST_P192 = "NistP192"
    NIST_P224 = "NistP224"
    NIST_P256 = "NistP256"
    NIST_P384 = "NistP384"
    NIST_P521 = "NistP521"
    GOST256A = "Gost256A"


class DigestAlgorithm(str, Enum):
    BLAKE2B256 = "BLAKE2B256"
    BLAKE2B384 = "BLAKE2B384"
    BLAKE2B512 = "BLAKE2B512"
    BLAKE2S256 = "BLAKE2S256"
    RIPEMD160 = "RIPEMD160"
    SSL3 = "SSL3"
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA384 = "SHA384"
    SHA512 = "SHA512"
    STREEBOG256 = "STREEBOG256"
    STREEBOG512 = "STREEBOG512"
    SHA3_224 = "SHA3_224"
    SHA3_256 = "SHA3_256"
    SHA3_384 = "SHA3_384"
    SHA3_512 = "SHA3_512"


class KeyOperation(str, Enum):
    SIGN = "SIGN"
    VERIFY = "VERIFY"
    ENCRYPT = "ENCRYPT"
    DECRYPT = "DECRYPT"
    WRAPKEY = "WRAPKEY"
    UNWRAPKEY = "UNWRAPKEY"
    DERIVEKEY = "DERIVEKEY"
    MACGENERATE = "MACGENERATE"
    MACVERIFY = "MACVERIFY"
    EXPORT = "EXPORT"
    APPMANAGEABLE = "APPMANAGEABLE"
    HIGHVOLUME = "HIGHVOLUME"
    AGREEKEY = "AGREEKEY"


# Set of permitted operations, a list of names on the wire
KeyOperations = List[KeyOperation]


class SobjectState(str, Enum):
    PRE_ACTIVE = "PreActive"
    ACTIVE = "Active"
    DEACTIVATED = "Deactivated"
    COMPROMISED = "Compromised"
    DESTROYED = "Destroyed"
    DEACTIVATED_COMPROMISED = "DeactivatedCompromised"


class RevocationReasonCode(str, Enum):
    UNSPECIFIED = "Unspecified"
    KEY_COMPROMISE = "KeyCompromise"
    CA_COMPROMISE = "CACompromise"
    AFFILIATION_CHANGED = "AffiliationChanged"
    SUPERSEDED = "Superseded"
    CESSATION_OF_OPERATION = "CessationOfOperation"
    PRIVILEGE_WITHDRAWN = "PrivilegeWithdrawn"


class OauthScope(str, Enum):
    APP = "app"


class UserGroupRole(str, Enum):
    GROUPAUDITOR = "GROUPAUDITOR"
    GROUPADMINISTRATOR = "GROUPADMINISTRATOR"


# -- Tagged unions ----------------------------------------------------------

class SobjectDescriptor(TaggedUnion):
    """Uniquely identifies a persisted or transient security object."""

    kid: Optional[UUID] = None
    name: Optional[str] = None
    transient_key: Optional[Blob] = None

    @classmethod
    def by_kid(cls, kid: Union[UUID, str]) -> "SobjectDescriptor":
        return cls(kid=kid)

    @classmethod
    def by_name(cls, name: str) -> "SobjectDescriptor":
        return cls(name=name)

    @classmethod
    def transient(cls, transient_key: bytes) -> "SobjectDescriptor":
        return cls(transient_key=transient_key)


class UserViaApp(ApiModel):
    user_id: UUID
    scopes: List[OauthScope] = Field(default_factory=list)


class Principal(TaggedUnion):
    """A security principal: an app, a user, a plugin or a user acting through an app."""

    app: Optional[UUID] = None
    user: Optional[UUID] = None
    plugin: Optional[UUID] = None
    userviaapp: Optional[UserViaApp] = None


class Mgf1(ApiModel):
    hash: DigestAlgorithm


class Mgf(TaggedUnion):
    """Mask generating function."""

    mgf1: Optional[Mgf1] = None

    @classmethod
    def with_hash(cls, hash_alg: DigestAlgorithm) -> "Mgf":
        return cls(mgf1=Mgf1(hash=hash_alg))


class MgfPadding(ApiModel):
    mgf: Mgf


class RsaEncryptionPadding(TaggedUnion):
    """RSA encryption padding: ``{"OAEP": {...}}`` or ``{"PKCS1_V15": {}}``."""

    oaep: Optional[MgfPadding] = Field(default=None, alias="OAEP")
    pkcs1_v15: Optional[Empty] = Field(default=None, alias="PKCS1_V15")

    @classmethod
    def oaep_mgf1(cls, hash_alg: DigestAlgorithm) -> "RsaEncryptionPadding":
        return cls(oaep=MgfPadding(mgf=Mgf.with_hash(hash_alg)))

    @classmethod
    def pkcs1(cls) -> "RsaEncryptionPadding":
        return cls(pkcs1_v15=Empty())


class RsaSignaturePadding(TaggedUnion):
    """RSA signature padding: ``{"PSS": {...}}`` or ``{"PKCS1_V15": {}}``."""

    pss: Optional[MgfPadding] = Field(default=None, alias="PSS")
    pkcs1_v15: Optional[Empty] = Field(default=None, alias="PKCS1_V15")

    @classmethod
    def pss_mgf1(cls, hash_alg: DigestAlgorithm) -> "RsaSignaturePadding":
        return cls(pss=MgfPadding(mgf=Mgf.with_hash(hash_alg)))

    @classmethod
    def pkcs1(cls) -> "RsaSignaturePadding":
        return cls(pkcs1_v15=Empty())


# Untagged on the wire: the padding object itself
SignatureMode = RsaSignaturePadding


# -- Records ----------------------------------------------------------------

class RsaOptions(ApiModel):
    key_size: Optional[int] = None
    public_exponent: Optional[int] = None
    encryption_policy: Optional[List[Dict[str, Any]]] = None
    signature_policy: Optional[List[Dict[str, Any]]] = None


class KeyLinks(ApiModel):
    replacement: Optional[UUID] = None
    replaced: Optional[UUID] = None


class RevocationReason(ApiModel):
    """Reason for revoking a key."""

    code: RevocationReasonCode
    message: Optional[str] = None
    compromise_occurance_date: Optional[Time] = None


class Sobject(ApiModel):
    """A security object (key, secret or certificate)."""

    acct_id: UUID
    activation_date: Optional[Time] = None
    compromise_date: Optional[Time] = None
    created_at: Time
    creator: Principal
    custom_metadata: Optional[Dict[str, str]] = None
    deactivation_date: Optional[Time] = None
    description: Optional[str] = None
    deterministic_signatures: Optional[bool] = None
    elliptic_curve: Optional[EllipticCurve] = None
    enabled: bool
    key_ops: KeyOperations
    key_size: Optional[int] = None
    kid: Optional[UUID] = None
    lastused_at: Time
    links: Optional[KeyLinks] = None
    name: Optional[str] = None
    never_exportable: Optional[bool] = None
    obj_type: ObjectType
    origin: ObjectOrigin
    pub_key: Optional[Blob] = None
    public_only: bool
    revocation_reason: Optional[RevocationReason] = None
    rsa: Optional[RsaOptions] = None
    state: Optional[SobjectState] = None
    transient_key: Optional[Blob] = None
    value: Optional[Blob] = None
    group_id: Optional[UUID] = None


class SignRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    hash_alg: DigestAlgorithm
    hash: Optional[Blob] = None
    data: Optional[Blob] = None
    mode: Optional[SignatureMode] = None
    deterministic_signature: Optional[bool] = None


class SignResponse(ApiModel):
    kid: Optional[UUID] = None
    signature: Blob


class VerifyRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    hash_alg: DigestAlgorithm
    hash: Optional[Blob] = None
    data: Optional[Blob] = None
    mode: Optional[SignatureMode] = None
    signature: Blob


class VerifyResponse(ApiModel):
    kid: Optional[UUID] = None
    result: bool


class U2fAuthRequest(ApiModel):
    """Second factor response from a U2F device."""

    key_handle: Blob = Field(alias="keyHandle")
    signature_data: Blob = Field(alias="signatureData")
    client_data: Blob = Field(alias="clientData")


T = TypeVar("T")


class BatchResponseItem(ApiModel, Generic[T]):
    """One entry of a batch response: ``{status, body}`` or ``{status, error}``."""

    status: int
    body: Optional[T] = None
    error: Optional[str] = None

    def is_ok(self) -> bool:
        return 200 <= self.status < 300
