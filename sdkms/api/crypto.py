"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Cryptographic operations: encrypt, decrypt, sign, verify, wrap, unwrap,
MAC, key derivation, key agreement and digests.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Union
from uuid import UUID

from sdkms.api.common import (
    ApiModel,
    Blob,
    DigestAlgorithm,
    KeyOperations,
    ObjectType,
    RsaEncryptionPadding,
    RsaOptions,
    SignRequest,
    SignResponse,
    Sobject,
    SobjectDescriptor,
    SobjectState,
    TaggedUnion,
    Time,
    VerifyRequest,
    VerifyResponse,
)
from sdkms.operations import Method, Operation


class Algorithm(str, Enum):
    AES = "AES"
    DES = "DES"
    DES3 = "DES3"
    RSA = "RSA"
    EC = "EC"
    HMAC = "HMAC"


class CipherMode(str, Enum):
    ECB = "ECB"
    CBC = "CBC"
    CBCNOPAD = "CBCNOPAD"
    CFB = "CFB"
    OFB = "OFB"
    CTR = "CTR"
    GCM = "GCM"
    CCM = "CCM"
    KW = "KW"
    KWP = "KWP"
    FF1 = "FF1"


# Untagged on the wire: a symmetric mode name or an RSA padding object
CryptMode = Union[CipherMode, RsaEncryptionPadding]


class EncryptRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Algorithm
    plain: Blob
    mode: Optional[CryptMode] = None
    iv: Optional[Blob] = None
    ad: Optional[Blob] = None
    tag_len: Optional[int] = None


class EncryptResponse(ApiModel):
    kid: Optional[UUID] = None
    cipher: Blob
    iv: Optional[Blob] = None
    tag: Optional[Blob] = None


class EncryptInitRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Algorithm
    mode: Optional[CipherMode] = None
    iv: Optional[Blob] = None


class EncryptInitResponse(ApiModel):
    kid: Optional[UUID] = None
    iv: Optional[Blob] = None
    state: Blob


class EncryptUpdateRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    plain: Blob
    state: Blob


class EncryptUpdateResponse(ApiModel):
    cipher: Blob
    state: Blob


class EncryptFinalRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    state: Blob


class EncryptFinalResponse(ApiModel):
    cipher: Blob
    tag: Optional[Blob] = None


class DecryptRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Optional[Algorithm] = None
    cipher: Blob
    mode: Optional[CryptMode] = None
    iv: Optional[Blob] = None
    ad: Optional[Blob] = None
    tag: Optional[Blob] = None


class DecryptResponse(ApiModel):
    kid: Optional[UUID] = None
    plain: Blob


class DecryptInitRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Optional[Algorithm] = None
    mode: Optional[CipherMode] = None
    iv: Optional[Blob] = None


class DecryptInitResponse(ApiModel):
    kid: Optional[UUID] = None
    state: Blob


class DecryptUpdateRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    cipher: Blob
    state: Blob


class DecryptUpdateResponse(ApiModel):
    plain: Blob
    state: Blob


class DecryptFinalRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    state: Blob
    tag: Optional[Blob] = None


class DecryptFinalResponse(ApiModel):
    plain: Blob


class DigestRequest(ApiModel):
    alg: DigestAlgorithm
    data: Blob


class DigestResponse(ApiModel):
    digest: Blob


class MacRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Optional[DigestAlgorithm] = None
    data: Blob


class MacResponse(ApiModel):
    kid: Optional[UUID] = None
    digest: Optional[Blob] = None
    mac: Blob


class VerifyMacRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Optional[DigestAlgorithm] = None
    data: Blob
    digest: Optional[Blob] = None
    mac: Optional[Blob] = None


class DeriveKeyMechanism(TaggedUnion):
    """Key derivation mechanism; encrypting data is the only one supported."""

    encrypt_data: Optional[EncryptRequest] = None


class DeriveKeyRequest(ApiModel):
    activation_date: Optional[Time] = None
    deactivation_date: Optional[Time] = None
    key: Optional[SobjectDescriptor] = None
    name: Optional[str] = None
    group_id: Optional[UUID] = None
    key_type: ObjectType
    key_size: int
    mechanism: DeriveKeyMechanism
    enabled: Optional[bool] = None
    description: Optional[str] = None
    custom_metadata: Optional[Dict[str, str]] = None
    key_ops: Optional[KeyOperations] = None
    state: Optional[SobjectState] = None
    transient: Optional[bool] = None


class AgreeKeyMechanism(str, Enum):
    DIFFIE_HELLMAN = "diffie_hellman"


class AgreeKeyRequest(ApiModel):
    activation_date: Optional[Time] = None
    deactivation_date: Optional[Time] = None
    private_key: SobjectDescriptor
    public_key: SobjectDescriptor
    mechanism: AgreeKeyMechanism
    name: Optional[str] = None
    group_id: Optional[UUID] = None
    key_type: ObjectType
    key_size: int
    enabled: bool
    description: Optional[str] = None
    custom_metadata: Optional[Dict[str, str]] = None
    key_ops: Optional[KeyOperations] = None
    state: Optional[SobjectState] = None
    transient: bool


class WrapKeyRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    subject: Optional[SobjectDescriptor] = None
    kid: Optional[UUID] = None
    alg: Algorithm
    mode: Optional[CryptMode] = None
    iv: Optional[Blob] = None
    ad: Optional[Blob] = None
    tag_len: Optional[int] = None


class WrapKeyResponse(ApiModel):
    wrapped_key: Blob
    iv: Optional[Blob] = None
    tag: Optional[Blob] = None


class UnwrapKeyRequest(ApiModel):
    key: Optional[SobjectDescriptor] = None
    alg: Algorithm
    obj_type: ObjectType
    rsa: Optional[RsaOptions] = None
    wrapped_key: Blob
    mode: Optional[CryptMode] = None
    iv: Optional[Blob] = None
    ad: Optional[Blob] = None
    tag: Optional[Blob] = None
    name: Optional[str] = None
    group_id: Optional[UUID] = None
    enabled: Optional[bool] = None
    description: Optional[str] = None
    custom_metadata: Optional[Dict[str, str]] = None
    key_ops: Optional[KeyOperations] = None
    transient: Optional[bool] = None


# -- Operations -------------------------------------------------------------

class OperationEncrypt(Operation):
    method = Method.POST
    path_template = "/crypto/v1/encrypt"
    body_type = EncryptRequest
    output_type = EncryptResponse


class OperationEncryptInit(Operation):
    method = Method.POST
    path_template = "/crypto/v1/encrypt/init"
    body_type = EncryptInitRequest
    output_type = EncryptInitResponse


class OperationEncryptUpdate(Operation):
    method = Method.POST
    path_template = "/crypto/v1/encrypt/update"
    body_type = EncryptUpdateRequest
    output_type = EncryptUpdateResponse


class OperationEncryptFinal(Operation):
    method = Method.POST
    path_template = "/crypto/v1/encrypt/final"
    body_type = EncryptFinalRequest
    output_type = EncryptFinalResponse


class OperationDecrypt(Operation):
    method = Method.POST
    path_template = "/crypto/v1/decrypt"
    body_type = DecryptRequest
    output_type = DecryptResponse


class OperationDecryptInit(Operation):
    method = Method.POST
    path_template = "/crypto/v1/decrypt/init"
    body_type = DecryptInitRequest
    output_type = DecryptInitResponse


class OperationDecryptUpdate(Operation):
    method = Method.POST
    path_template = "/crypto/v1/decrypt/update"
    body_type = DecryptUpdateRequest
    output_type = DecryptUpdateResponse


class OperationDecryptFinal(Operation):
    method = Method.POST
    path_template = "/crypto/v1/decrypt/final"
    body_type = DecryptFinalRequest
    output_type = DecryptFinalResponse


class OperationSign(Operation):
    method = Method.POST
    path_template = "/crypto/v1/sign"
    body_type = SignRequest
    output_type = SignResponse


class OperationVerify(Operation):
    method = Method.POST
    path_template = "/crypto/v1/verify"
    body_type = VerifyRequest
    output_type = VerifyResponse


class OperationWrap(Operation):
    method = Method.POST
    path_template = "/crypto/v1/wrapkey"
    body_type = WrapKeyRequest
    output_type = WrapKeyResponse


class OperationUnwrap(Operation):
    method = Method.POST
    path_template = "/crypto/v1/unwrapkey"
    body_type = UnwrapKeyRequest
    output_type = Sobject


class OperationMac(Operation):
    method = Method.POST
    path_template = "/crypto/v1/mac"
    body_type = MacRequest
    output_type = MacResponse


class OperationMacVerify(Operation):
    method = Method.POST
    path_template = "/crypto/v1/macverify"
    body_type = VerifyMacRequest
    output_type = VerifyResponse


class OperationDerive(Operation):
    method = Method.POST
    path_template = "/crypto/v1/derive"
    body_type = DeriveKeyRequest
    output_type = Sobject


class OperationAgree(Operation):
    method = Method.POST
    path_template = "/crypto/v1/agree"
    body_type = AgreeKeyRequest
    output_type = Sobject


class OperationCreateDigest(Operation):
    method = Method.POST
    path_template = "/crypto/v1/digest"
    body_type = DigestRequest
    output_type = DigestResponse


class CryptoOperations:
    """Cryptographic operations.

    Mixed into both clients. On ``AsyncSdkmsClient`` every method returns an
    awaitable.
    """

    def encrypt(self, req: EncryptRequest):
        return self.execute(OperationEncrypt, req)

    def request_approval_to_encrypt(self, req: EncryptRequest, description: Optional[str] = None):
        return self.request_approval(OperationEncrypt, req, description=description)

    def encrypt_init(self, req: EncryptInitRequest):
        return self.execute(OperationEncryptInit, req)

    def encrypt_update(self, req: EncryptUpdateRequest):
        return self.execute(OperationEncryptUpdate, req)

    def encrypt_final(self, req: EncryptFinalRequest):
        return self.execute(OperationEncryptFinal, req)

    def decrypt(self, req: DecryptRequest):
        return self.execute(OperationDecrypt, req)

    def request_approval_to_decrypt(self, req: DecryptRequest, description: Optional[str] = None):
        return self.request_approval(OperationDecrypt, req, description=description)

    def decrypt_init(self, req: DecryptInitRequest):
        return self.execute(OperationDecryptInit, req)

    def decrypt_update(self, req: DecryptUpdateRequest):
        return self.execute(OperationDecryptUpdate, req)

    def decrypt_final(self, req: DecryptFinalRequest):
        return self.execute(OperationDecryptFinal, req)

    def sign(self, req: SignRequest):
        return self.execute(OperationSign, req)

    def request_approval_to_sign(self, req: SignRequest, description: Optional[str] = None):
        return self.request_approval(OperationSign, req, description=description)

    def verify(self, req: VerifyRequest):
        return self.execute(OperationVerify, req)

    def wrap(self, req: WrapKeyRequest):
        return self.execute(OperationWrap, req)

    def request_approval_to_wrap(self, req: WrapKeyRequest, description: Optional[str] = None):
        return self.request_approval(OperationWrap, req, description=description)

    def unwrap(self, req: UnwrapKeyRequest):
        return self.execute(OperationUnwrap, req)

    def request_approval_to_unwrap(self, req: UnwrapKeyRequest, description: Optional[str] = None):
        return self.request_approval(OperationUnwrap, req, description=description)

    def mac(self, req: MacRequest):
        return self.execute(OperationMac, req)

    def request_approval_to_mac(self, req: MacRequest, description: Optional[str] = None):
        return self.request_approval(OperationMac, req, description=description)

    def mac_verify(self, req: VerifyMacRequest):
        return self.execute(OperationMacVerify, req)

    def derive(self, req: DeriveKeyRequest):
        return self.execute(OperationDerive, req)

    def request_approval_to_derive(self, req: DeriveKeyRequest, description: Optional[str] = None):
        return self.request_approval(OperationDerive, req, description=description)

    def agree(self, req: AgreeKeyRequest):
        return self.execute(OperationAgree, req)

    def request_approval_to_agree(self, req: AgreeKeyRequest, description: Optional[str] = None):
        return self.request_approval(OperationAgree, req, description=description)

    def create_digest(self, req: DigestRequest):
        return self.execute(OperationCreateDigest, req)
