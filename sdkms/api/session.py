"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Session endpoints. Authentication and termination change client state and
are driven by the clients themselves; this module only describes the wire.

Users with two-factor authentication get an ``AuthResponse`` whose
``challenge`` is set. The returned session can only answer the challenge
(``u2f_auth`` or ``recovery_code_auth``) until it has done so.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from sdkms.api.common import ApiModel, Blob, U2fAuthRequest
from sdkms.operations import Method, Operation, QueryParams


class MfaChallengeResponse(ApiModel):
    """Second factor challenge issued with a partially authenticated session."""

    u2f_challenge: Optional[str] = None
    u2f_keys: List[Dict[str, Any]] = []


class AuthResponse(ApiModel):
    """Session metadata returned by a successful authentication."""

    token_type: str
    expires_in: int
    access_token: str
    entity_id: UUID
    challenge: Optional[MfaChallengeResponse] = None

    @property
    def requires_second_factor(self) -> bool:
        return self.challenge is not None


class AuthMethod(ApiModel):
    """One way a user can sign in, tagged by ``method`` (e.g. ``"password"``)."""

    method: str
    name: Optional[str] = None
    icon_url: Optional[str] = None
    idp_id: Optional[Blob] = None


class AuthDiscoverRequest(ApiModel):
    user_email: Optional[str] = None


@dataclass
class AuthDiscoverParams(QueryParams):
    acct_id: Optional[UUID] = None


class RecoveryCodeAuthRequest(ApiModel):
    recovery_code: str


class Config2faAuthRequest(ApiModel):
    password: str


class Config2faAuthResponse(ApiModel):
    pass


class SelectAccountRequest(ApiModel):
    acct_id: UUID


class SelectAccountResponse(ApiModel):
    cookie: Optional[str] = None


class OperationAuthenticate(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/auth"
    output_type = AuthResponse


class OperationAuthDiscover(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/auth/discover"
    query_type = AuthDiscoverParams
    body_type = AuthDiscoverRequest
    output_type = List[AuthMethod]


class OperationU2fAuth(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/auth/2fa/u2f"
    body_type = U2fAuthRequest


class OperationRecoveryCodeAuth(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/auth/2fa/recovery_code"
    body_type = RecoveryCodeAuthRequest


class OperationReauthenticate(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/reauth"
    output_type = AuthResponse


class OperationConfig2faAuth(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/config_2fa/auth"
    body_type = Config2faAuthRequest
    output_type = Config2faAuthResponse


class OperationConfig2faTerminate(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/config_2fa/terminate"


class OperationU2fNewChallenge(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/config_2fa/new_challenge"
    output_type = MfaChallengeResponse


class OperationTerminate(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/terminate"


class OperationRefresh(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/refresh"


class OperationSelectAccount(Operation):
    method = Method.POST
    path_template = "/sys/v1/session/select_account"
    body_type = SelectAccountRequest
    output_type = SelectAccountResponse


class SessionOperations:
    """Session housekeeping and second factor endpoints, mixed into both clients."""

    def auth_discover(
        self,
        req: Optional[AuthDiscoverRequest] = None,
        query_params: Optional[AuthDiscoverParams] = None,
    ):
        """List the sign-in methods available to a user (no session needed)."""
        return self.execute(
            OperationAuthDiscover, req or AuthDiscoverRequest(), query_params=query_params
        )

    def u2f_auth(self, req: U2fAuthRequest):
        """Answer the session's U2F challenge."""
        return self.execute(OperationU2fAuth, req)

    def recovery_code_auth(self, recovery_code: str):
        """Answer the session's second factor challenge with a recovery code."""
        return self.execute(
            OperationRecoveryCodeAuth, RecoveryCodeAuthRequest(recovery_code=recovery_code)
        )

    def reauthenticate(self):
        return self.execute(OperationReauthenticate)

    def config_2fa_auth(self, password: str):
        """Enter two-factor configuration mode."""
        return self.execute(OperationConfig2faAuth, Config2faAuthRequest(password=password))

    def config_2fa_terminate(self):
        return self.execute(OperationConfig2faTerminate)

    def u2f_new_challenge(self):
        return self.execute(OperationU2fNewChallenge)

    def refresh_session(self):
        """Extend the current session; any successful call also counts as activity."""
        return self.execute(OperationRefresh)

    def select_account(self, acct_id: Union[UUID, str]):
        return self.execute(OperationSelectAccount, SelectAccountRequest(acct_id=acct_id))
