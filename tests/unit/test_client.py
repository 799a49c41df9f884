"""
Unit tests for the blocking SdkmsClient: dispatch, authentication, session
teardown and the builder.
"""

import base64
import json
import threading
from typing import Dict
from uuid import UUID

import pytest

from sdkms.adapters.base import SDKResponse
from sdkms.adapters.http import RequestsAdapter
from sdkms.adapters.mock import AsyncMockAdapter, MockAdapter, json_response, text_response
from sdkms.api.accounts import GetAccountParams
from sdkms.api.common import DigestAlgorithm, SignRequest, SobjectDescriptor, U2fAuthRequest
from sdkms.api.health import HealthParams
from sdkms.api.keys import ListSobjectsParams
from sdkms.api.session import AuthDiscoverParams, AuthDiscoverRequest, OperationTerminate
from sdkms.api.version import OperationVersion, ServerMode
from sdkms.client import SdkmsClient, SdkmsClientBuilder
from sdkms.config.settings import ApiConfig, SdkmsConfig, TransportConfig
from sdkms.exceptions import (
    BadRequestError,
    EncoderError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    SDKConfigurationError,
    StatusCodeError,
    UnauthorizedError,
)
from sdkms.operations import Order


API = "https://sdkms.test"
ACCT_ID = UUID("9f2c1f6e-5a5e-4b0a-9a57-0b5f5a3b1c01")
KEY_ID = UUID("0e9d8c7b-6a5f-4e3d-9c2b-1a0f9e8d7c6b")
API_KEY = base64.b64encode(b"app-id:app-secret").decode()

VERSION_JSON = {"version": "4.2.0", "api_version": "1.0", "server_mode": "Software"}
ACCOUNT_JSON = {"acct_id": str(ACCT_ID), "enabled": True, "name": "acme"}


def _headers(adapter: MockAdapter, index: int = -1) -> Dict[str, str]:
    return adapter.sent_requests[index].headers


class TestExecute:
    """Test the generic dispatch path."""

    def test_get_decodes_output(self, client, mock_adapter):
        """Test a GET decodes into the output type."""
        mock_adapter.add("GET", "/sys/v1/version", json_response(VERSION_JSON))
        version = client.version()
        assert version.version == "4.2.0"
        assert version.server_mode is ServerMode.SOFTWARE

        request = mock_adapter.sent_requests[0]
        assert request.method == "GET"
        assert request.url == f"{API}/sys/v1/version"
        assert request.body is None
        assert "Authorization" not in request.headers
        assert "Content-Type" not in request.headers

    def test_body_is_json_with_content_type(self, client, mock_adapter):
        """Test request bodies are JSON and labelled as such."""
        mock_adapter.add("POST", "/crypto/v1/sign", json_response({"kid": str(KEY_ID), "signature": "AQID"}))
        response = client.sign(SignRequest(
            key=SobjectDescriptor.by_kid(KEY_ID),
            hash_alg=DigestAlgorithm.SHA256,
            hash=b"\x00" * 32,
        ))
        assert response.signature == b"\x01\x02\x03"

        request = mock_adapter.sent_requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.body) == {
            "key": {"kid": str(KEY_ID)},
            "hash_alg": "SHA256",
            "hash": base64.b64encode(b"\x00" * 32).decode(),
        }

    def test_query_params_reach_the_wire(self, client, mock_adapter):
        """Test list queries are rendered into the URL."""
        mock_adapter.add("GET", "/crypto/v1/keys", json_response([]))
        params = ListSobjectsParams(limit=5, sort=ListSobjectsParams.sort_by_name(Order.DESCENDING))
        assert client.list_sobjects(params) == []
        assert mock_adapter.sent_requests[0].url == (
            f"{API}/crypto/v1/keys?limit=5&sort=name%3Adesc"
        )

    def test_output_ignored_when_unit(self, client, mock_adapter):
        """Test operations without output accept any 2xx body."""
        mock_adapter.add("DELETE", f"/crypto/v1/keys/{KEY_ID}", SDKResponse(status_code=204))
        assert client.delete_sobject(KEY_ID) is None

    @pytest.mark.parametrize(
        "status, cls",
        [(400, BadRequestError), (401, UnauthorizedError), (403, ForbiddenError), (404, NotFoundError), (500, StatusCodeError)],
    )
    def test_error_statuses(self, client, mock_adapter, status, cls):
        """Test non-2xx responses raise the mapped error with the body text."""
        mock_adapter.add("GET", "/sys/v1/version", text_response("went wrong", status))
        with pytest.raises(cls) as exc_info:
            client.version()
        assert exc_info.value.message == "went wrong"
        assert exc_info.value.status_code == status

    def test_invalid_json_raises_encoder_error(self, client, mock_adapter):
        """Test malformed JSON bodies fail decoding."""
        mock_adapter.add("GET", "/sys/v1/version", SDKResponse(status_code=200, body=b"{nope"))
        with pytest.raises(EncoderError):
            client.version()

    def test_empty_body_decodes_as_null(self, client, mock_adapter):
        """Test an empty 2xx body is treated as null."""
        mock_adapter.add("GET", "/sys/v1/version", SDKResponse(status_code=200, body=b""))
        with pytest.raises(EncoderError):
            client.version()
        mock_adapter.add("POST", "/sys/v1/plugins/p1", SDKResponse(status_code=200, body=b""))
        assert client.invoke_plugin("p1", {"x": 1}) is None

    def test_null_plugin_input_is_sent(self, client, mock_adapter):
        """Test a None input to an any-typed body goes out as JSON null."""
        mock_adapter.add("POST", "/sys/v1/plugins/p1", json_response({"ok": True}))
        client.invoke_plugin("p1", None)
        request = mock_adapter.sent_requests[-1]
        assert request.body == b"null"
        assert request.headers["Content-Type"] == "application/json"

    def test_unit_operation_sends_no_body(self, client, mock_adapter):
        """Test operations without a body type send no payload."""
        mock_adapter.add("POST", "/sys/v1/session/refresh", SDKResponse(status_code=200))
        client.refresh_session()
        request = mock_adapter.sent_requests[-1]
        assert request.body is None
        assert "Content-Type" not in request.headers

    def test_execute_with_descriptor(self, client, mock_adapter):
        """Test execute can be called directly with a descriptor."""
        mock_adapter.add("GET", "/sys/v1/version", json_response(VERSION_JSON))
        assert client.execute(OperationVersion).api_version == "1.0"


class TestLastActivity:
    """Test last activity bookkeeping around calls."""

    def test_response_updates_last_activity(self, client, mock_adapter, clock):
        """Test any completed exchange counts as activity."""
        mock_adapter.add("GET", "/sys/v1/version", text_response("nope", 500))
        clock.advance(30)
        with pytest.raises(StatusCodeError):
            client.version()
        assert client.last_activity == clock.now

    def test_network_failure_leaves_last_activity(self, client, mock_adapter, clock):
        """Test a call that got no response does not count as activity."""
        mock_adapter.add("GET", "/sys/v1/version", NetworkError("connection refused"))
        before = client.last_activity
        clock.advance(30)
        with pytest.raises(NetworkError):
            client.version()
        assert client.last_activity == before


class TestAuthentication:
    """Test session authentication."""

    def test_api_key_then_bearer(self, mock_adapter, clock, auth_ok):
        """Test calls switch from Basic to Bearer after authenticating."""
        mock_adapter.add("GET", "/sys/v1/version", json_response(VERSION_JSON))
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        client = (
            SdkmsClient.builder()
            .set_api_endpoint(API)
            .set_api_key(API_KEY)
            .set_adapter(mock_adapter)
            .set_clock(clock)
            .build()
        )

        client.version()
        assert _headers(mock_adapter)["Authorization"] == f"Basic {API_KEY}"

        session = client.authenticate_with_api_key(API_KEY)
        assert _headers(mock_adapter)["Authorization"] == f"Basic {API_KEY}"
        assert mock_adapter.sent_requests[-1].body is None

        session.version()
        assert _headers(mock_adapter)["Authorization"] == "Bearer session-token"

    def test_authenticate_returns_new_client(self, client, mock_adapter, auth_ok):
        """Test the original client is left untouched."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        session = client.authenticate_app("2b7a6c3d-1e4f-4a5b-8c9d-0e1f2a3b4c5d", "secret")

        assert session is not client
        assert session.has_session()
        assert not client.has_session()
        assert client.auth_response is None
        assert session.entity_id == UUID("2b7a6c3d-1e4f-4a5b-8c9d-0e1f2a3b4c5d")
        assert session.expires_in() == 600
        assert session.api_endpoint == API

    def test_user_credentials(self, client, mock_adapter, auth_ok):
        """Test username and password are sent as Basic credentials."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        client.authenticate_user("alice@example.com", "pw")
        expected = base64.b64encode(b"alice@example.com:pw").decode()
        assert _headers(mock_adapter)["Authorization"] == f"Basic {expected}"

    def test_cert_without_app_id_sends_no_header(self, client, mock_adapter, auth_ok):
        """Test certificate authentication relies on the transport."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        client.authenticate_with_cert()
        assert "Authorization" not in _headers(mock_adapter)

    def test_cert_with_app_id(self, client, mock_adapter, auth_ok):
        """Test certificate authentication names the app with an empty secret."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        client.authenticate_with_cert("app-1")
        assert _headers(mock_adapter)["Authorization"] == f"Basic {base64.b64encode(b'app-1:').decode()}"

    def test_bad_credentials(self, client, mock_adapter):
        """Test authentication failures raise the mapped error."""
        mock_adapter.add("POST", "/sys/v1/session/auth", text_response("bad credentials", 401))
        with pytest.raises(UnauthorizedError):
            client.authenticate_with_api_key("bad")

    def test_session_expiry_follows_activity(self, client, mock_adapter, clock, auth_ok):
        """Test expires_in counts down from the last completed call."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("GET", "/sys/v1/version", json_response(VERSION_JSON))
        session = client.authenticate_with_api_key(API_KEY)

        clock.advance(200)
        assert session.expires_in() == 400
        session.version()
        assert session.expires_in() == 600
        clock.advance(601)
        assert session.expires_in() is None

    def test_refresh_and_select_account(self, client, mock_adapter, auth_ok):
        """Test session housekeeping endpoints."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/refresh", SDKResponse(status_code=204))
        mock_adapter.add("POST", "/sys/v1/session/select_account", json_response({}))
        session = client.authenticate_with_api_key(API_KEY)

        assert session.refresh_session() is None
        session.select_account(ACCT_ID)
        assert json.loads(mock_adapter.sent_requests[-1].body) == {"acct_id": str(ACCT_ID)}


class TestTerminate:
    """Test session termination and scoped teardown."""

    def test_terminate_is_idempotent(self, client, mock_adapter, auth_ok):
        """Test only the first terminate reaches the service."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/terminate", SDKResponse(status_code=204))
        session = client.authenticate_with_api_key(API_KEY)

        session.terminate()
        session.terminate()

        terminations = mock_adapter.requests_to("POST", OperationTerminate.path_template)
        assert len(terminations) == 1
        assert terminations[0].headers["Authorization"] == "Bearer session-token"
        assert not session.has_session()
        assert session.auth_response is None
        assert session.expires_in() is None

    def test_concurrent_terminate_posts_once(self, client, mock_adapter, auth_ok):
        """Test racing terminate calls reach the service once."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/terminate", SDKResponse(status_code=204))
        session = client.authenticate_with_api_key(API_KEY)

        threads = [threading.Thread(target=session.terminate) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(mock_adapter.requests_to("POST", OperationTerminate.path_template)) == 1
        assert not session.has_session()

    def test_failed_terminate_drops_session(self, client, mock_adapter, auth_ok):
        """Test the token is discarded even when the service call fails."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/terminate", NetworkError("down"))
        session = client.authenticate_with_api_key(API_KEY)

        with pytest.raises(NetworkError):
            session.terminate()
        assert not session.has_session()
        session.terminate()
        assert len(mock_adapter.requests_to("POST", OperationTerminate.path_template)) == 1

    def test_terminate_without_session_is_noop(self, mock_adapter):
        """Test Basic and anonymous clients have nothing to terminate."""
        SdkmsClient(adapter=mock_adapter, credential=None).terminate()
        SdkmsClientBuilder().set_api_key("k").set_adapter(mock_adapter).build().terminate()
        assert mock_adapter.sent_requests == []

    def test_context_manager_terminates(self, client, mock_adapter, auth_ok):
        """Test leaving the block ends the session without closing a shared transport."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/terminate", SDKResponse(status_code=204))

        with client.authenticate_with_api_key(API_KEY) as session:
            assert session.has_session()
        assert not session.has_session()
        assert mock_adapter.is_connected

    def test_teardown_failure_is_swallowed(self, client, mock_adapter, auth_ok):
        """Test a failing terminate does not escape the with block."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/terminate", NetworkError("down"))

        with client.authenticate_with_api_key(API_KEY):
            pass

    def test_body_exception_propagates(self, client, mock_adapter, auth_ok):
        """Test errors inside the block still propagate after teardown."""
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        mock_adapter.add("POST", "/sys/v1/session/terminate", SDKResponse(status_code=204))

        with pytest.raises(ValueError):
            with client.authenticate_with_api_key(API_KEY):
                raise ValueError("boom")
        assert len(mock_adapter.requests_to("POST", "/sys/v1/session/terminate")) == 1

    def test_owning_client_closes_transport(self, mock_adapter):
        """Test the client that owns the transport closes it on exit."""
        with SdkmsClient(adapter=mock_adapter, api_endpoint=API):
            pass
        assert mock_adapter.closed


class TestBuilder:
    """Test SdkmsClientBuilder."""

    def test_defaults(self):
        """Test the default endpoint and transport."""
        client = SdkmsClientBuilder().build()
        assert client.api_endpoint == "https://sdkms.fortanix.com"
        assert isinstance(client.adapter, RequestsAdapter)
        client.close()

    def test_trailing_slash_trimmed(self, mock_adapter):
        """Test endpoint normalisation."""
        client = SdkmsClientBuilder().set_api_endpoint(f"{API}/").set_adapter(mock_adapter).build()
        assert client.api_endpoint == API

    def test_rejects_bad_endpoint(self):
        """Test non-HTTP endpoints are rejected."""
        with pytest.raises(SDKConfigurationError):
            SdkmsClientBuilder().set_api_endpoint("sdkms.test")

    def test_rejects_bad_timeout(self):
        """Test timeouts must be positive."""
        with pytest.raises(SDKConfigurationError):
            SdkmsClientBuilder().set_timeout(0)

    def test_rejects_async_adapter(self):
        """Test the blocking client refuses an asyncio transport."""
        with pytest.raises(SDKConfigurationError):
            SdkmsClientBuilder().set_adapter(AsyncMockAdapter()).build()

    def test_access_token(self, mock_adapter):
        """Test reusing an existing session token."""
        client = SdkmsClientBuilder().set_access_token("tok").set_adapter(mock_adapter).build()
        assert client.has_session()

    def test_custom_adapter_not_owned(self, mock_adapter):
        """Test a caller-supplied transport stays open."""
        client = SdkmsClientBuilder().set_adapter(mock_adapter).build()
        client.close()
        assert not mock_adapter.closed

    def test_from_config(self, mock_adapter):
        """Test building from loaded configuration."""
        config = SdkmsConfig(
            api=ApiConfig(endpoint=API, api_key=API_KEY),
            transport=TransportConfig(timeout_seconds=5.0),
        )
        mock_adapter.add("GET", "/sys/v1/version", json_response(VERSION_JSON))
        client = SdkmsClientBuilder.from_config(config).set_adapter(mock_adapter).build()
        client.version()
        assert mock_adapter.sent_requests[0].url == f"{API}/sys/v1/version"
        assert _headers(mock_adapter)["Authorization"] == f"Basic {API_KEY}"


class TestCatalogWrappers:
    """Test a sample of endpoint wrappers end to end."""

    def test_get_account_with_totals(self, client, mock_adapter):
        """Test the with_totals flag is encoded and empty flags are omitted."""
        mock_adapter.add("GET", f"/sys/v1/accounts/{ACCT_ID}", json_response(ACCOUNT_JSON))

        client.get_account(ACCT_ID, GetAccountParams(with_totals=True))
        assert mock_adapter.sent_requests[-1].url.endswith(f"/sys/v1/accounts/{ACCT_ID}?with_totals=true")

        account = client.get_account(ACCT_ID, GetAccountParams())
        assert mock_adapter.sent_requests[-1].url.endswith(f"/sys/v1/accounts/{ACCT_ID}")
        assert account.name == "acme"

    def test_get_sobject_by_name(self, client, mock_adapter, sobject_json):
        """Test looking up a key by descriptor."""
        mock_adapter.add("POST", "/crypto/v1/keys/info", json_response(sobject_json))
        sobject = client.get_sobject(SobjectDescriptor.by_name("signing-key"))
        assert sobject.kid == KEY_ID
        assert json.loads(mock_adapter.sent_requests[0].body) == {"name": "signing-key"}

    def test_invoke_plugin_nice(self, client, mock_adapter):
        """Test plugin output is decoded into the requested type."""
        mock_adapter.add("POST", "/sys/v1/plugins/p1", json_response({"count": 3}))
        result = client.invoke_plugin_nice("p1", {"input": "x"}, Dict[str, int])
        assert result == {"count": 3}
        assert json.loads(mock_adapter.sent_requests[0].body) == {"input": "x"}

    def test_invoke_plugin_nice_bad_output(self, client, mock_adapter):
        """Test undecodable plugin output raises EncoderError."""
        mock_adapter.add("POST", "/sys/v1/plugins/p1", json_response({"count": "many"}))
        with pytest.raises(EncoderError):
            client.invoke_plugin_nice("p1", {}, Dict[str, int])


CHALLENGED_AUTH = {
    "token_type": "Bearer",
    "expires_in": 300,
    "access_token": "partial-token",
    "entity_id": str(ACCT_ID),
    "challenge": {"u2f_challenge": "c2VydmVyLWNoYWxsZW5nZQ", "u2f_keys": [{"keyHandle": "a2g", "version": "U2F_V2"}]},
}


class TestSecondFactor:
    """Test completing a sign-in that asks for a second factor."""

    def test_u2f_completes_challenged_session(self, client, mock_adapter):
        """Test the partial session answers the U2F challenge with its token."""
        mock_adapter.add("POST", "/sys/v1/session/auth", json_response(CHALLENGED_AUTH))
        mock_adapter.add("POST", "/sys/v1/session/auth/2fa/u2f", SDKResponse(status_code=204))
        session = client.authenticate_user("alice@example.com", "s3cret")

        assert session.auth_response.requires_second_factor
        assert session.auth_response.challenge.u2f_challenge == "c2VydmVyLWNoYWxsZW5nZQ"

        assert session.u2f_auth(U2fAuthRequest(
            key_handle=b"\x01", signature_data=b"\x02", client_data=b"\x03",
        )) is None
        request = mock_adapter.sent_requests[-1]
        assert request.headers["Authorization"] == "Bearer partial-token"
        assert json.loads(request.body) == {"keyHandle": "AQ==", "signatureData": "Ag==", "clientData": "Aw=="}

    def test_recovery_code(self, client, mock_adapter):
        """Test a recovery code can stand in for the device."""
        mock_adapter.add("POST", "/sys/v1/session/auth/2fa/recovery_code", SDKResponse(status_code=204))
        client.recovery_code_auth("1111-2222")
        assert json.loads(mock_adapter.sent_requests[-1].body) == {"recovery_code": "1111-2222"}

    def test_plain_sign_in_has_no_challenge(self, client, mock_adapter, auth_ok):
        mock_adapter.add("POST", "/sys/v1/session/auth", auth_ok)
        assert not client.authenticate_with_api_key(API_KEY).auth_response.requires_second_factor

    def test_reauthenticate(self, client, mock_adapter, auth_response_json):
        """Test re-authentication returns fresh session metadata."""
        mock_adapter.add("POST", "/sys/v1/session/reauth", json_response(auth_response_json))
        auth = client.reauthenticate()
        assert auth.access_token == "session-token"
        assert mock_adapter.sent_requests[-1].body is None

    def test_config_2fa(self, client, mock_adapter):
        """Test entering and leaving two-factor configuration mode."""
        mock_adapter.add("POST", "/sys/v1/session/config_2fa/auth", json_response({}))
        mock_adapter.add("POST", "/sys/v1/session/config_2fa/new_challenge", json_response(CHALLENGED_AUTH["challenge"]))
        mock_adapter.add("POST", "/sys/v1/session/config_2fa/terminate", SDKResponse(status_code=204))

        client.config_2fa_auth("s3cret")
        assert json.loads(mock_adapter.sent_requests[-1].body) == {"password": "s3cret"}
        assert client.u2f_new_challenge().u2f_keys[0]["version"] == "U2F_V2"
        assert client.config_2fa_terminate() is None

    def test_auth_discover(self, client, mock_adapter):
        """Test discovering sign-in methods for an account."""
        mock_adapter.add("POST", "/sys/v1/session/auth/discover", json_response([
            {"method": "password"},
            {"method": "ldap-password", "name": "corp", "icon_url": "", "idp_id": "AQID"},
        ]))
        methods = client.auth_discover(
            AuthDiscoverRequest(user_email="alice@example.com"), AuthDiscoverParams(acct_id=ACCT_ID)
        )
        assert [m.method for m in methods] == ["password", "ldap-password"]
        assert methods[1].idp_id == b"\x01\x02\x03"
        request = mock_adapter.sent_requests[-1]
        assert request.url == f"{API}/sys/v1/session/auth/discover?acct_id={ACCT_ID}"
        assert json.loads(request.body) == {"user_email": "alice@example.com"}


class TestHealth:
    """Test the cluster health check."""

    def test_healthy(self, client, mock_adapter):
        mock_adapter.add("GET", "/sys/v1/health", SDKResponse(status_code=204))
        assert client.health() is None
        assert mock_adapter.sent_requests[-1].url == f"{API}/sys/v1/health"

    def test_query_flags(self, client, mock_adapter):
        """Test check_queues is always written once params are given."""
        mock_adapter.add("GET", "/sys/v1/health", SDKResponse(status_code=204))
        client.health(HealthParams())
        assert mock_adapter.sent_requests[-1].url == f"{API}/sys/v1/health?check_queues=false"

    def test_unhealthy_raises(self, client, mock_adapter):
        mock_adapter.add("GET", "/sys/v1/health", text_response("degraded", 503))
        with pytest.raises(StatusCodeError):
            client.health()
