"""
Unit tests for credentials and session state.
"""

import base64
import threading
from uuid import UUID

from sdkms.api.session import AuthResponse
from sdkms.session import AuthScheme, Credential, SessionState


def _auth(expires_in: int = 600) -> AuthResponse:
    return AuthResponse(
        token_type="Bearer",
        expires_in=expires_in,
        access_token="tok",
        entity_id=UUID("2b7a6c3d-1e4f-4a5b-8c9d-0e1f2a3b4c5d"),
    )


class TestCredential:
    """Test Authorization header formatting."""

    def test_api_key_sent_verbatim(self):
        """Test API keys are already encoded and sent as Basic."""
        credential = Credential.from_api_key("YXBpLWtleQ==")
        assert credential.header_value() == "Basic YXBpLWtleQ=="
        assert not credential.is_bearer

    def test_user_pass_is_base64(self):
        """Test username and password are joined and encoded."""
        credential = Credential.from_user_pass("alice@example.com", "s3cret")
        expected = base64.b64encode(b"alice@example.com:s3cret").decode()
        assert credential.header_value() == f"Basic {expected}"

    def test_cert_style_empty_password(self):
        """Test an app id with an empty secret."""
        app_id = UUID("2b7a6c3d-1e4f-4a5b-8c9d-0e1f2a3b4c5d")
        credential = Credential.from_user_pass(app_id, "")
        assert base64.b64decode(credential.token) == f"{app_id}:".encode()

    def test_bearer(self):
        """Test session tokens."""
        credential = Credential.bearer("tok")
        assert credential.scheme is AuthScheme.BEARER
        assert credential.header_value() == "Bearer tok"
        assert credential.is_bearer

    def test_repr_hides_token(self):
        """Test the token does not leak into reprs."""
        assert "tok" not in repr(Credential.bearer("tok"))


class TestSessionState:
    """Test mutable session state."""

    def test_unauthenticated(self, clock):
        """Test a fresh state has no header and no session."""
        state = SessionState(clock=clock)
        assert state.authorization_header() is None
        assert not state.has_session()
        assert state.expires_in() is None

    def test_basic_credential_is_not_a_session(self, clock):
        """Test only bearer tokens count as sessions."""
        state = SessionState(Credential.from_api_key("k"), clock=clock)
        assert not state.has_session()
        assert state.take_bearer() is None

    def test_touch_updates_last_activity(self, clock):
        """Test last activity follows the clock."""
        state = SessionState(clock=clock)
        start = state.last_activity
        clock.advance(5)
        state.touch()
        assert state.last_activity == start + 5

    def test_clear(self, clock):
        """Test clearing drops credential and metadata."""
        state = SessionState(Credential.bearer("tok"), _auth(), clock=clock)
        state.clear()
        assert state.credential is None
        assert state.auth_response is None
        assert not state.has_session()

    def test_concurrent_touches(self, clock):
        """Test concurrent updates leave a consistent value."""
        state = SessionState(clock=clock)
        threads = [threading.Thread(target=state.touch) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert state.last_activity == clock.now

    def test_take_bearer_claims_once(self, clock):
        """Test the session token is handed out to one caller only."""
        state = SessionState(Credential.bearer("tok"), _auth(), clock=clock)
        claimed = state.take_bearer()
        assert claimed == Credential.bearer("tok")
        assert state.take_bearer() is None
        assert not state.has_session()
        assert state.authorization_header() is None

    def test_concurrent_claims(self, clock):
        """Test racing callers see the token exactly once."""
        state = SessionState(Credential.bearer("tok"), _auth(), clock=clock)
        claims = []
        threads = [threading.Thread(target=lambda: claims.append(state.take_bearer())) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert [c for c in claims if c is not None] == [Credential.bearer("tok")]


class TestExpiresIn:
    """Test session expiry bookkeeping."""

    def test_full_lifetime_right_after_auth(self, clock):
        """Test the whole lifetime remains right after authentication."""
        state = SessionState(Credential.bearer("tok"), _auth(600), clock=clock)
        assert state.expires_in() == 600

    def test_decreases_as_time_passes(self, clock):
        """Test the remaining time decreases monotonically."""
        state = SessionState(Credential.bearer("tok"), _auth(600), clock=clock)
        seen = []
        for _ in range(5):
            clock.advance(100)
            seen.append(state.expires_in())
        assert seen == [500, 400, 300, 200, 100]

    def test_none_once_expired(self, clock):
        """Test expiry yields None instead of a negative duration."""
        state = SessionState(Credential.bearer("tok"), _auth(600), clock=clock)
        clock.advance(600)
        assert state.expires_in() is None
        clock.advance(1000)
        assert state.expires_in() is None

    def test_activity_extends_session(self, clock):
        """Test a completed call restarts the countdown."""
        state = SessionState(Credential.bearer("tok"), _auth(600), clock=clock)
        clock.advance(500)
        state.touch()
        assert state.expires_in() == 600
