"""
Unit tests for exception hierarchy and status mapping.
"""

import pytest

from sdkms.exceptions import (
    APPROVAL_REQUIRED_MESSAGE,
    ApiError,
    ApprovalCancelledError,
    ApprovalDeniedError,
    ApprovalError,
    ApprovalTimeoutError,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    EncoderError,
    ForbiddenError,
    InvalidConfigurationError,
    IoError,
    LockedError,
    NetworkError,
    NotFoundError,
    SDKConfigurationError,
    SdkmsError,
    StatusCodeError,
    TlsError,
    UnauthorizedError,
    error_from_status,
    error_text,
)


class TestExceptionHierarchy:
    """Test that exception hierarchy is correctly defined."""

    def test_base_exception(self):
        """Test that SdkmsError is the base exception."""
        error = SdkmsError("test error")
        assert isinstance(error, Exception)
        assert str(error) == "test error"

    def test_api_errors_inherit_from_api_error(self):
        """Test that every status error is an ApiError."""
        for cls in (
            UnauthorizedError,
            ForbiddenError,
            BadRequestError,
            ConflictError,
            LockedError,
            NotFoundError,
            StatusCodeError,
        ):
            assert issubclass(cls, ApiError)
            assert issubclass(cls, SdkmsError)

    def test_transport_errors(self):
        """Test that TLS failures are network failures."""
        assert issubclass(TlsError, NetworkError)
        assert issubclass(NetworkError, SdkmsError)
        assert issubclass(EncoderError, SdkmsError)
        assert issubclass(IoError, SdkmsError)

    def test_configuration_errors(self):
        """Test configuration error classes."""
        assert issubclass(InvalidConfigurationError, ConfigurationError)
        assert issubclass(ConfigurationError, SdkmsError)
        assert issubclass(SDKConfigurationError, SdkmsError)

    def test_approval_errors(self):
        """Test approval driver errors carry the request id."""
        timeout = ApprovalTimeoutError("abc", 3)
        assert isinstance(timeout, ApprovalError)
        assert timeout.request_id == "abc"
        assert timeout.attempts == 3
        assert "abc" in str(timeout)

        cancelled = ApprovalCancelledError("abc")
        assert isinstance(cancelled, ApprovalError)
        assert cancelled.request_id == "abc"

        denied = ApprovalDeniedError("abc")
        assert isinstance(denied, ApprovalError)


class TestErrorFromStatus:
    """Test mapping of HTTP status codes to typed errors."""

    @pytest.mark.parametrize(
        "status, cls",
        [
            (401, UnauthorizedError),
            (403, ForbiddenError),
            (400, BadRequestError),
            (409, ConflictError),
            (423, LockedError),
            (404, NotFoundError),
        ],
    )
    def test_mapped_statuses(self, status, cls):
        """Test each mapped status gives its error with the body text."""
        error = error_from_status(status, "body text")
        assert type(error) is cls
        assert error.status_code == status
        assert error.message == "body text"

    @pytest.mark.parametrize("status", [300, 402, 418, 429, 500, 502, 503, 599])
    def test_unmapped_statuses(self, status):
        """Test other statuses give StatusCodeError with the code and text."""
        error = error_from_status(status, "boom")
        assert type(error) is StatusCodeError
        assert error.status_code == status
        assert error.message == "boom"
        assert str(status) in str(error)

    def test_unknown_status_code_phrase(self):
        """Test codes without a standard reason phrase are still rendered."""
        error = error_from_status(599, "boom")
        assert "unexpected status code: 599" in str(error)

    def test_mapping_is_deterministic(self):
        """Test the same input maps to equal errors."""
        a = error_from_status(423, "locked")
        b = error_from_status(423, "locked")
        assert type(a) is type(b)
        assert a.message == b.message


class TestRequiresApproval:
    """Test ForbiddenError.requires_approval."""

    def test_default_message(self):
        """Test the default approval message matches."""
        assert ForbiddenError(APPROVAL_REQUIRED_MESSAGE).requires_approval()

    def test_default_message_ignores_surrounding_whitespace(self):
        """Test trailing newline in the body still matches."""
        assert ForbiddenError(APPROVAL_REQUIRED_MESSAGE + "\n").requires_approval()

    def test_other_message(self):
        """Test an unrelated 403 does not match."""
        assert not ForbiddenError("Access denied").requires_approval()

    def test_custom_string(self):
        """Test a custom expected message."""
        error = ForbiddenError("Quorum approval needed")
        assert error.requires_approval("Quorum approval needed")
        assert not error.requires_approval()

    def test_predicate(self):
        """Test a predicate matcher."""
        error = ForbiddenError("This operation requires approval from 2 reviewers")
        assert error.requires_approval(lambda m: "requires approval" in m)

    def test_json_error_body(self):
        """Test the message is read out of a JSON error object."""
        error = ForbiddenError('{"error": "This operation requires approval"}')
        assert error.requires_approval()
        assert not ForbiddenError('{"error": "Access denied"}').requires_approval()


class TestErrorText:
    """Test error body message extraction."""

    def test_plain_text(self):
        """Test plain text passes through stripped."""
        assert error_text("  nope \n") == "nope"

    def test_json_error_and_message_keys(self):
        """Test error and message keys are recognised."""
        assert error_text('{"error": "a"}') == "a"
        assert error_text('{"message": "b"}') == "b"

    def test_malformed_json(self):
        """Test bodies that only look like JSON are returned as is."""
        assert error_text("{not json") == "{not json"
