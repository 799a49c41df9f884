"""
Exception hierarchy for the SDKMS client.

All custom exceptions inherit from SdkmsError base class.
"""

import json
from http import HTTPStatus
from typing import Callable, Dict, Optional, Type, Union


# Default message the service uses to signal that an approval policy applies.
APPROVAL_REQUIRED_MESSAGE = "This operation requires approval"

ApprovalMatcher = Union[str, Callable[[str], bool]]


def error_text(body: str) -> str:
    """
    Extract the human-readable message from an error body.

    The service answers errors either with plain text or with a JSON object
    such as ``{"error": "..."}``.
    """
    text = body.strip()
    if text.startswith("{"):
        try:
            data = json.loads(text)
        except ValueError:
            return text
        if isinstance(data, dict):
            for key in ("error", "message"):
                if isinstance(data.get(key), str):
                    return data[key].strip()
    return text


class SdkmsError(Exception):
    """Base exception for all SDKMS client errors."""
    pass


# API Errors (non-2xx responses)
class ApiError(SdkmsError):
    """
    Base exception for errors reported by the service with an HTTP status.

    Attributes:
        status_code: HTTP status code of the response
        message: Response body as text
    """

    status_code: int = 0

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class UnauthorizedError(ApiError):
    """Raised on 401 responses, e.g. bad credentials or an expired session."""
    status_code = 401


class ForbiddenError(ApiError):
    """Raised on 403 responses."""
    status_code = 403

    def requires_approval(self, matcher: Optional[ApprovalMatcher] = None) -> bool:
        """
        Check whether this error signals that an approval request is needed.

        Args:
            matcher: Expected message or a predicate over the message.
                Defaults to APPROVAL_REQUIRED_MESSAGE.

        Returns:
            True if the message matches
        """
        if matcher is None:
            matcher = APPROVAL_REQUIRED_MESSAGE
        text = error_text(self.message)
        if callable(matcher):
            return bool(matcher(text))
        return text == matcher


class BadRequestError(ApiError):
    """Raised on 400 responses."""
    status_code = 400


class ConflictError(ApiError):
    """Raised on 409 responses."""
    status_code = 409


class LockedError(ApiError):
    """Raised on 423 responses."""
    status_code = 423


class NotFoundError(ApiError):
    """Raised on 404 responses."""
    status_code = 404


class StatusCodeError(ApiError):
    """Raised on any other non-2xx response."""

    def __init__(self, status_code: int, message: str):
        try:
            reason = f"{status_code} {HTTPStatus(status_code).phrase}"
        except ValueError:
            reason = str(status_code)
        super().__init__(f"unexpected status code: {reason}\n{message}", status_code)
        self.message = message


_STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    401: UnauthorizedError,
    403: ForbiddenError,
    400: BadRequestError,
    409: ConflictError,
    423: LockedError,
    404: NotFoundError,
}


def error_from_status(status_code: int, message: str) -> ApiError:
    """
    Map a non-2xx HTTP status and body text to a typed error.

    Args:
        status_code: HTTP status code
        message: Response body as text

    Returns:
        The matching ApiError subclass instance, StatusCodeError for unmapped codes
    """
    error_class = _STATUS_ERRORS.get(status_code)
    if error_class is None:
        return StatusCodeError(status_code, message)
    return error_class(message)


# Encoding and I/O Errors
class EncoderError(SdkmsError):
    """Raised when JSON encoding or decoding fails."""
    pass


class IoError(SdkmsError):
    """Raised when local I/O fails, e.g. reading a response body."""
    pass


# Transport Errors
class NetworkError(SdkmsError):
    """Raised when the transport fails before a response is received."""
    pass


class TlsError(NetworkError):
    """Raised when TLS setup or the TLS handshake fails."""
    pass


# Configuration Errors
class ConfigurationError(SdkmsError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or malformed."""
    pass


class SDKConfigurationError(SdkmsError):
    """Raised when a client is built or called with invalid arguments."""
    pass


# Approval Workflow Errors
class ApprovalError(SdkmsError):
    """Base exception for approval polling errors."""
    pass


class ApprovalTimeoutError(ApprovalError):
    """Raised when an approval request is still pending after the polling budget."""

    def __init__(self, request_id, attempts: int):
        self.request_id = request_id
        self.attempts = attempts
        super().__init__(
            f"Approval request {request_id} still pending after {attempts} status checks"
        )


class ApprovalCancelledError(ApprovalError):
    """Raised when approval polling is cancelled by the caller."""

    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Polling for approval request {request_id} was cancelled")


class ApprovalDeniedError(ApprovalError):
    """Raised when a reviewer denies the approval request behind a call."""

    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Approval request {request_id} was denied")
