"""
Error types raised by the identity lookup client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class IdentityClientException(Exception):
    """Base exception for identity lookup failures."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class BadOAuthToken(IdentityClientException):
    """The identity provider rejected the access token.

    Raised for expired or revoked tokens, tokens issued for another org and
    unknown identity ids. Callers should ask the user to authenticate again.
    """

    def __init__(self, message: str = "Bad OAuth token", details: Optional[Dict[str, Any]] = None):
        super().__init__("BAD_OAUTH_TOKEN", message, details)


class RemoteError(IdentityClientException):
    """The identity provider answered with an unexpected non-2xx response."""

    def __init__(self, status_code: int, body: str, message: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(
            "REMOTE_ERROR",
            message or f"Response error: {status_code} {body}",
            {"status_code": status_code, "body": body}
        )


class TransportError(IdentityClientException):
    """No response was obtained from the identity provider."""

    def __init__(self, message: str = "IO error", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_ERROR", message, details)


class ConfigurationError(IdentityClientException):
    """The identity provider returned a payload of an unexpected shape."""

    def __init__(self, message: str = "Unexpected identity payload", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ValidationError(IdentityClientException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)
