"""
Error taxonomy for the chat relay.
Every error aborts the current request and maps to one HTTP status.
"""

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base exception for relay errors."""

    status_code: int = 500
    error_type: str = "internal_error"
    code: str = "internal_error"

    def __init__(self, message: str, provider: Optional[str] = None):
        self.message = message
        self.provider = provider
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Render as an OpenAI-style error body."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }


class MissingCredential(RelayError):
    """Raised when no bearer credential accompanies the request."""

    status_code = 401
    error_type = "authentication_error"
    code = "missing_credential"


class MalformedCredential(MissingCredential):
    """Raised when the Authorization header is not `Bearer <token>`."""

    code = "malformed_credential"


class InvalidRequest(RelayError):
    """Raised when the request body cannot be parsed."""

    status_code = 400
    error_type = "invalid_request_error"
    code = "invalid_request"


class MissingContent(InvalidRequest):
    """Raised when a message carries no extractable text."""

    code = "missing_content"


class UnsupportedModel(InvalidRequest):
    """Raised when the requested model matches no provider."""

    code = "unsupported_model"

    def __init__(self, message: str, model: Optional[str] = None):
        super().__init__(message)
        self.model = model


class UpstreamFailure(RelayError):
    """Raised when the provider call errors or its stream ends abnormally."""

    status_code = 502
    error_type = "upstream_error"
    code = "upstream_failure"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, provider)
        self.upstream_status = upstream_status
