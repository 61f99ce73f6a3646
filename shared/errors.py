"""
Shared error handling for the X API access service.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class XApiException(Exception):
    """Base exception for the X API access service."""

    status_code = 400

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


class AuthenticationError(XApiException):
    """Every session resolution tier was exhausted."""

    status_code = 401

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("AUTHENTICATION_ERROR", message, details)


class ValidationError(XApiException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class OperationError(XApiException):
    """A business operation against the platform failed."""

    status_code = 500

    def __init__(self, message: str = "Operation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("OPERATION_ERROR", message, details)


class StoreUnavailableError(XApiException):
    """The persistent document store could not be reached in time."""

    status_code = 503

    def __init__(self, message: str = "Document store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", message, details)
