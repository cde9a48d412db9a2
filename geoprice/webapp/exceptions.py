"""
Custom exceptions for the geoprice web application.

Provides a hierarchy of exceptions for clean error handling in routes.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for application errors."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(AppException):
    """Raised when input validation fails."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class CountrySelectionError(ValidationError):
    """Raised when a country selection request carries no usable code."""

    error_code = "INVALID_COUNTRY"

    def __init__(self, value: Optional[str]):
        super().__init__("A country code is required", details={"country": value})
