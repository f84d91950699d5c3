"""Custom exception hierarchy.

Each error maps to one HTTP status at the API boundary (see
``synapse_legal.main``): validation 400, auth 401, not found 404,
dependency/configuration 500.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for application errors."""

    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(AppError):
    """Raised when request input is invalid (bad MIME type, missing file or field)."""

    status_code = 400
    title = "Validation Error"


class AuthError(AppError):
    """Raised when the bearer credential is missing or invalid."""

    status_code = 401
    title = "Unauthorized"


class NotFoundError(AppError):
    """Raised when a document or profile is absent or not owned by the caller."""

    status_code = 404
    title = "Not Found"


class DependencyError(AppError):
    """Raised when storage, identity or persistence backends fail."""

    status_code = 500
    title = "Internal Server Error"


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""

    pass
