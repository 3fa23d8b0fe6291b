"""
Common Exception Classes

This module defines the base application error and the generic errors shared
by every feature. Each error carries the HTTP status it maps to and a stable
machine-readable code; the API layer renders them, nothing else needs to know
about HTTP.
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for all errors rendered at the API boundary."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}


class ValidationError(AppError):
    """Exception raised for malformed or missing input."""

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        """
        Args:
            message: Error message
            errors: Field name to problem mapping
        """
        super().__init__(message, details=errors)
        self.errors = errors or {}


class NotFoundError(AppError):
    """Exception raised when a resource is not found."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(f"{resource_type} not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class DatabaseError(AppError):
    """Exception raised when the store cannot be reached or a query fails."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(f"Database error: {message}")
        self.original_exception = original_exception
