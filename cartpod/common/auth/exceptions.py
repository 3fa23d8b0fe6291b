"""
Authentication Exceptions

This module defines the exception classes for authentication, authorization,
credential and password-reset failures.
"""

from typing import List, Optional

from cartpod.common.exceptions import AppError


class AuthError(AppError):
    """Base exception for authentication and authorization errors."""

    def __init__(self, message: str = "Authentication error", status_code: int = 401, code: str = "unauthenticated"):
        super().__init__(message, status_code=status_code, code=code)


class InvalidTokenError(AuthError):
    """Raised by the token verifier for malformed, forged or mistyped tokens."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, status_code=401, code="invalid_token")


class ExpiredTokenError(AuthError):
    """Raised by the token verifier for a well-formed token past its expiry."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, status_code=401, code="expired_token")


class UnauthenticatedError(AuthError):
    """No usable identity on the request."""

    def __init__(self, message: str = "Please authenticate."):
        super().__init__(message, status_code=401, code="unauthenticated")


class ForbiddenError(AuthError):
    """Authenticated, but the role or ownership check failed."""

    def __init__(self, message: str = "Access denied."):
        super().__init__(message, status_code=403, code="forbidden")


class InvalidCredentialsError(AuthError):
    """
    Login failed.

    Deliberately the same for an unknown email and a wrong password.
    """

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message, status_code=400, code="invalid_credentials")


class DuplicateEmailError(AuthError):
    """Raised when an email is already registered to another user."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message, status_code=400, code="duplicate_email")


class LastAdminError(AuthError):
    """Raised when deleting or demoting the only remaining admin."""

    def __init__(self, message: str = "Cannot delete the last admin user"):
        super().__init__(message, status_code=400, code="last_admin")


class InvalidOrExpiredTokenError(AuthError):
    """A password reset token that cannot be consumed."""

    def __init__(self, message: str = "Invalid or expired reset token"):
        super().__init__(message, status_code=400, code="invalid_or_expired_token")


class WeakPasswordError(AuthError):
    """A new password that does not satisfy the password policy."""

    def __init__(self, problems: List[str], message: Optional[str] = None):
        super().__init__(message or "Password does not meet requirements", status_code=400, code="weak_password")
        self.problems = problems
        self.details = {"problems": problems}


class EmailDeliveryError(AuthError):
    """The reset email could not be sent; the reset request was rolled back."""

    def __init__(self, message: str = "Failed to send reset email. Please check your email configuration."):
        super().__init__(message, status_code=500, code="email_delivery_failure")
