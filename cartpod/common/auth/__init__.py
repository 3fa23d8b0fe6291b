"""
Authentication Framework

This package provides the authentication framework of the API: credential
storage, signed session and reset tokens, the password reset flow and
role-based access control.
"""

from cartpod.common.auth.jwt import (
    JWTConfig,
    TokenClaims,
    TokenService,
    TokenType
)

from cartpod.common.auth.user import (
    User,
    UserRole,
    AuthenticatedUser
)

from cartpod.common.auth.password import (
    hash_password,
    verify_password,
    check_password_strength
)

from cartpod.common.auth.store import CredentialStore
from cartpod.common.auth.reset import PasswordResetService
from cartpod.common.auth.service import AuthResult, AuthService

from cartpod.common.auth.middleware import (
    authenticate,
    require_role,
    get_current_user
)

from cartpod.common.auth.exceptions import (
    AuthError,
    InvalidTokenError,
    ExpiredTokenError,
    UnauthenticatedError,
    ForbiddenError,
    InvalidCredentialsError,
    DuplicateEmailError,
    LastAdminError,
    InvalidOrExpiredTokenError,
    WeakPasswordError,
    EmailDeliveryError
)

# Public API
__all__ = [
    # JWT tokens
    'JWTConfig',
    'TokenClaims',
    'TokenService',
    'TokenType',

    # User models
    'User',
    'UserRole',
    'AuthenticatedUser',

    # Password utilities
    'hash_password',
    'verify_password',
    'check_password_strength',

    # Services
    'CredentialStore',
    'PasswordResetService',
    'AuthResult',
    'AuthService',

    # Middleware
    'authenticate',
    'require_role',
    'get_current_user',

    # Exceptions
    'AuthError',
    'InvalidTokenError',
    'ExpiredTokenError',
    'UnauthenticatedError',
    'ForbiddenError',
    'InvalidCredentialsError',
    'DuplicateEmailError',
    'LastAdminError',
    'InvalidOrExpiredTokenError',
    'WeakPasswordError',
    'EmailDeliveryError',
]
