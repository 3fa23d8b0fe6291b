"""
Authentication dependencies for the CartPod API.

The application factory stores its services on ``app.state``; these FastAPI
dependencies hand them to the route handlers.
"""

from fastapi import Request

from cartpod.common.auth.jwt import TokenService
from cartpod.common.auth.reset import PasswordResetService
from cartpod.common.auth.service import AuthService
from cartpod.common.auth.store import CredentialStore


def get_credential_store(request: Request) -> CredentialStore:
    return request.app.state.credential_store


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.reset_service
