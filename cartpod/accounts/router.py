"""
Account Router

Registration, login, the current user, admin user management and the
password reset endpoints, all under ``/auth``.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path, status

from cartpod.accounts.schemas import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateUserRequest,
    UserResponse
)
from cartpod.common.auth.dependencies import get_auth_service, get_reset_service
from cartpod.common.auth.middleware import get_current_user, require_role
from cartpod.common.auth.reset import PasswordResetService
from cartpod.common.auth.service import AuthService
from cartpod.common.auth.user import AuthenticatedUser, UserRole
from cartpod.common.logger import app_logger

logger = app_logger.getChild("accounts.router")

router = APIRouter(prefix="/auth", tags=["auth"])

require_admin = require_role(UserRole.ADMIN)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    auth: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Create an account and return a session token for it."""
    result = await auth.register(payload.name, payload.email, payload.password, payload.role)
    return result.to_dict()


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    result = await auth.login(payload.email, payload.password)
    return result.to_dict()


@router.get("/me", response_model=UserResponse)
async def me(current_user: AuthenticatedUser = Depends(get_current_user)) -> Dict[str, Any]:
    return current_user.user.to_dict()


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: AuthenticatedUser = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service)
) -> List[Dict[str, Any]]:
    return [user.to_dict() for user in await auth.list_users(current_user)]


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    payload: UpdateUserRequest,
    user_id: str = Path(..., description="Id of the user to update"),
    current_user: AuthenticatedUser = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    fields = payload.model_dump(exclude_none=True)
    user = await auth.update_user(current_user, user_id, fields)
    return user.to_dict()


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str = Path(..., description="Id of the user to delete"),
    current_user: AuthenticatedUser = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service)
) -> Dict[str, str]:
    await auth.delete_user(current_user, user_id)
    return {"message": "User deleted successfully"}


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    resets: PasswordResetService = Depends(get_reset_service)
) -> Dict[str, str]:
    """Email a reset link. The answer is the same whether or not the email is registered."""
    return {"message": await resets.request_reset(payload.email)}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    payload: ResetPasswordRequest,
    resets: PasswordResetService = Depends(get_reset_service)
) -> Dict[str, str]:
    return {"message": await resets.consume_reset(payload.token, payload.password)}
