"""
Request and response models for the /auth endpoints.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from cartpod.common.auth.password import MIN_PASSWORD_LENGTH
from cartpod.common.auth.user import UserRole


def _normalize_role(value):
    return value.strip().lower() if isinstance(value, str) else value


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Login email, matched case-insensitively")
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, description="Account password")
    role: UserRole = Field(..., description="owner or admin")

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _normalize_role(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _normalize_role(v)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., description="Reset token from the email link")
    password: str = Field(..., description="The new password")


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    createdAt: str


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str
