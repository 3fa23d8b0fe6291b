"""
Authentication User Models

This module defines the user role enumeration and the user views handed out
by the credential store. Neither view carries the password hash or the reset
token fields; those never leave the store.
"""

import datetime
import enum
from dataclasses import dataclass
from typing import Any, Dict, Union

from cartpod.common.exceptions import ValidationError
from cartpod.common.utils import isoformat


class UserRole(enum.Enum):
    """User roles for authorization."""

    OWNER = "owner"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Union["UserRole", str]) -> "UserRole":
        """
        Convert an inbound role value into a ``UserRole``.

        Raises:
            ValidationError: If the value is not one of the known roles
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError("Invalid role", {"role": f"must be one of {[r.value for r in cls]}"})


@dataclass
class User:
    """
    Public user model.

    Attributes:
        id: Unique user identifier
        name: Display name
        email: Lower-cased email address
        role: User's role
        created_at: When the user registered (naive UTC)
    """
    id: str
    name: str
    email: str
    role: UserRole
    created_at: datetime.datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Convert the user to its wire representation."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "createdAt": isoformat(self.created_at),
        }


@dataclass
class AuthenticatedUser:
    """
    A user resolved from a bearer token, together with that token.
    """
    user: User
    access_token: str

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.user.is_admin

    def can_manage(self, owner_id: str) -> bool:
        """Admins manage everything; everyone else only what they own."""
        return self.is_admin or owner_id == self.user.id
