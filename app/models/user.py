"""
User models for authentication and user management.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field

from app.models.base import CamelModel


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserRegister(CamelModel):
    """Signup payload from the mobile client."""
    full_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    device_info: Optional[str] = Field(None, max_length=200)


class UserLogin(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    location: Optional[str] = Field(None, max_length=200)


class UserStatusUpdate(CamelModel):
    status: str


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class ForgotPasswordRequest(CamelModel):
    email: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class UserResponse(CamelModel):
    """
    Sanitized user projection.
    Password hash and reset-token fields are never part of this model.
    """
    id: str = Field(..., description="Firestore document ID")
    name: str
    email: str
    phone: str = ""
    location: str = "Not specified"
    status: UserStatus = UserStatus.ACTIVE
    role: UserRole = UserRole.USER
    email_verified: bool = False
    device_info: str = ""
    requests_count: int = 0
    registered_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class AuthResult(CamelModel):
    user: UserResponse
    token: str


class PasswordResetIssued(CamelModel):
    """
    Reset token handed to the delivery channel.
    The token is only returned to callers when DEBUG is on.
    """
    expires_at: datetime
    token: Optional[str] = None


class UserStats(CamelModel):
    total_users: int = 0
    active_users: int = 0
    verified_users: int = 0
    new_users_this_week: int = 0
