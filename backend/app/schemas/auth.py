"""
Pydantic schemas for authentication endpoints.
Defines request models for registration, login and password change.
"""
from typing import Optional

from pydantic import BaseModel, Field

from app.models.enums import UserRole
from app.schemas.user import UserProfileIn, PASSWORD_MIN_LENGTH


class LoginRequest(BaseModel):
    """
    Request model for user login endpoint.
    Contains credentials for authentication.
    """
    username: str  # User login name
    password: str  # User password (plain text, verified server-side)


class RegisterIn(UserProfileIn):
    """
    Self-registration. The first account of an empty directory becomes
    SUPER_ADMIN; later accounts may pick MEDICAL_REPRESENTATIVE or DISTRIBUTOR_EXECUTIVE,
    MEDICAL_REPRESENTATIVE by default.
    """
    username: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    role: Optional[UserRole] = None


class ChangePasswordIn(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=PASSWORD_MIN_LENGTH)
