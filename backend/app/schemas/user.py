"""
Pydantic schemas for user accounts.
Defines the stored record, the public projection, create/update inputs,
and the directory listing filters.
"""
import datetime as dt
from typing import Optional, List

from pydantic import Field

from app.models.enums import UserRole, UserStatus
from app.schemas.common import CamelModel, PartialUpdate

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PASSWORD_MIN_LENGTH = 6


# ========== Stored record ==========
class UserRecord(CamelModel):
    """
    A user as held by the repository, password digest included.
    Never serialize directly: use public().
    """
    id: int
    username: str
    password: str
    full_name: str
    email: str
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE
    organization_id: Optional[int] = None
    region: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    address: Optional[str] = None
    manager_id: Optional[int] = None
    last_login: Optional[dt.datetime] = None

    def public(self) -> dict:
        """camelCase payload without the password field."""
        return self.to_json(exclude={"password"})


# ========== Input models ==========
class UserProfileIn(CamelModel):
    """Profile attributes shared by registration and admin-issued creation."""
    full_name: str = Field(min_length=1, max_length=256)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=256)
    organization_id: Optional[int] = None
    region: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    address: Optional[str] = None
    manager_id: Optional[int] = None


class UserCreate(UserProfileIn):
    """Admin-issued account creation."""
    username: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    role: UserRole
    status: UserStatus = UserStatus.ACTIVE


class UserUpdate(PartialUpdate):
    """
    Request model for updating a user.
    All fields are optional; only provided fields are written. The username is
    immutable and therefore not accepted here.
    """
    NOT_NULLABLE = ("password", "full_name", "email", "role", "status")

    password: Optional[str] = Field(default=None, min_length=PASSWORD_MIN_LENGTH)
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=256)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=256)
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    organization_id: Optional[int] = None
    region: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    address: Optional[str] = None
    manager_id: Optional[int] = None


# ========== Directory lookup ==========
class UserFilters(CamelModel):
    """Directory filters; None means "any"."""
    q: Optional[str] = None  # Fuzzy match on username / full name / email
    role: Optional[UserRole] = None
    status: Optional[UserStatus] = None
    organization_id: Optional[int] = None
    manager_id: Optional[int] = None


class UserListOut(CamelModel):
    """Paginated user list."""
    items: List[dict]
    offset: int
    limit: int
    total: int
