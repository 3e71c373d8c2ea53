"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .common import CamelModel, PartialUpdate
from .user import UserRecord, UserCreate, UserUpdate, UserFilters, UserListOut
from .organization import OrganizationRecord, OrganizationCreate, OrganizationUpdate
from .activity import ActivityRecord, ActivityOut, ActivityUser
from .auth import LoginRequest, RegisterIn, ChangePasswordIn
