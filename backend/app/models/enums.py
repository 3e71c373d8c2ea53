"""
Fixed enumerations shared by the ORM models, schemas and authorization rules.
"""
from enum import Enum


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    BUSINESS_UNIT_HEAD = "BUSINESS_UNIT_HEAD"
    REGIONAL_SALES_MANAGER = "REGIONAL_SALES_MANAGER"
    AREA_SALES_MANAGER = "AREA_SALES_MANAGER"
    MEDICAL_REPRESENTATIVE = "MEDICAL_REPRESENTATIVE"
    DISTRIBUTOR_HEAD = "DISTRIBUTOR_HEAD"
    DISTRIBUTOR_EXECUTIVE = "DISTRIBUTOR_EXECUTIVE"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"


class OrganizationType(str, Enum):
    PHARMA_COMPANY = "PHARMA_COMPANY"
    DISTRIBUTOR = "DISTRIBUTOR"
    SYSTEM = "SYSTEM"


class ActivityAction(str, Enum):
    """Known audit actions. Activity.action is stored as free text, so the set can grow."""
    REGISTER = "REGISTER"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"
    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    CREATE_ORGANIZATION = "CREATE_ORGANIZATION"
    UPDATE_ORGANIZATION = "UPDATE_ORGANIZATION"
    DELETE_ORGANIZATION = "DELETE_ORGANIZATION"


# Roles allowed to create and edit user accounts
USER_MANAGER_ROLES = (
    UserRole.SUPER_ADMIN,
    UserRole.BUSINESS_UNIT_HEAD,
    UserRole.REGIONAL_SALES_MANAGER,
    UserRole.AREA_SALES_MANAGER,
    UserRole.DISTRIBUTOR_HEAD,
)

# Roles allowed to delete users and manage organizations
ADMIN_ROLES = (
    UserRole.SUPER_ADMIN,
    UserRole.BUSINESS_UNIT_HEAD,
)

# Roles an anonymous caller may pick at self-registration
SELF_REGISTRATION_ROLES = (
    UserRole.MEDICAL_REPRESENTATIVE,
    UserRole.DISTRIBUTOR_EXECUTIVE,
)
