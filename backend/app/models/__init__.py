"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: account, credentials, role and reporting line
- Organization: pharma company / distributor / system organization
- Activity: append-only audit log entry
- Session: server-side login session
"""
from .user import User
from .organization import Organization
from .activity import Activity
from .session import Session
from .enums import UserRole, UserStatus, OrganizationType, ActivityAction
