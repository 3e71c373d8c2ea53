# app/models/user.py
"""
Database model for users.
Represents an account of the console: credentials, profile, location,
role in the sales/distribution hierarchy and reporting line.
"""
from tortoise import fields, models

from app.models.enums import UserRole, UserStatus


class User(models.Model):
    """
    User database model.

    Security:
    - password holds an argon2 hash (or a legacy sha256 digest), never plain text
    - username and email are unique across all users

    Weak references (plain integer columns, no foreign keys, no cascade):
    - organization_id -> organizations.id
    - manager_id -> users.id (reporting tree, cycles are not prevented)
    """
    id = fields.IntField(pk=True)
    username = fields.CharField(max_length=256, unique=True, index=True)
    password = fields.CharField(max_length=255)
    full_name = fields.CharField(max_length=256)
    email = fields.CharField(max_length=256, unique=True)
    role = fields.CharEnumField(UserRole, max_length=32)
    status = fields.CharEnumField(UserStatus, max_length=16, default=UserStatus.ACTIVE)
    organization_id = fields.IntField(null=True, index=True)

    # Location (free text)
    region = fields.CharField(max_length=128, null=True)
    state = fields.CharField(max_length=128, null=True)
    city = fields.CharField(max_length=128, null=True)
    pincode = fields.CharField(max_length=16, null=True)
    address = fields.TextField(null=True)

    manager_id = fields.IntField(null=True, index=True)
    last_login = fields.DatetimeField(null=True)  # Set by the authenticator on successful login

    class Meta:
        """Tortoise ORM metadata configuration."""
        table = "users"  # Database table name
