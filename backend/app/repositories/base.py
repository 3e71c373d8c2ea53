"""
Persistence contract for users, organizations and activities.

Contract shared by every backend:
- get_* return None for unknown ids, never raise
- create_* return the stored record with its assigned id
- update_* write only the keys present in `fields` (a key mapped to None
  nulls the column); an empty dict returns the current record; an unknown id
  returns None
- delete_* return True only if a row was removed
- unknown field names raise ValueError; unique violations raise ConflictError;
  I/O failures raise StorageError
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from app.schemas.activity import ActivityRecord
from app.schemas.organization import OrganizationRecord
from app.schemas.user import UserFilters, UserRecord

USER_FIELDS = frozenset({
    "username", "password", "full_name", "email", "role", "status",
    "organization_id", "region", "state", "city", "pincode", "address",
    "manager_id", "last_login",
})
USER_REQUIRED = frozenset({"username", "password", "full_name", "email", "role"})

ORGANIZATION_FIELDS = frozenset({"name", "type"})

ACTIVITY_FIELDS = frozenset({"user_id", "action", "description"})


def check_fields(fields: Dict[str, Any], allowed: frozenset, required: frozenset = frozenset()) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown fields: {sorted(unknown)}")
    missing = required - set(fields)
    if missing:
        raise ValueError(f"Missing required fields: {sorted(missing)}")


class AccountRepository(ABC):
    # -------- users --------
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(self, fields: Dict[str, Any]) -> UserRecord: ...

    @abstractmethod
    async def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserRecord]: ...

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool: ...

    @abstractmethod
    async def list_users(self) -> List[UserRecord]: ...

    @abstractmethod
    async def list_users_by_role(self, role: str) -> List[UserRecord]: ...

    @abstractmethod
    async def list_users_by_organization(self, organization_id: int) -> List[UserRecord]: ...

    @abstractmethod
    async def list_users_by_manager(self, manager_id: int) -> List[UserRecord]: ...

    @abstractmethod
    async def count_users(self) -> int: ...

    @abstractmethod
    async def search_users(
        self, filters: UserFilters, offset: int = 0, limit: int = 20
    ) -> Tuple[List[UserRecord], int]:
        """Filtered page ordered by id, plus the total number of matches."""

    # -------- organizations --------
    @abstractmethod
    async def get_organization(self, organization_id: int) -> Optional[OrganizationRecord]: ...

    @abstractmethod
    async def create_organization(self, fields: Dict[str, Any]) -> OrganizationRecord: ...

    @abstractmethod
    async def update_organization(
        self, organization_id: int, fields: Dict[str, Any]
    ) -> Optional[OrganizationRecord]: ...

    @abstractmethod
    async def delete_organization(self, organization_id: int) -> bool: ...

    @abstractmethod
    async def list_organizations(self) -> List[OrganizationRecord]: ...

    @abstractmethod
    async def count_organizations(self) -> int: ...

    # -------- activities (append-only) --------
    @abstractmethod
    async def create_activity(self, fields: Dict[str, Any]) -> ActivityRecord:
        """Insert with a server-assigned timestamp."""

    @abstractmethod
    async def list_activities(self, limit: Optional[int] = None) -> List[ActivityRecord]:
        """Newest first, optionally capped."""

    @abstractmethod
    async def list_activities_by_user(self, user_id: int) -> List[ActivityRecord]: ...
