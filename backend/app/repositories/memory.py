"""
Process-local repository backed by dicts.

Suitable for tests and single-process deployments; nothing survives a
restart. Writes run under one asyncio.Lock and replace whole records, so a
reader never observes a half-applied update. Callers always get copies, never
the stored records themselves.
"""
import asyncio
import itertools
from typing import Any, Dict, List, Optional, Tuple, TypeVar

from app.core.clock import Clock, utc_now
from app.core.errors import ConflictError
from app.repositories.base import (
    ACTIVITY_FIELDS,
    ORGANIZATION_FIELDS,
    USER_FIELDS,
    USER_REQUIRED,
    AccountRepository,
    check_fields,
)
from app.schemas.activity import ActivityRecord
from app.schemas.organization import OrganizationRecord
from app.schemas.user import UserFilters, UserRecord

Record = TypeVar("Record", UserRecord, OrganizationRecord, ActivityRecord)


def _copy(record: Optional[Record]) -> Optional[Record]:
    return record.model_copy() if record is not None else None


class InMemoryAccountRepository(AccountRepository):
    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._lock = asyncio.Lock()
        self._users: Dict[int, UserRecord] = {}
        self._organizations: Dict[int, OrganizationRecord] = {}
        self._activities: Dict[int, ActivityRecord] = {}
        self._user_ids = itertools.count(1)
        self._organization_ids = itertools.count(1)
        self._activity_ids = itertools.count(1)

    # ------------------------------------------------------------------ users
    def _check_unique(self, fields: Dict[str, Any], exclude_id: Optional[int] = None) -> None:
        for other in self._users.values():
            if other.id == exclude_id:
                continue
            if "username" in fields and other.username == fields["username"]:
                raise ConflictError("USERNAME_TAKEN", "Username already exists")
            if "email" in fields and other.email == fields["email"]:
                raise ConflictError("EMAIL_TAKEN", "Email already exists")

    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        return _copy(self._users.get(user_id))

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        return _copy(next((u for u in self._users.values() if u.username == username), None))

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        return _copy(next((u for u in self._users.values() if u.email == email), None))

    async def create_user(self, fields: Dict[str, Any]) -> UserRecord:
        check_fields(fields, USER_FIELDS, USER_REQUIRED)
        async with self._lock:
            self._check_unique(fields)
            user = UserRecord(id=next(self._user_ids), **fields)
            self._users[user.id] = user
            return _copy(user)

    async def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserRecord]:
        check_fields(fields, USER_FIELDS)
        async with self._lock:
            current = self._users.get(user_id)
            if current is None or not fields:
                return _copy(current)
            self._check_unique(fields, exclude_id=user_id)
            updated = UserRecord(**{**current.model_dump(), **fields})
            self._users[user_id] = updated
            return _copy(updated)

    async def delete_user(self, user_id: int) -> bool:
        async with self._lock:
            return self._users.pop(user_id, None) is not None

    async def list_users(self) -> List[UserRecord]:
        return [_copy(u) for u in sorted(self._users.values(), key=lambda u: u.id)]

    async def list_users_by_role(self, role: str) -> List[UserRecord]:
        return [u for u in await self.list_users() if u.role == role]

    async def list_users_by_organization(self, organization_id: int) -> List[UserRecord]:
        return [u for u in await self.list_users() if u.organization_id == organization_id]

    async def list_users_by_manager(self, manager_id: int) -> List[UserRecord]:
        return [u for u in await self.list_users() if u.manager_id == manager_id]

    async def count_users(self) -> int:
        return len(self._users)

    async def search_users(
        self, filters: UserFilters, offset: int = 0, limit: int = 20
    ) -> Tuple[List[UserRecord], int]:
        needle = (filters.q or "").lower()

        def matches(u: UserRecord) -> bool:
            if needle and not any(needle in value.lower() for value in (u.username, u.full_name, u.email)):
                return False
            if filters.role is not None and u.role != filters.role:
                return False
            if filters.status is not None and u.status != filters.status:
                return False
            if filters.organization_id is not None and u.organization_id != filters.organization_id:
                return False
            if filters.manager_id is not None and u.manager_id != filters.manager_id:
                return False
            return True

        rows = [u for u in await self.list_users() if matches(u)]
        return rows[offset:offset + limit], len(rows)

    # ---------------------------------------------------------- organizations
    async def get_organization(self, organization_id: int) -> Optional[OrganizationRecord]:
        return _copy(self._organizations.get(organization_id))

    async def create_organization(self, fields: Dict[str, Any]) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS, ORGANIZATION_FIELDS)
        async with self._lock:
            org = OrganizationRecord(id=next(self._organization_ids), **fields)
            self._organizations[org.id] = org
            return _copy(org)

    async def update_organization(
        self, organization_id: int, fields: Dict[str, Any]
    ) -> Optional[OrganizationRecord]:
        check_fields(fields, ORGANIZATION_FIELDS)
        async with self._lock:
            current = self._organizations.get(organization_id)
            if current is None or not fields:
                return _copy(current)
            updated = OrganizationRecord(**{**current.model_dump(), **fields})
            self._organizations[organization_id] = updated
            return _copy(updated)

    async def delete_organization(self, organization_id: int) -> bool:
        async with self._lock:
            return self._organizations.pop(organization_id, None) is not None

    async def list_organizations(self) -> List[OrganizationRecord]:
        return [_copy(o) for o in sorted(self._organizations.values(), key=lambda o: o.id)]

    async def count_organizations(self) -> int:
        return len(self._organizations)

    # ------------------------------------------------------------- activities
    async def create_activity(self, fields: Dict[str, Any]) -> ActivityRecord:
        fields = {k: v for k, v in fields.items() if k != "timestamp"}
        check_fields(fields, ACTIVITY_FIELDS, frozenset({"action", "description"}))
        async with self._lock:
            activity = ActivityRecord(id=next(self._activity_ids), timestamp=self._clock(), **fields)
            self._activities[activity.id] = activity
            return _copy(activity)

    def _newest_first(self, rows) -> List[ActivityRecord]:
        return [_copy(a) for a in sorted(rows, key=lambda a: (a.timestamp, a.id), reverse=True)]

    async def list_activities(self, limit: Optional[int] = None) -> List[ActivityRecord]:
        rows = self._newest_first(self._activities.values())
        return rows[:limit] if limit is not None else rows

    async def list_activities_by_user(self, user_id: int) -> List[ActivityRecord]:
        return self._newest_first(a for a in self._activities.values() if a.user_id == user_id)
