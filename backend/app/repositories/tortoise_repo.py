"""
Relational repository on Tortoise ORM (PostgreSQL in production, SQLite in tests).

Partial updates are issued as a single UPDATE ... WHERE id = ? touching only
the given columns, so row-level atomicity comes from the database itself.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Tuple

from tortoise.exceptions import BaseORMException, IntegrityError
from tortoise.expressions import Q

from app.core.clock import Clock, utc_now
from app.core.errors import ConflictError, StorageError
from app.models.activity import Activity
from app.models.organization import Organization
from app.models.user import User
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

logger = logging.getLogger("uvicorn.error")


@contextmanager
def storage_errors(operation: str):
    """Translate ORM/driver failures into ConflictError / StorageError."""
    try:
        yield
    except IntegrityError as exc:
        logger.warning("[repository] %s violated a constraint: %s", operation, exc)
        raise ConflictError("DUPLICATE", "A record with the same unique value already exists") from exc
    except (BaseORMException, OSError) as exc:
        logger.exception("[repository] %s failed", operation)
        raise StorageError() from exc


def _user(row: Optional[User]) -> Optional[UserRecord]:
    return UserRecord.model_validate(row) if row is not None else None


def _organization(row: Optional[Organization]) -> Optional[OrganizationRecord]:
    return OrganizationRecord.model_validate(row) if row is not None else None


def _activity(row: Activity) -> ActivityRecord:
    return ActivityRecord.model_validate(row)


class TortoiseAccountRepository(AccountRepository):
    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    # ------------------------------------------------------------------ users
    async def get_user(self, user_id: int) -> Optional[UserRecord]:
        with storage_errors("get_user"):
            return _user(await User.get_or_none(id=user_id))

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        with storage_errors("get_user_by_username"):
            return _user(await User.get_or_none(username=username))

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with storage_errors("get_user_by_email"):
            return _user(await User.get_or_none(email=email))

    async def create_user(self, fields: Dict[str, Any]) -> UserRecord:
        check_fields(fields, USER_FIELDS, USER_REQUIRED)
        with storage_errors("create_user"):
            return _user(await User.create(**fields))

    async def update_user(self, user_id: int, fields: Dict[str, Any]) -> Optional[UserRecord]:
        check_fields(fields, USER_FIELDS)
        with storage_errors("update_user"):
            if fields:
                changed = await User.filter(id=user_id).update(**fields)
                if not changed:
                    return None
            return _user(await User.get_or_none(id=user_id))

    async def delete_user(self, user_id: int) -> bool:
        with storage_errors("delete_user"):
            return await User.filter(id=user_id).delete() > 0

    async def _users(self, **filters) -> List[UserRecord]:
        with storage_errors("list_users"):
            return [_user(u) for u in await User.filter(**filters).order_by("id")]

    async def list_users(self) -> List[UserRecord]:
        return await self._users()

    async def list_users_by_role(self, role: str) -> List[UserRecord]:
        return await self._users(role=role)

    async def list_users_by_organization(self, organization_id: int) -> List[UserRecord]:
        return await self._users(organization_id=organization_id)

    async def list_users_by_manager(self, manager_id: int) -> List[UserRecord]:
        return await self._users(manager_id=manager_id)

    async def count_users(self) -> int:
        with storage_errors("count_users"):
            return await User.all().count()

    async def search_users(
        self, filters: UserFilters, offset: int = 0, limit: int = 20
    ) -> Tuple[List[UserRecord], int]:
        qs = User.all()
        if filters.q:
            qs = qs.filter(
                Q(username__icontains=filters.q)
                | Q(full_name__icontains=filters.q)
                | Q(email__icontains=filters.q)
            )
        if filters.role is not None:
            qs = qs.filter(role=filters.role)
        if filters.status is not None:
            qs = qs.filter(status=filters.status)
        if filters.organization_id is not None:
            qs = qs.filter(organization_id=filters.organization_id)
        if filters.manager_id is not None:
            qs = qs.filter(manager_id=filters.manager_id)

        with storage_errors("search_users"):
            total = await qs.count()
            rows = await qs.order_by("id").offset(offset).limit(limit)
        return [_user(u) for u in rows], total

    # ---------------------------------------------------------- organizations
    async def get_organization(self, organization_id: int) -> Optional[OrganizationRecord]:
        with storage_errors("get_organization"):
            return _organization(await Organization.get_or_none(id=organization_id))

    async def create_organization(self, fields: Dict[str, Any]) -> OrganizationRecord:
        check_fields(fields, ORGANIZATION_FIELDS, ORGANIZATION_FIELDS)
        with storage_errors("create_organization"):
            return _organization(await Organization.create(**fields))

    async def update_organization(
        self, organization_id: int, fields: Dict[str, Any]
    ) -> Optional[OrganizationRecord]:
        check_fields(fields, ORGANIZATION_FIELDS)
        with storage_errors("update_organization"):
            if fields:
                changed = await Organization.filter(id=organization_id).update(**fields)
                if not changed:
                    return None
            return _organization(await Organization.get_or_none(id=organization_id))

    async def delete_organization(self, organization_id: int) -> bool:
        with storage_errors("delete_organization"):
            return await Organization.filter(id=organization_id).delete() > 0

    async def list_organizations(self) -> List[OrganizationRecord]:
        with storage_errors("list_organizations"):
            return [_organization(o) for o in await Organization.all().order_by("id")]

    async def count_organizations(self) -> int:
        with storage_errors("count_organizations"):
            return await Organization.all().count()

    # ------------------------------------------------------------- activities
    async def create_activity(self, fields: Dict[str, Any]) -> ActivityRecord:
        fields = {k: v for k, v in fields.items() if k != "timestamp"}
        check_fields(fields, ACTIVITY_FIELDS, frozenset({"action", "description"}))
        with storage_errors("create_activity"):
            return _activity(await Activity.create(timestamp=self._clock(), **fields))

    async def list_activities(self, limit: Optional[int] = None) -> List[ActivityRecord]:
        qs = Activity.all().order_by("-timestamp", "-id")
        if limit is not None:
            qs = qs.limit(limit)
        with storage_errors("list_activities"):
            return [_activity(a) for a in await qs]

    async def list_activities_by_user(self, user_id: int) -> List[ActivityRecord]:
        with storage_errors("list_activities_by_user"):
            rows = await Activity.filter(user_id=user_id).order_by("-timestamp", "-id")
        return [_activity(a) for a in rows]
