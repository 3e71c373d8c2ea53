"""
Account lifecycle: user and organization CRUD, the activity feed and
dashboard statistics.

Rules enforced here:
- usernames and emails are unique (checked before any write)
- passwords are hashed before they reach the repository
- updates apply only the fields the caller sent
- nobody can delete their own account or change their own role
- only SUPER_ADMIN grants ADMIN_ROLES and edits or deletes accounts holding them
- every change is written to the activity log
Route-level role gating happens earlier, in the API dependencies.
"""
from collections import Counter
from typing import Dict, List, Optional, Tuple

from app.core.errors import AuthzError, ConflictError, organization_not_found, user_not_found
from app.core.security import hash_password
from app.models.enums import ADMIN_ROLES, ActivityAction, OrganizationType, UserRole, UserStatus
from app.repositories.base import AccountRepository
from app.schemas.activity import ActivityOut, ActivityRecord, ActivityUser
from app.schemas.organization import OrganizationCreate, OrganizationRecord, OrganizationUpdate
from app.schemas.user import UserCreate, UserFilters, UserRecord, UserUpdate
from app.services.activity import ActivityRecorder


class AccountService:
    def __init__(self, repository: AccountRepository, recorder: ActivityRecorder):
        self.repository = repository
        self.recorder = recorder

    # ================================================================ users
    async def get_user(self, user_id: int) -> UserRecord:
        user = await self.repository.get_user(user_id)
        if user is None:
            raise user_not_found()
        return user

    async def list_users(
        self, filters: UserFilters, offset: int = 0, limit: int = 20
    ) -> Tuple[List[UserRecord], int]:
        return await self.repository.search_users(filters, offset=offset, limit=limit)

    async def list_reports(self, manager_id: int) -> List[UserRecord]:
        """Direct reports of a manager."""
        await self.get_user(manager_id)
        return await self.repository.list_users_by_manager(manager_id)

    @staticmethod
    def _ensure_can_grant(actor: UserRecord, role: UserRole) -> None:
        if role in ADMIN_ROLES and actor.role != UserRole.SUPER_ADMIN:
            raise AuthzError("ROLE_NOT_GRANTABLE", f"Only SUPER_ADMIN can assign {role.value}")

    @staticmethod
    def _ensure_can_manage(actor: UserRecord, target: UserRecord) -> None:
        if target.id != actor.id and target.role in ADMIN_ROLES and actor.role != UserRole.SUPER_ADMIN:
            raise AuthzError("TARGET_NOT_MANAGEABLE", "Only SUPER_ADMIN can modify this account")

    async def _ensure_unique(self, username: Optional[str] = None, email: Optional[str] = None,
                             exclude_id: Optional[int] = None) -> None:
        if username is not None:
            existing = await self.repository.get_user_by_username(username)
            if existing and existing.id != exclude_id:
                raise ConflictError("USERNAME_TAKEN", "Username already exists")
        if email is not None:
            existing = await self.repository.get_user_by_email(email)
            if existing and existing.id != exclude_id:
                raise ConflictError("EMAIL_TAKEN", "Email already exists")

    async def create_user(self, payload: UserCreate, actor: UserRecord) -> UserRecord:
        self._ensure_can_grant(actor, payload.role)
        await self._ensure_unique(username=payload.username, email=payload.email)

        fields = payload.model_dump()
        fields["password"] = hash_password(payload.password)
        user = await self.repository.create_user(fields)

        await self.recorder.record(
            actor.id,
            ActivityAction.CREATE_USER,
            f"User {actor.username} created a new user {user.username} with role {user.role.value}",
        )
        return user

    async def update_user(self, user_id: int, payload: UserUpdate, actor: UserRecord) -> UserRecord:
        target = await self.get_user(user_id)

        changes = payload.changes()
        self._ensure_can_manage(actor, target)
        if "role" in changes and changes["role"] != target.role:
            if target.id == actor.id:
                raise ConflictError("CANNOT_CHANGE_OWN_ROLE", "Cannot change your own role")
            self._ensure_can_grant(actor, changes["role"])
        if "email" in changes and changes["email"] != target.email:
            await self._ensure_unique(email=changes["email"], exclude_id=user_id)
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])

        updated = await self.repository.update_user(user_id, changes)
        if updated is None:  # deleted concurrently
            raise user_not_found()

        await self.recorder.record(
            actor.id,
            ActivityAction.UPDATE_USER,
            f"User {actor.username} updated user {target.username}",
        )
        return updated

    async def delete_user(self, user_id: int, actor: UserRecord) -> None:
        target = await self.get_user(user_id)
        if target.id == actor.id:
            raise ConflictError("CANNOT_DELETE_SELF", "Cannot delete your own account")
        self._ensure_can_manage(actor, target)

        if not await self.repository.delete_user(user_id):
            raise user_not_found()

        await self.recorder.record(
            actor.id,
            ActivityAction.DELETE_USER,
            f"User {actor.username} deleted user {target.username}",
        )

    # ======================================================== organizations
    async def get_organization(self, organization_id: int) -> OrganizationRecord:
        org = await self.repository.get_organization(organization_id)
        if org is None:
            raise organization_not_found()
        return org

    async def list_organizations(self) -> List[OrganizationRecord]:
        return await self.repository.list_organizations()

    async def list_organization_users(self, organization_id: int) -> List[UserRecord]:
        await self.get_organization(organization_id)
        return await self.repository.list_users_by_organization(organization_id)

    async def create_organization(self, payload: OrganizationCreate, actor: UserRecord) -> OrganizationRecord:
        org = await self.repository.create_organization(payload.model_dump())
        await self.recorder.record(
            actor.id,
            ActivityAction.CREATE_ORGANIZATION,
            f"User {actor.username} created a new organization {org.name}",
        )
        return org

    async def update_organization(
        self, organization_id: int, payload: OrganizationUpdate, actor: UserRecord
    ) -> OrganizationRecord:
        await self.get_organization(organization_id)
        org = await self.repository.update_organization(organization_id, payload.changes())
        if org is None:
            raise organization_not_found()
        await self.recorder.record(
            actor.id,
            ActivityAction.UPDATE_ORGANIZATION,
            f"User {actor.username} updated organization {org.name}",
        )
        return org

    async def delete_organization(self, organization_id: int, actor: UserRecord) -> None:
        """Users keep their (now dangling) organization_id."""
        org = await self.get_organization(organization_id)
        if not await self.repository.delete_organization(organization_id):
            raise organization_not_found()
        await self.recorder.record(
            actor.id,
            ActivityAction.DELETE_ORGANIZATION,
            f"User {actor.username} deleted organization {org.name}",
        )

    # ============================================================ activities
    async def _enrich(self, activities: List[ActivityRecord]) -> List[ActivityOut]:
        # Actors that no longer exist simply get user=None
        users: Dict[int, Optional[UserRecord]] = {}
        out = []
        for activity in activities:
            ref = None
            if activity.user_id is not None:
                if activity.user_id not in users:
                    users[activity.user_id] = await self.repository.get_user(activity.user_id)
                actor = users[activity.user_id]
                if actor is not None:
                    ref = ActivityUser(id=actor.id, username=actor.username, full_name=actor.full_name)
            out.append(ActivityOut(**activity.model_dump(), user=ref))
        return out

    async def list_activities(self, limit: Optional[int] = None) -> List[ActivityOut]:
        return await self._enrich(await self.repository.list_activities(limit))

    async def list_user_activities(self, user_id: int) -> List[ActivityOut]:
        return await self._enrich(await self.repository.list_activities_by_user(user_id))

    # ================================================================ stats
    async def stats(self) -> dict:
        users = await self.repository.list_users()
        organizations = await self.repository.list_organizations()

        by_status = Counter(u.status for u in users)
        by_org_type = Counter(o.type for o in organizations)
        active_by_role = Counter(u.role for u in users if u.status == UserStatus.ACTIVE)

        return {
            "totalUsers": len(users),
            "activeUsers": by_status[UserStatus.ACTIVE],
            "inactiveUsers": by_status[UserStatus.INACTIVE],
            "pendingUsers": by_status[UserStatus.PENDING],
            "pharmaCompanies": by_org_type[OrganizationType.PHARMA_COMPANY],
            "distributors": by_org_type[OrganizationType.DISTRIBUTOR],
            "activeMRs": active_by_role[UserRole.MEDICAL_REPRESENTATIVE],
            "activeUsersByRole": {role.value: active_by_role[role] for role in UserRole},
        }
