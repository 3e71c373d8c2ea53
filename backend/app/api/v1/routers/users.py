# app/api/v1/routers/users.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.v1.deps import get_account_service, get_current_user, require_roles
from app.models.enums import ADMIN_ROLES, USER_MANAGER_ROLES, UserRole, UserStatus
from app.schemas.user import UserCreate, UserFilters, UserListOut, UserRecord, UserUpdate
from app.services import AccountService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", dependencies=[Depends(get_current_user)])
async def list_users(
    q: Optional[str] = Query(default=None, description="Fuzzy search by username/full name/email"),
    role: Optional[UserRole] = Query(default=None),
    status_: Optional[UserStatus] = Query(default=None, alias="status"),
    organization_id: Optional[int] = Query(default=None, alias="organizationId"),
    manager_id: Optional[int] = Query(default=None, alias="managerId"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Paginated user directory, ordered by id.

    Filters combine with AND; `q` matches username, full name or email
    case-insensitively.
    """
    filters = UserFilters(
        q=q, role=role, status=status_, organization_id=organization_id, manager_id=manager_id,
    )
    rows, total = await accounts.list_users(filters, offset=offset, limit=limit)
    page = UserListOut(items=[u.public() for u in rows], offset=offset, limit=limit, total=total)
    return {"success": True, "data": page.to_json()}


@router.get("/{user_id}", dependencies=[Depends(get_current_user)])
async def get_user_detail(user_id: int, accounts: AccountService = Depends(get_account_service)):
    """Single user; 404 USER_NOT_FOUND when absent."""
    user = await accounts.get_user(user_id)
    return {"success": True, "data": user.public()}


@router.get("/{user_id}/reports", dependencies=[Depends(get_current_user)])
async def list_reports(user_id: int, accounts: AccountService = Depends(get_account_service)):
    """Users whose manager is `user_id`."""
    rows = await accounts.list_reports(user_id)
    return {"success": True, "data": [u.public() for u in rows]}


@router.get("/{user_id}/activities", dependencies=[Depends(get_current_user)])
async def list_user_activities(user_id: int, accounts: AccountService = Depends(get_account_service)):
    """Activities performed by `user_id`, newest first."""
    rows = await accounts.list_user_activities(user_id)
    return {"success": True, "data": [a.to_json() for a in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    actor: UserRecord = Depends(require_roles(*USER_MANAGER_ROLES)),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Create a user account.

    Raises:
        ConflictError (409): USERNAME_TAKEN / EMAIL_TAKEN
        AuthzError (403): caller's role may not manage users (FORBIDDEN), or may
            not assign the requested role (ROLE_NOT_GRANTABLE)
    """
    user = await accounts.create_user(body, actor)
    return {"success": True, "data": user.public()}


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    body: UserUpdate,
    actor: UserRecord = Depends(require_roles(*USER_MANAGER_ROLES)),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Update user information. Only provided fields are written; a provided
    password is hashed first. The username cannot be changed.

    Raises:
        AuthzError (403): ROLE_NOT_GRANTABLE / TARGET_NOT_MANAGEABLE for non-SUPER_ADMIN
            callers touching admin roles
        ConflictError (409): CANNOT_CHANGE_OWN_ROLE
    """
    user = await accounts.update_user(user_id, body, actor)
    return {"success": True, "data": user.public()}


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    actor: UserRecord = Depends(require_roles(*ADMIN_ROLES)),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Delete a user account.

    Raises:
        NotFoundError (404): USER_NOT_FOUND
        ConflictError (409): CANNOT_DELETE_SELF
        AuthzError (403): TARGET_NOT_MANAGEABLE
    """
    await accounts.delete_user(user_id, actor)
    return {"success": True, "data": {"ok": True}}
