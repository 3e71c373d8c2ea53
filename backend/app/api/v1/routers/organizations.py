# app/api/v1/routers/organizations.py
from fastapi import APIRouter, Depends, status

from app.api.v1.deps import get_account_service, get_current_user, require_roles
from app.models.enums import ADMIN_ROLES
from app.schemas.organization import OrganizationCreate, OrganizationUpdate
from app.schemas.user import UserRecord
from app.services import AccountService

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("", dependencies=[Depends(get_current_user)])
async def list_organizations(accounts: AccountService = Depends(get_account_service)):
    rows = await accounts.list_organizations()
    return {"success": True, "data": [o.to_json() for o in rows]}


@router.get("/{organization_id}", dependencies=[Depends(get_current_user)])
async def get_organization(organization_id: int, accounts: AccountService = Depends(get_account_service)):
    org = await accounts.get_organization(organization_id)
    return {"success": True, "data": org.to_json()}


@router.get("/{organization_id}/users", dependencies=[Depends(get_current_user)])
async def list_organization_users(organization_id: int, accounts: AccountService = Depends(get_account_service)):
    """Members of an organization; 404 ORGANIZATION_NOT_FOUND when it does not exist."""
    rows = await accounts.list_organization_users(organization_id)
    return {"success": True, "data": [u.public() for u in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_organization(
    body: OrganizationCreate,
    actor: UserRecord = Depends(require_roles(*ADMIN_ROLES)),
    accounts: AccountService = Depends(get_account_service),
):
    org = await accounts.create_organization(body, actor)
    return {"success": True, "data": org.to_json()}


@router.put("/{organization_id}")
async def update_organization(
    organization_id: int,
    body: OrganizationUpdate,
    actor: UserRecord = Depends(require_roles(*ADMIN_ROLES)),
    accounts: AccountService = Depends(get_account_service),
):
    org = await accounts.update_organization(organization_id, body, actor)
    return {"success": True, "data": org.to_json()}


@router.delete("/{organization_id}")
async def delete_organization(
    organization_id: int,
    actor: UserRecord = Depends(require_roles(*ADMIN_ROLES)),
    accounts: AccountService = Depends(get_account_service),
):
    """Delete an organization. Member users keep their organizationId."""
    await accounts.delete_organization(organization_id, actor)
    return {"success": True, "data": {"ok": True}}
