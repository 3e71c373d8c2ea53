# app/api/v1/routers/activities.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.v1.deps import get_account_service, get_current_user
from app.services import AccountService

router = APIRouter(tags=["activities"], dependencies=[Depends(get_current_user)])


@router.get("/activities")
async def list_activities(
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Activity feed, newest first.

    Each entry carries `user: {id, username, fullName}` for the acting user,
    or `user: null` when that user has since been deleted.
    """
    rows = await accounts.list_activities(limit)
    return {"success": True, "data": [a.to_json() for a in rows]}


@router.get("/stats")
async def stats(accounts: AccountService = Depends(get_account_service)):
    """Dashboard counters computed over the whole directory at call time."""
    return {"success": True, "data": await accounts.stats()}
