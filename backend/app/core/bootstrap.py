"""
Bootstrap module for application initialization.
Builds the storage backends and services the API depends on, and seeds the
SYSTEM organization and default SUPER_ADMIN on first startup.
"""
import datetime as dt
import logging
from typing import Optional, Tuple

from fastapi import FastAPI

from app.config import Settings
from app.core.security import hash_password
from app.core.sessions import DatabaseSessionStore, InMemorySessionStore, SessionStore
from app.models.enums import OrganizationType, UserRole, UserStatus
from app.repositories import AccountRepository, InMemoryAccountRepository, TortoiseAccountRepository
from app.schemas.organization import OrganizationRecord
from app.services import AccountService, ActivityRecorder, Authenticator

logger = logging.getLogger("uvicorn.error")

SYSTEM_ORGANIZATION_NAME = "System Administration"


def create_storage(settings: Settings) -> Tuple[AccountRepository, SessionStore]:
    """Pick the repository/session-store pair for the configured backend."""
    if settings.storage_backend == "memory":
        logger.warning("[bootstrap] Using in-memory storage: data is lost on restart")
        return InMemoryAccountRepository(), InMemorySessionStore()
    logger.info("[bootstrap] Using database storage")
    return TortoiseAccountRepository(), DatabaseSessionStore()


def install_services(
    app: FastAPI,
    settings: Settings,
    repository: AccountRepository,
    sessions: SessionStore,
) -> None:
    """
    Wire the process-wide service singletons onto app.state.
    Request handlers reach them only through app.api.v1.deps.
    """
    recorder = ActivityRecorder(repository)
    app.state.repository = repository
    app.state.sessions = sessions
    app.state.authenticator = Authenticator(
        repository,
        sessions,
        recorder,
        session_ttl=dt.timedelta(minutes=settings.session_ttl_minutes),
    )
    app.state.accounts = AccountService(repository, recorder)


async def ensure_system_organization(repository: AccountRepository) -> Optional[OrganizationRecord]:
    """
    Create the SYSTEM organization when the directory has no organization yet.
    Returns the SYSTEM organization (existing or new), or None if other organizations exist without one.
    """
    if await repository.count_organizations() == 0:
        org = await repository.create_organization(
            {"name": SYSTEM_ORGANIZATION_NAME, "type": OrganizationType.SYSTEM}
        )
        logger.info("[bootstrap] Created system organization id=%s", org.id)
        return org
    return next(
        (o for o in await repository.list_organizations() if o.type == OrganizationType.SYSTEM),
        None,
    )


async def ensure_default_admin(repository: AccountRepository, settings: Settings) -> None:
    """
    If no SUPER_ADMIN exists, create one from the ADMIN_* settings.
    Only takes effect under the following conditions:
      - Currently no user with role=SUPER_ADMIN
      - And ADMIN_PASSWORD is set (to avoid using default weak password)
    """
    if await repository.list_users_by_role(UserRole.SUPER_ADMIN):
        return  # Skip creation if a super admin already exists

    if not settings.admin_password:
        logger.warning("[bootstrap] No SUPER_ADMIN present, but ADMIN_PASSWORD not set -> skip creating default admin.")
        return

    if await repository.get_user_by_email(settings.admin_email):
        logger.warning("[bootstrap] ADMIN_EMAIL %s already in use -> skip creating default admin.",
                       settings.admin_email)
        return

    # If username is already taken, create a non-conflicting name
    username = settings.admin_username
    suffix = 1
    while await repository.get_user_by_username(username):
        suffix += 1
        username = f"{settings.admin_username}{suffix}"

    system_org = await ensure_system_organization(repository)
    user = await repository.create_user({
        "username": username,
        "password": hash_password(settings.admin_password),
        "full_name": "Admin User",
        "email": settings.admin_email,
        "role": UserRole.SUPER_ADMIN,
        "status": UserStatus.ACTIVE,
        "organization_id": system_org.id if system_org else None,
    })
    logger.warning("[bootstrap] Created default admin -> username=%s email=%s id=%s",
                   user.username, user.email, user.id)
