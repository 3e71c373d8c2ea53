# app/api/v1/deps.py
from fastapi import Depends, Header, Request

from app.config import settings
from app.core.errors import AuthzError
from app.models.enums import UserRole
from app.schemas.user import UserRecord
from app.services import AccountService, Authenticator


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def get_session_token(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str | None:
    """
    Extract the session token from either:
    1. Authorization header (Bearer token) - preferred method
    2. HttpOnly cookie (sessionToken) - fallback method
    """
    token = None
    # 1) Prioritize Authorization: Bearer xxx
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    # 2) Secondly HttpOnly Cookie
    if not token:
        token = request.cookies.get(settings.session_cookie_name)
    return token or None


async def get_current_user(
    token: str | None = Depends(get_session_token),
    authenticator: Authenticator = Depends(get_authenticator),
) -> UserRecord:
    """
    FastAPI dependency to get the current authenticated user.

    The user is re-read from the repository on every request, so role and
    profile changes take effect immediately.

    Raises:
        AuthError (401): No token (UNAUTHENTICATED), or the token/session is
            invalid, expired, revoked, or its user no longer exists

    Usage:
        @router.get("/protected")
        async def protected_route(user: UserRecord = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    return await authenticator.resolve(token)


def require_roles(*roles: UserRole):
    """
    Build a dependency that admits only users holding one of `roles`.

    Builds on get_current_user, so a missing/invalid session still yields 401
    before any role check.

    Raises:
        AuthzError (403): FORBIDDEN when the user's current role is not allowed

    Usage:
        @router.delete("/users/{user_id}")
        async def delete_user(actor: UserRecord = Depends(require_roles(*ADMIN_ROLES))):
            ...
    """
    allowed = frozenset(roles)

    async def dependency(current: UserRecord = Depends(get_current_user)) -> UserRecord:
        if current.role not in allowed:
            raise AuthzError()
        return current

    return dependency
