# app/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, Response, status

from app.api.v1.deps import get_authenticator, get_current_user, get_session_token
from app.config import settings
from app.schemas.auth import ChangePasswordIn, LoginRequest, RegisterIn
from app.schemas.user import UserRecord
from app.services import Authenticator

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_ttl_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterIn,
    response: Response,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """
    Register a new user account and log it in.

    The password is hashed before storage. Username and email must be unique
    across all users. The first account ever registered becomes SUPER_ADMIN.

    Returns:
        dict: {"success": True, "data": {"user": ..., "accessToken": ...}}
        (the token is also set as an HttpOnly cookie)

    Error codes:
        - VALIDATION (400): missing/malformed fields, password too short
        - ROLE_NOT_ALLOWED (400): a managing or admin role requested
        - USERNAME_TAKEN / EMAIL_TAKEN (409)
    """
    user, token = await authenticator.register(body)
    _set_session_cookie(response, token)
    return {"success": True, "data": {"user": user.public(), "accessToken": token}}


@router.post("/login")
async def login(
    payload: LoginRequest,
    response: Response,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """
    Authenticate user and open a session.

    The token is returned in the response body and also set as an HttpOnly
    cookie for browser-based clients.

    Raises:
        AuthError (401): INVALID_CREDENTIALS, for unknown usernames and wrong
            passwords alike
    """
    user, token = await authenticator.login(payload.username, payload.password)
    _set_session_cookie(response, token)
    return {"success": True, "data": {"user": user.public(), "accessToken": token}}


@router.get("/me")
async def me(user: UserRecord = Depends(get_current_user)):
    """Current authenticated user (401 when not logged in)."""
    return {"success": True, "data": user.public()}


@router.post("/logout")
async def logout(
    response: Response,
    token: str | None = Depends(get_session_token),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """
    Log out: revoke the server-side session and clear the cookie.

    Always succeeds, including when the session was already gone, so the
    call can safely be repeated.
    """
    await authenticator.logout(token)
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True, "data": {"ok": True}}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordIn,
    user: UserRecord = Depends(get_current_user),
    authenticator: Authenticator = Depends(get_authenticator),
):
    """
    Change password for the currently authenticated user.

    The current password must be supplied; a mismatch fails with
    INVALID_CREDENTIALS (401).
    """
    await authenticator.change_password(user, body.currentPassword, body.newPassword)
    return {"success": True, "data": {"ok": True}}
