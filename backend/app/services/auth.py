"""
Authenticator: credential checks, session issuance and revocation.

A client holds a signed token naming a server-side session. A token is
accepted only while the session it names still exists in the SessionStore,
and the user is re-read from the repository on every resolve so that role
or status changes apply on the next request.
"""
import datetime as dt
import logging
from typing import Optional, Tuple

import jwt  # PyJWT

from app.core.clock import Clock, utc_now
from app.core.errors import AuthError, ConflictError, ValidationError, invalid_credentials
from app.core.security import (
    DUMMY_PASSWORD_HASH,
    create_session_token,
    decode_session_token,
    hash_password,
    needs_rehash,
    verify_password,
)
from app.core.sessions import SessionStore, new_session_id
from app.models.enums import SELF_REGISTRATION_ROLES, ActivityAction, UserRole, UserStatus
from app.repositories.base import AccountRepository
from app.schemas.auth import RegisterIn
from app.schemas.user import UserRecord
from app.services.activity import ActivityRecorder

logger = logging.getLogger("uvicorn.error")

DEFAULT_REGISTRATION_ROLE = UserRole.MEDICAL_REPRESENTATIVE


class Authenticator:
    def __init__(
        self,
        repository: AccountRepository,
        sessions: SessionStore,
        recorder: ActivityRecorder,
        session_ttl: dt.timedelta,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.sessions = sessions
        self.recorder = recorder
        self.session_ttl = session_ttl
        self._clock = clock

    async def _issue_session(self, user: UserRecord) -> str:
        session_id = new_session_id()
        await self.sessions.put(session_id, user.id, self.session_ttl)
        return create_session_token(session_id, user.id, self.session_ttl, now=self._clock())

    def _session_claims(self, token: str) -> Optional[dict]:
        try:
            return decode_session_token(token, now=self._clock())
        except jwt.InvalidTokenError:
            return None

    async def login(self, username: str, password: str) -> Tuple[UserRecord, str]:
        """
        Verify credentials and open a session.

        Unknown usernames and wrong passwords fail identically
        (AuthError INVALID_CREDENTIALS) to avoid account enumeration.

        Returns:
            (user with refreshed last_login, session token)
        """
        user = await self.repository.get_user_by_username(username)
        if user is None:
            # Same argon2 cost as a wrong password
            verify_password(password, DUMMY_PASSWORD_HASH)
            valid = False
        else:
            valid = verify_password(password, user.password)
        if not valid:
            logger.warning("[auth] failed login for username=%s", username)
            raise invalid_credentials()

        changes = {"last_login": self._clock()}
        if needs_rehash(user.password):
            changes["password"] = hash_password(password)
            logger.info("[auth] upgraded legacy password digest for user_id=%s", user.id)
        user = await self.repository.update_user(user.id, changes) or user

        token = await self._issue_session(user)
        await self.recorder.record(user.id, ActivityAction.LOGIN, f"User {user.username} logged in")
        return user, token

    async def logout(self, token: Optional[str]) -> None:
        """
        Destroy the session named by the token. Idempotent: missing, expired
        or malformed tokens are a silent no-op. LOGOUT is recorded only when
        a live session was actually closed.
        """
        if not token:
            return
        claims = self._session_claims(token)
        if not claims or not claims.get("sid"):
            return
        session_id = claims["sid"]
        user_id = await self.sessions.get(session_id)
        await self.sessions.delete(session_id)
        if user_id is None:
            return

        user = await self.repository.get_user(user_id)
        name = user.username if user else f"#{user_id}"
        await self.recorder.record(user_id, ActivityAction.LOGOUT, f"User {name} logged out")

    async def resolve(self, token: Optional[str]) -> UserRecord:
        """
        Map a session token to its (freshly loaded) user.

        Raises:
            AuthError (UNAUTHENTICATED): no token, bad signature, expired token,
                revoked/expired session, or the user no longer exists
        """
        if not token:
            raise AuthError()
        claims = self._session_claims(token)
        if not claims or not claims.get("sid"):
            raise AuthError("UNAUTHENTICATED", "Invalid or expired session")

        user_id = await self.sessions.get(claims["sid"])
        if user_id is None or str(user_id) != str(claims.get("sub")):
            raise AuthError("UNAUTHENTICATED", "Invalid or expired session")

        user = await self.repository.get_user(user_id)
        if user is None:
            raise AuthError("UNAUTHENTICATED", "Invalid or expired session")
        return user

    async def register(self, payload: RegisterIn) -> Tuple[UserRecord, str]:
        """
        Create an account and log it in.

        Raises:
            ConflictError: USERNAME_TAKEN / EMAIL_TAKEN
            ValidationError: ROLE_NOT_ALLOWED when a role outside
                SELF_REGISTRATION_ROLES is requested for anything but the first account
        """
        if await self.repository.get_user_by_username(payload.username):
            raise ConflictError("USERNAME_TAKEN", "Username already exists")
        if await self.repository.get_user_by_email(payload.email):
            raise ConflictError("EMAIL_TAKEN", "Email already exists")

        if await self.repository.count_users() == 0:
            role = UserRole.SUPER_ADMIN
        else:
            role = payload.role or DEFAULT_REGISTRATION_ROLE
            if role not in SELF_REGISTRATION_ROLES:
                logger.warning("[auth] refused self-registration as %s for username=%s",
                               role.value, payload.username)
                raise ValidationError("ROLE_NOT_ALLOWED", f"{role.value} cannot be self-registered")

        fields = payload.model_dump(exclude={"password", "role"})
        fields.update(
            password=hash_password(payload.password),
            role=role,
            status=UserStatus.ACTIVE,
        )
        user = await self.repository.create_user(fields)
        await self.recorder.record(user.id, ActivityAction.REGISTER, f"User {user.username} registered")

        token = await self._issue_session(user)
        return user, token

    async def change_password(self, user: UserRecord, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, user.password):
            raise invalid_credentials()
        await self.repository.update_user(user.id, {"password": hash_password(new_password)})
        await self.recorder.record(
            user.id, ActivityAction.CHANGE_PASSWORD, f"User {user.username} changed their password"
        )
