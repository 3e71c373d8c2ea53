"""
Server-side session storage.

A session binds an opaque session id to a user id until it is deleted or its
TTL elapses. Expired sessions read exactly like missing ones.

Two implementations share the SessionStore contract:
- InMemorySessionStore: process-local dict, for tests and single-process runs
- DatabaseSessionStore: Tortoise "sessions" table, survives restarts
"""
import datetime as dt
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

from tortoise.exceptions import BaseORMException

from app.core.clock import Clock, utc_now
from app.core.errors import StorageError
from app.models.session import Session

logger = logging.getLogger("uvicorn.error")


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    @abstractmethod
    async def put(self, session_id: str, user_id: int, ttl: dt.timedelta) -> None:
        """Create or replace a session that expires ttl from now."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[int]:
        """Bound user id, or None when the session is missing or expired."""

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        """Remove the session; True only if a live session was removed."""


class InMemorySessionStore(SessionStore):
    def __init__(self, clock: Clock = utc_now):
        super().__init__(clock)
        self._sessions: Dict[str, Tuple[int, dt.datetime]] = {}

    async def put(self, session_id: str, user_id: int, ttl: dt.timedelta) -> None:
        self._sessions[session_id] = (user_id, self._clock() + ttl)

    async def get(self, session_id: str) -> Optional[int]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        user_id, expires_at = entry
        if expires_at <= self._clock():
            self._sessions.pop(session_id, None)
            return None
        return user_id

    async def delete(self, session_id: str) -> bool:
        live = await self.get(session_id) is not None
        self._sessions.pop(session_id, None)
        return live


class DatabaseSessionStore(SessionStore):
    async def put(self, session_id: str, user_id: int, ttl: dt.timedelta) -> None:
        try:
            await Session.update_or_create(
                id=session_id,
                defaults={"user_id": user_id, "expires_at": self._clock() + ttl},
            )
        except BaseORMException as exc:
            logger.exception("[sessions] put failed")
            raise StorageError() from exc

    async def get(self, session_id: str) -> Optional[int]:
        try:
            row = await Session.get_or_none(id=session_id)
            if row is None:
                return None
            if row.expires_at <= self._clock():
                await Session.filter(id=session_id).delete()
                return None
            return row.user_id
        except BaseORMException as exc:
            logger.exception("[sessions] get failed")
            raise StorageError() from exc

    async def delete(self, session_id: str) -> bool:
        live = await self.get(session_id) is not None
        try:
            await Session.filter(id=session_id).delete()
        except BaseORMException as exc:
            logger.exception("[sessions] delete failed")
            raise StorageError() from exc
        return live

    async def purge_expired(self) -> int:
        """Delete every expired row; returns how many were removed."""
        try:
            return await Session.filter(expires_at__lte=self._clock()).delete()
        except BaseORMException as exc:
            logger.exception("[sessions] purge failed")
            raise StorageError() from exc
