"""
Activity recorder: appends one audit entry per account-affecting action.

Recording happens synchronously inside the triggering request. A failed
write is logged and surfaces as StorageError (HTTP 500) so that gaps in the
audit trail are never silent.
"""
import logging
from typing import Optional

from app.core.errors import StorageError
from app.models.enums import ActivityAction
from app.repositories.base import AccountRepository
from app.schemas.activity import ActivityRecord

logger = logging.getLogger("uvicorn.error")


class ActivityRecorder:
    def __init__(self, repository: AccountRepository):
        self.repository = repository

    async def record(
        self,
        user_id: Optional[int],
        action: ActivityAction | str,
        description: str,
    ) -> ActivityRecord:
        action = action.value if isinstance(action, ActivityAction) else action
        try:
            return await self.repository.create_activity(
                {"user_id": user_id, "action": action, "description": description}
            )
        except StorageError:
            logger.error("[activity] failed to record %s for user_id=%s", action, user_id)
            raise
