"""
Pydantic schemas for the activity (audit) log.
"""
import datetime as dt
from typing import Optional

from app.schemas.common import CamelModel


class ActivityRecord(CamelModel):
    """An audit entry as stored. action is free text (see ActivityAction for the known values)."""
    id: int
    user_id: Optional[int] = None
    action: str
    description: str
    timestamp: dt.datetime


class ActivityUser(CamelModel):
    """Minimal projection of the acting user attached to listed activities."""
    id: int
    username: str
    full_name: str


class ActivityOut(ActivityRecord):
    user: Optional[ActivityUser] = None  # None when the acting user no longer exists
