"""
Services Module

Business logic on top of the account repository:
- ActivityRecorder: append-only audit log writes
- Authenticator: login / logout / registration and session resolution
- AccountService: user and organization lifecycle, activity feed, statistics
"""
from .activity import ActivityRecorder
from .auth import Authenticator
from .accounts import AccountService

__all__ = [
    "ActivityRecorder",
    "Authenticator",
    "AccountService",
]
