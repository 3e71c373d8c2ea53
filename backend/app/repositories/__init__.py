"""
Account repository backends.
- AccountRepository: the contract the services depend on
- InMemoryAccountRepository: dict-backed, tests and single-process runs
- TortoiseAccountRepository: relational, the production backend
"""
from .base import AccountRepository
from .memory import InMemoryAccountRepository
from .tortoise_repo import TortoiseAccountRepository
