"""
Domain layer - Pure business logic with zero framework imports.

This package contains the account lifecycle state machine, the error
taxonomy and the port interfaces it requires from infrastructure, keeping
the hexagonal architecture decoupled from FastAPI and psycopg.
"""

from .accounts import AccountService
from .exceptions import (
    AccountError,
    DuplicateKeyError,
    ErrorKind,
    HashingError,
    InvalidTokenError,
    StoreError,
)
from .ports import (
    Account,
    AccountRepository,
    AccountState,
    EmailSender,
    PasswordHasher,
    Role,
    SessionClaims,
    TokenService,
)

__all__ = [
    "Account",
    "AccountError",
    "AccountRepository",
    "AccountService",
    "AccountState",
    "DuplicateKeyError",
    "EmailSender",
    "ErrorKind",
    "HashingError",
    "InvalidTokenError",
    "PasswordHasher",
    "Role",
    "SessionClaims",
    "StoreError",
    "TokenService",
]
