"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the Account entity and the interfaces (ports) that the
domain requires from infrastructure. Adapters implement these protocols
through structural subtyping.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol


class Role(str, Enum):
    """Account role flag. Does not influence lifecycle transitions."""

    USER = "user"
    ADMIN = "admin"


class AccountState(str, Enum):
    """
    Account lifecycle states.

    State Transitions:
    - PENDING -> ACTIVE (successful activation)

    Reset-token presence is an orthogonal sub-state, not a lifecycle stage.
    """

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"


@dataclass
class Account:
    """Persistent account record. password_hash never holds plaintext."""

    id: str
    name: str
    email: str
    password_hash: str
    role: Role = Role.USER
    is_active: bool = False
    activation_token: str | None = None
    reset_password_token: str | None = None
    reset_password_expires: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def state(self) -> AccountState:
        return AccountState.ACTIVE if self.is_active else AccountState.PENDING


@dataclass(frozen=True)
class SessionClaims:
    """Decoded claims of a verified session token."""

    account_id: str
    issued_at: datetime
    expires_at: datetime


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        activation_token: str,
    ) -> Account:
        """
        Insert a new Pending account.

        Raises:
            DuplicateKeyError: If the email is already registered
            StoreError: On any other persistence failure
        """
        ...

    def find_by_email(self, email: str) -> Account | None:
        """Exact-match lookup by email."""
        ...

    def find_by_id(self, account_id: str) -> Account | None:
        """Exact-match lookup by id."""
        ...

    def find_by_activation_token(self, token: str) -> Account | None:
        """Exact-match lookup by pending activation token."""
        ...

    def find_by_reset_token(self, token: str) -> Account | None:
        """
        Lookup by reset token, filtering out expired tokens at query time.

        An expired token behaves exactly like an unknown one.
        """
        ...

    def save(self, account: Account) -> Account:
        """
        Persist mutable fields of an existing account.

        Raises:
            StoreError: On persistence failure
        """
        ...


class PasswordHasher(Protocol):
    """Port interface for one-way password hashing."""

    def hash(self, plaintext: str) -> str: ...

    def verify(self, plaintext: str, password_hash: str) -> bool: ...

    def dummy_verify(self, plaintext: str) -> bool: ...


class TokenService(Protocol):
    """Port interface for session and opaque token handling."""

    def issue_session_token(self, account_id: str) -> str: ...

    def verify_session_token(self, token: str) -> SessionClaims: ...

    def generate_opaque_token(self) -> str: ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_activation_email(self, email: str, name: str, token: str) -> None:
        """
        Send account activation instructions.

        Args:
            email: Recipient email address
            name: Recipient display name
            token: Opaque activation token
        """
        ...

    def send_password_reset_email(
        self, email: str, name: str, token: str, expires_in_minutes: int
    ) -> None:
        """
        Send password reset instructions.

        Args:
            email: Recipient email address
            name: Recipient display name
            token: Opaque reset token
            expires_in_minutes: Validity window of the token
        """
        ...
