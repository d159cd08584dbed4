"""
Account lifecycle domain service - registration, activation, login and
password recovery.

Lifecycle
=========

States:
- PENDING: Account created by registration, activation token issued
- ACTIVE: Account activated through its single-use activation token

Valid Transitions:
    (none)  -> PENDING  (register)
    PENDING -> PENDING  (resend activation: token replaced, old one dies)
    PENDING -> ACTIVE   (activate: token cleared)

Password recovery is orthogonal to the lifecycle state:
    forgot_password sets (reset token, expiry = now + 30 min)
    reset_password replaces the hash and clears both reset fields

Error policy: each operation re-raises its own AccountError unchanged and
wraps anything unexpected into an INTERNAL AccountError after logging it.
Login and forgot-password collapse distinguishable failures into identical
outcomes so that callers cannot enumerate registered emails.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .exceptions import AccountError, DuplicateKeyError
from .ports import (
    Account,
    AccountRepository,
    AccountState,
    EmailSender,
    PasswordHasher,
    Role,
    TokenService,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
ACTIVATION_REQUIRED = (
    "Please activate your account first. Check your email for activation instructions."
)
INVALID_RESET_TOKEN = "Password reset token is invalid or has expired"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AccountService:
    """
    Domain service for the account lifecycle.

    Collaborators are injected so the service runs unchanged against
    PostgreSQL or in-memory fakes.
    """

    repository: AccountRepository
    email_sender: EmailSender
    hasher: PasswordHasher
    tokens: TokenService
    reset_token_ttl_minutes: int = 30
    clock: Callable[[], datetime] = field(default=_utcnow)

    def register(self, name: str, email: str, password: str, role: Role = Role.USER) -> Account:
        """
        Register a new Pending account and send its activation email.

        The account is committed before the email is sent. A failed send
        does not remove the account; the caller sees an INTERNAL error and
        can use resend_activation.

        Raises:
            AccountError: CONFLICT if the email is taken, INTERNAL otherwise
        """
        email = self._normalize_email(email)
        try:
            activation_token = self.tokens.generate_opaque_token()
            account = self.repository.create_account(
                name=name,
                email=email,
                password_hash=self.hasher.hash(password),
                role=Role(role),
                activation_token=activation_token,
            )
            self.email_sender.send_activation_email(account.email, account.name, activation_token)
        except DuplicateKeyError:
            logger.warning("Registration rejected: email already registered")
            raise AccountError.conflict("User with this email already exists") from None
        except AccountError:
            raise
        except Exception:
            logger.exception("Register error for %s", email)
            raise AccountError.internal("Unable to create user") from None

        logger.info("Account %s registered. Activation email sent.", account.id)
        return account

    def login(self, email: str | None, password: str | None) -> str:
        """
        Authenticate credentials and issue a session token.

        The password is verified before the activation flag is looked at, so
        an inactive account is only disclosed to someone who knows its
        password.

        Raises:
            AccountError: UNAUTHORIZED with the generic credentials message
                for every unknown-email / wrong-password case, UNAUTHORIZED
                with the activation message for a correct password on a
                Pending account, INTERNAL otherwise
        """
        try:
            if not email or not password:
                raise AccountError.unauthorized(INVALID_CREDENTIALS)

            account = self.repository.find_by_email(self._normalize_email(email))
            if account is None:
                # Burn a bcrypt round so response time does not reveal the miss
                self.hasher.dummy_verify(password)
                logger.warning("Login failed: unknown email")
                raise AccountError.unauthorized(INVALID_CREDENTIALS)

            if not self.hasher.verify(password, account.password_hash):
                logger.warning("Login failed: invalid password for account %s", account.id)
                raise AccountError.unauthorized(INVALID_CREDENTIALS)

            if account.state is not AccountState.ACTIVE:
                logger.warning("Login failed: account %s is not activated", account.id)
                raise AccountError.unauthorized(ACTIVATION_REQUIRED)

            return self.tokens.issue_session_token(account.id)
        except AccountError:
            raise
        except Exception:
            logger.exception("Login error")
            raise AccountError.internal("Unable to login") from None

    def activate(self, activation_token: str) -> Account:
        """
        Activate the account owning activation_token.

        Tokens are single-use: the token is cleared on success, so a second
        call with the same token fails NOT_FOUND.
        """
        try:
            account = self.repository.find_by_activation_token(activation_token)
            if account is None:
                logger.warning("Activation failed: unknown or consumed token")
                raise AccountError.not_found("Invalid activation token")

            account.is_active = True
            account.activation_token = None
            account = self.repository.save(account)
        except AccountError:
            raise
        except Exception:
            logger.exception("Activation error")
            raise AccountError.internal("Unable to activate account") from None

        logger.info("Account %s activated", account.id)
        return account

    def resend_activation(self, email: str) -> None:
        """Issue a fresh activation token for a Pending account and resend it."""
        try:
            account = self.repository.find_by_email(self._normalize_email(email))
            if account is None:
                raise AccountError.not_found("User not found")
            if account.state is AccountState.ACTIVE:
                raise AccountError.conflict("Account is already activated")

            activation_token = self.tokens.generate_opaque_token()
            account.activation_token = activation_token
            account = self.repository.save(account)

            self.email_sender.send_activation_email(account.email, account.name, activation_token)
        except AccountError:
            raise
        except Exception:
            logger.exception("Resend activation error")
            raise AccountError.internal("Unable to resend activation email") from None

        logger.info("Activation email resent for account %s", account.id)

    def forgot_password(self, email: str) -> None:
        """
        Start password recovery.

        An unknown email returns without side effects so callers cannot tell
        whether it is registered. Only infrastructure failures surface.
        """
        try:
            account = self.repository.find_by_email(self._normalize_email(email))
            if account is None:
                logger.warning("Forgot password requested for unregistered email")
                return

            account.reset_password_token = self.tokens.generate_opaque_token()
            account.reset_password_expires = self.clock() + timedelta(
                minutes=self.reset_token_ttl_minutes
            )
            account = self.repository.save(account)

            self.email_sender.send_password_reset_email(
                account.email,
                account.name,
                account.reset_password_token,
                self.reset_token_ttl_minutes,
            )
        except Exception:
            logger.exception("Forgot password error")
            raise AccountError.internal("Unable to process forgot password request") from None

        logger.info("Password reset email sent for account %s", account.id)

    def reset_password(self, reset_token: str, new_password: str) -> None:
        """
        Replace the password of the account owning a non-expired reset token.

        Expired and unknown tokens are indistinguishable. Both reset fields
        are cleared in the same save that stores the new hash.
        """
        try:
            account = self.repository.find_by_reset_token(reset_token)
            if account is None:
                logger.warning("Password reset failed: invalid or expired token")
                raise AccountError.bad_request(INVALID_RESET_TOKEN)

            account.password_hash = self.hasher.hash(new_password)
            account.reset_password_token = None
            account.reset_password_expires = None
            account = self.repository.save(account)
        except AccountError:
            raise
        except Exception:
            logger.exception("Reset password error")
            raise AccountError.internal("Unable to reset password") from None

        logger.info("Password reset for account %s", account.id)

    def get_account(self, account_id: str) -> Account:
        """Resolve the account behind a verified session token."""
        account = self.repository.find_by_id(account_id)
        if account is None:
            logger.warning("Session refers to missing account %s", account_id)
            raise AccountError.unauthorized("Unauthorized")
        return account

    def _normalize_email(self, email: str) -> str:
        """
        Normalize email address for storage and lookup.

        Applies: strip whitespace. Case is preserved as stored.
        """
        return email.strip()
