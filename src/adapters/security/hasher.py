"""
bcrypt password hasher - Implements PasswordHasher protocol.

Security Design - Timing Oracle Prevention:
------------------------------------------
bcrypt.checkpw() is constant-time and dominates response time (~100ms at
cost 10). dummy_verify() runs the same comparison against a hash built at
the configured cost, so a login for an unknown email costs as much as one
for a known email with a wrong password.
"""

import logging

import bcrypt

from src.domain.exceptions import HashingError

logger = logging.getLogger(__name__)

MIN_COST = 10

_DUMMY_PASSWORD = b"dummy_password_for_timing_safety"


class BcryptPasswordHasher:
    """
    Implements PasswordHasher protocol via bcrypt.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, cost: int = MIN_COST) -> None:
        if cost < MIN_COST:
            raise ValueError(f"bcrypt cost must be at least {MIN_COST}, got {cost}")
        self._cost = cost
        # Same cost as real hashes so a miss takes as long as a wrong password
        self._dummy_hash = bcrypt.hashpw(_DUMMY_PASSWORD, bcrypt.gensalt(rounds=cost))

    @property
    def cost(self) -> int:
        return self._cost

    def hash(self, plaintext: str) -> str:
        """Hash plaintext with a random salt at the configured cost."""
        try:
            return bcrypt.hashpw(plaintext.encode(), bcrypt.gensalt(rounds=self._cost)).decode()
        except (ValueError, TypeError) as exc:
            logger.error("Error hashing password: %s", exc)
            raise HashingError("Unable to hash password") from exc

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """
        Check plaintext against a stored bcrypt hash.

        Returns False on mismatch. Raises HashingError when password_hash is
        not a bcrypt hash.
        """
        try:
            return bcrypt.checkpw(plaintext.encode(), password_hash.encode())
        except (ValueError, TypeError) as exc:
            raise HashingError("Stored password hash is malformed") from exc

    def dummy_verify(self, plaintext: str) -> bool:
        """Spend one bcrypt comparison and report failure."""
        bcrypt.checkpw(plaintext.encode(), self._dummy_hash)
        return False
