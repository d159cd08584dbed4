"""
JWT token service - Implements TokenService protocol.

Session tokens are stateless JWTs carrying the account id; validity is
proven by signature and expiry alone. Activation and reset tokens are
opaque random strings that only mean something to the account store.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from src.domain.exceptions import InvalidTokenError
from src.domain.ports import SessionClaims

logger = logging.getLogger(__name__)

OPAQUE_TOKEN_BYTES = 32  # 64 hex characters


class JwtTokenService:
    """Implements TokenService protocol via python-jose."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in_seconds: int = 3600,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expires_in = timedelta(seconds=expires_in_seconds)

    def issue_session_token(self, account_id: str) -> str:
        """Sign a token for account_id expiring after the configured window."""
        now = datetime.now(timezone.utc)
        claims = {"id": str(account_id), "iat": now, "exp": now + self._expires_in}
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify_session_token(self, token: str) -> SessionClaims:
        """
        Verify signature and expiry and return the decoded claims.

        Raises:
            InvalidTokenError: If the token is malformed, badly signed,
                expired or lacks the account id claim
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except ExpiredSignatureError as exc:
            raise InvalidTokenError("Token has expired") from exc
        except JWTError as exc:
            raise InvalidTokenError("Token is invalid") from exc

        account_id = payload.get("id")
        if not account_id or "exp" not in payload:
            raise InvalidTokenError("Token is missing required claims")

        return SessionClaims(
            account_id=str(account_id),
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def generate_opaque_token(self) -> str:
        """Cryptographically random token for activation and password reset."""
        return secrets.token_hex(OPAQUE_TOKEN_BYTES)
