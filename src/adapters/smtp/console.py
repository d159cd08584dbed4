"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging activation and reset tokens for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints tokens and links to the log.
    """

    def __init__(self, app_url: str = "http://localhost:3000") -> None:
        self._app_url = app_url.rstrip("/")

    def send_activation_email(self, email: str, name: str, token: str) -> None:
        """
        Log activation token to console (simulates email delivery).

        The token is logged at INFO level to be visible in docker-compose logs.
        """
        logger.info(
            "[ACTIVATION] Email: %s Name: %s Token: %s Link: %s/activate?token=%s",
            email,
            name,
            token,
            self._app_url,
            token,
        )

    def send_password_reset_email(
        self, email: str, name: str, token: str, expires_in_minutes: int
    ) -> None:
        """Log password reset token to console (simulates email delivery)."""
        logger.info(
            "[PASSWORD_RESET] Email: %s Name: %s Token: %s Expires in: %d minutes Link: %s/reset-password?token=%s",
            email,
            name,
            token,
            expires_in_minutes,
            self._app_url,
            token,
        )

    def close(self) -> None:
        pass
