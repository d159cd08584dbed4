"""
Unit tests for application settings and the email backend selection.
"""

import pytest

from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.sender import SmtpEmailSender
from src.api.main import create_email_sender
from src.config.settings import DEFAULT_JWT_SECRET, Settings


class TestStartupValidation:
    def test_development_defaults_are_accepted(self) -> None:
        Settings(environment="development", jwt_secret=DEFAULT_JWT_SECRET).validate_for_startup()

    def test_production_rejects_default_secret(self) -> None:
        settings = Settings(environment="production", jwt_secret=DEFAULT_JWT_SECRET)

        assert settings.is_production()
        with pytest.raises(RuntimeError, match="JWT_SECRET"):
            settings.validate_for_startup()

    def test_production_accepts_custom_secret(self) -> None:
        Settings(environment="production", jwt_secret="a-long-random-value").validate_for_startup()

    def test_low_bcrypt_cost_rejected(self) -> None:
        with pytest.raises(RuntimeError, match="BCRYPT_COST"):
            Settings(bcrypt_cost=4).validate_for_startup()

    def test_env_vars_are_case_insensitive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESET_TOKEN_TTL_MINUTES", "15")

        assert Settings().reset_token_ttl_minutes == 15


class TestEmailBackend:
    def test_console_backend(self) -> None:
        sender = create_email_sender(Settings(email_backend="console"))

        assert isinstance(sender, ConsoleEmailSender)

    def test_smtp_backend(self) -> None:
        sender = create_email_sender(
            Settings(email_backend="smtp", smtp_host="smtp.example.com", smtp_port=2525)
        )

        assert isinstance(sender, SmtpEmailSender)
        sender.close()
