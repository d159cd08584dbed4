"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory repository and recording email sender
- Real bcrypt hasher and JWT token service
- The account service wired from those parts
"""

import pytest

from src.adapters.security.hasher import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenService
from src.domain.accounts import AccountService
from tests.fakes import InMemoryAccountRepository, RecordingEmailSender

TEST_JWT_SECRET = "test-secret-key"


@pytest.fixture
def repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture(scope="session")
def hasher() -> BcryptPasswordHasher:
    return BcryptPasswordHasher(cost=10)


@pytest.fixture
def tokens() -> JwtTokenService:
    return JwtTokenService(secret=TEST_JWT_SECRET, expires_in_seconds=3600)


@pytest.fixture
def service(
    repository: InMemoryAccountRepository,
    email_sender: RecordingEmailSender,
    hasher: BcryptPasswordHasher,
    tokens: JwtTokenService,
) -> AccountService:
    return AccountService(
        repository=repository,
        email_sender=email_sender,
        hasher=hasher,
        tokens=tokens,
    )
