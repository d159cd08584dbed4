"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from functools import lru_cache

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository
from src.adapters.security.hasher import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenService
from src.config.settings import Settings, get_settings
from src.domain.accounts import AccountService
from src.domain.exceptions import AccountError, InvalidTokenError
from src.domain.ports import Account, EmailSender


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_repository(request: Request) -> PostgresAccountRepository:
    """Create repository with connection pool from app state."""
    pool = get_pool(request)
    return PostgresAccountRepository(pool)


def get_email_sender(request: Request) -> EmailSender:
    """Get the process-wide email sender created at startup."""
    return request.app.state.email_sender


@lru_cache
def _hasher_for_cost(cost: int) -> BcryptPasswordHasher:
    return BcryptPasswordHasher(cost=cost)


def get_hasher(settings: Settings = Depends(get_settings)) -> BcryptPasswordHasher:
    """Get the shared hasher; building one costs a bcrypt round."""
    return _hasher_for_cost(settings.bcrypt_cost)


def get_token_service(settings: Settings = Depends(get_settings)) -> JwtTokenService:
    return JwtTokenService(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expires_in_seconds=settings.jwt_expires_in_seconds,
    )


def get_account_service(
    request: Request,
    settings: Settings = Depends(get_settings),
    hasher: BcryptPasswordHasher = Depends(get_hasher),
    tokens: JwtTokenService = Depends(get_token_service),
) -> AccountService:
    """
    Create account service with injected dependencies.

    Wires together the repository, email sender, hasher and token service
    for the domain service.
    """
    return AccountService(
        repository=get_repository(request),
        email_sender=get_email_sender(request),
        hasher=hasher,
        tokens=tokens,
        reset_token_ttl_minutes=settings.reset_token_ttl_minutes,
    )


# Bearer security scheme for OpenAPI documentation. Missing or malformed
# headers are reported through the error envelope rather than FastAPI's 403.
http_bearer = HTTPBearer(auto_error=False)


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    tokens: JwtTokenService = Depends(get_token_service),
    service: AccountService = Depends(get_account_service),
) -> Account:
    """
    Resolve the account behind an ``Authorization: Bearer <token>`` header.

    Raises:
        AccountError: UNAUTHORIZED if the header is missing, the token does
            not verify, or its account no longer exists
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AccountError.unauthorized("No token provided or invalid token format")

    try:
        claims = tokens.verify_session_token(credentials.credentials.strip())
    except InvalidTokenError:
        raise AccountError.unauthorized("Unauthorized") from None

    return service.get_account(claims.account_id)
