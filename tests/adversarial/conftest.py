"""
Shared fixtures for adversarial tests.

Provides the database-backed infrastructure for race condition tests.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from src.config.settings import get_settings


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    settings = get_settings()
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=1,
        max_size=25,
        open=True,
    )
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_repository(pool: ConnectionPool) -> PostgresAccountRepository:
    """Create repository instance for each test."""
    return PostgresAccountRepository(pool)


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean accounts table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM accounts")
    yield
