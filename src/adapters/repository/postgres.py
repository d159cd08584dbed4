"""
PostgreSQL repository adapter - Implements AccountRepository protocol.

This module provides the PostgreSQL implementation of the domain's
repository port using psycopg3 with raw SQL.

Atomicity Design:
-----------------
1. **Email uniqueness**: enforced by the UNIQUE constraint on accounts.email.
   Concurrent inserts for the same email resolve to exactly one row; the
   losers receive UniqueViolation, re-raised as DuplicateKeyError.

2. **Reset token expiry**: checked inside the SELECT (reset_password_expires
   > NOW()) using database time, so an expired token is never returned.

3. **Row invariants**: CHECK constraints keep the activation token and the
   reset token pair consistent with the account state (see migrations/).

Connection failures are wrapped as StoreError. Other driver errors, such as
a malformed UUID or a CHECK violation, propagate unchanged and are mapped at
the API boundary.
"""

import logging
import re
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.domain.exceptions import DuplicateKeyError, StoreError
from src.domain.ports import Account, Role

logger = logging.getLogger(__name__)

_DUPLICATE_DETAIL = re.compile(r"Key \((?P<field>[^)]+)\)=\((?P<value>.*)\) already exists")

_COLUMNS = """
    id, name, email, password_hash, role, is_active, activation_token,
    reset_password_token, reset_password_expires, created_at, updated_at
"""


def duplicate_key_error(exc: UniqueViolation) -> DuplicateKeyError:
    """
    Build a DuplicateKeyError from a psycopg UniqueViolation.

    PostgreSQL reports the offending key in the DETAIL line, e.g.
    ``Key (email)=(jane@x.com) already exists.``
    """
    detail = exc.diag.message_detail or ""
    match = _DUPLICATE_DETAIL.search(detail)
    if match:
        return DuplicateKeyError(match.group("field"), match.group("value"))
    return DuplicateKeyError(exc.diag.constraint_name or "key", "value")


def _row_to_account(row: dict[str, Any]) -> Account:
    return Account(
        id=str(row["id"]),
        name=row["name"],
        email=row["email"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        is_active=row["is_active"],
        activation_token=row["activation_token"],
        reset_password_token=row["reset_password_token"],
        reset_password_expires=row["reset_password_expires"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresAccountRepository:
    """
    Implements AccountRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    @contextmanager
    def _cursor(self) -> Iterator[psycopg.Cursor]:
        """Borrow a pooled connection; the block commits on clean exit."""
        try:
            with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
                yield cursor
        except psycopg.OperationalError as exc:
            logger.error("Database unavailable: %s", exc)
            raise StoreError("Database unavailable") from exc

    def create_account(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: Role,
        activation_token: str,
    ) -> Account:
        """
        Insert a Pending account.

        Raises:
            DuplicateKeyError: If the email is already registered
        """
        sql = f"""
            INSERT INTO accounts (name, email, password_hash, role, is_active, activation_token)
            VALUES (%s, %s, %s, %s, FALSE, %s)
            RETURNING {_COLUMNS}
        """
        try:
            with self._cursor() as cursor:
                cursor.execute(sql, (name, email, password_hash, Role(role).value, activation_token))
                row = cursor.fetchone()
        except UniqueViolation as exc:
            raise duplicate_key_error(exc) from exc
        return _row_to_account(row)

    def find_by_email(self, email: str) -> Account | None:
        return self._find_one("email = %s", (email,))

    def find_by_id(self, account_id: str) -> Account | None:
        return self._find_one("id = %s", (account_id,))

    def find_by_activation_token(self, token: str) -> Account | None:
        return self._find_one("activation_token = %s", (token,))

    def find_by_reset_token(self, token: str) -> Account | None:
        """Only tokens whose expiry is still in the future (database time) match."""
        return self._find_one(
            "reset_password_token = %s AND reset_password_expires > NOW()", (token,)
        )

    def save(self, account: Account) -> Account:
        """
        Write every mutable column of account and bump updated_at.

        Raises:
            DuplicateKeyError: If an email change collides with another account
            StoreError: If the account row no longer exists
        """
        sql = f"""
            UPDATE accounts
            SET name = %s,
                email = %s,
                password_hash = %s,
                role = %s,
                is_active = %s,
                activation_token = %s,
                reset_password_token = %s,
                reset_password_expires = %s,
                updated_at = NOW()
            WHERE id = %s
            RETURNING {_COLUMNS}
        """
        params = (
            account.name,
            account.email,
            account.password_hash,
            Role(account.role).value,
            account.is_active,
            account.activation_token,
            account.reset_password_token,
            account.reset_password_expires,
            account.id,
        )
        try:
            with self._cursor() as cursor:
                cursor.execute(sql, params)
                row = cursor.fetchone()
        except UniqueViolation as exc:
            raise duplicate_key_error(exc) from exc

        if row is None:
            raise StoreError(f"Account {account.id} does not exist")
        return _row_to_account(row)

    def ping(self) -> float:
        """Round-trip a trivial query and return its latency in milliseconds."""
        start = time.perf_counter()
        with self._cursor() as cursor:
            cursor.execute("SELECT 1")
        return (time.perf_counter() - start) * 1000

    def _find_one(self, where: str, params: tuple[Any, ...]) -> Account | None:
        sql = f"SELECT {_COLUMNS} FROM accounts WHERE {where}"
        with self._cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
        return _row_to_account(row) if row is not None else None


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
