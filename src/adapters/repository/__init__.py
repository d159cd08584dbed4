"""Repository adapters - Database implementations."""

from .postgres import PostgresAccountRepository, duplicate_key_error, run_migrations

__all__ = ["PostgresAccountRepository", "duplicate_key_error", "run_migrations"]
