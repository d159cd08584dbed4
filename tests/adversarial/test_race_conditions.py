"""
Adversarial tests for race condition attack prevention.

Verifies that concurrent operations on the same email are handled atomically,
preventing attackers from exploiting race conditions to:
- Create duplicate accounts
- Leave an account holding more than one live activation token

The UNIQUE constraint on accounts.email is the only guard against concurrent
registration; the service never checks-then-inserts.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository
from src.adapters.security.hasher import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenService
from src.domain.accounts import AccountService
from src.domain.exceptions import AccountError, DuplicateKeyError, ErrorKind
from src.domain.ports import Role
from tests.fakes import RecordingEmailSender

pytestmark = [pytest.mark.adversarial, pytest.mark.usefixtures("clean_database")]


def count_accounts(pool: ConnectionPool, email: str) -> int:
    with pool.connection() as conn, conn.cursor() as cursor:
        cursor.execute("SELECT COUNT(*) AS n FROM accounts WHERE email = %s", (email,))
        row = cursor.fetchone()
    return row[0]


class TestRaceConditionAttacks:
    """
    Adversarial tests simulating race condition attacks.

    These tests simulate an attacker rapidly attempting concurrent
    registrations to exploit potential race conditions in the system.
    """

    @pytest.mark.parametrize("num_attackers", [5, 20])
    def test_concurrent_create_exactly_one_succeeds(
        self, pool: ConnectionPool, num_attackers: int
    ) -> None:
        """
        Concurrent inserts for one email: one row, the rest DuplicateKeyError.
        """
        email = "attack@example.com"
        results: list[bool] = []
        results_lock = threading.Lock()

        def attack_register(attacker_id: int) -> None:
            repo = PostgresAccountRepository(pool)
            try:
                repo.create_account(
                    name="Attacker",
                    email=email,
                    password_hash="$2b$10$attackhash",
                    role=Role.USER,
                    activation_token=f"{attacker_id:064x}",
                )
                outcome = True
            except DuplicateKeyError:
                outcome = False
            with results_lock:
                results.append(outcome)

        with ThreadPoolExecutor(max_workers=num_attackers) as executor:
            futures = [executor.submit(attack_register, i) for i in range(num_attackers)]
            for f in futures:
                f.result()

        assert results.count(True) == 1, (
            f"Race condition vulnerability: {results.count(True)} registrations succeeded "
            f"(expected exactly 1)"
        )
        assert results.count(False) == num_attackers - 1
        assert count_accounts(pool, email) == 1

    def test_concurrent_service_registration_reports_conflict(
        self, pool: ConnectionPool
    ) -> None:
        """
        Through the service, losers see CONFLICT and only the winner is emailed.
        """
        email_sender = RecordingEmailSender()
        service = AccountService(
            repository=PostgresAccountRepository(pool),
            email_sender=email_sender,
            hasher=BcryptPasswordHasher(cost=10),
            tokens=JwtTokenService(secret="race-secret"),
        )
        kinds: list[ErrorKind | None] = []
        kinds_lock = threading.Lock()

        def attack_register() -> None:
            try:
                service.register("Jane", "jane@x.com", "secret1")
                kind = None
            except AccountError as exc:
                kind = exc.kind
            with kinds_lock:
                kinds.append(kind)

        with ThreadPoolExecutor(max_workers=5) as executor:
            futures = [executor.submit(attack_register) for _ in range(5)]
            for f in futures:
                f.result()

        assert kinds.count(None) == 1
        assert kinds.count(ErrorKind.CONFLICT) == 4
        assert len(email_sender.activation_emails) == 1

    def test_winner_data_is_not_corrupted(self, pool: ConnectionPool) -> None:
        """The stored row carries the winning attacker's values only."""
        email = "integrity@example.com"
        winners: list[str] = []
        winners_lock = threading.Lock()

        def attack_register(attacker_id: int) -> None:
            token = f"{attacker_id:064x}"
            try:
                PostgresAccountRepository(pool).create_account(
                    name=f"Attacker{attacker_id}",
                    email=email,
                    password_hash=f"$2b$10$hash{attacker_id}",
                    role=Role.USER,
                    activation_token=token,
                )
            except DuplicateKeyError:
                return
            with winners_lock:
                winners.append(token)

        with ThreadPoolExecutor(max_workers=5) as executor:
            futures = [executor.submit(attack_register, i) for i in range(5)]
            for f in futures:
                f.result()

        assert len(winners) == 1
        stored = PostgresAccountRepository(pool).find_by_email(email)
        assert stored.activation_token == winners[0]
        attacker_id = int(winners[0], 16)
        assert stored.name == f"Attacker{attacker_id}"
        assert stored.password_hash == f"$2b$10$hash{attacker_id}"
