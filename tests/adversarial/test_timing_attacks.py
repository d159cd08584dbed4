"""
Adversarial tests for timing oracle attack prevention.

Verifies that login failure modes have statistically similar response
times, preventing attackers from inferring whether an email is registered
through timing analysis.

Security rationale:
- Timing oracle attacks measure response time differences to infer secrets
- "Email not found" skips the password check entirely unless something
  takes its place; the service burns one bcrypt round against a dummy hash
- bcrypt dominates the cost of every path, masking lookup differences

Runs against in-memory fakes with a real bcrypt hasher; no database needed.
"""

import statistics
import time

import pytest

from src.adapters.security.hasher import BcryptPasswordHasher
from src.adapters.security.tokens import JwtTokenService
from src.domain.accounts import AccountService
from src.domain.exceptions import AccountError
from tests.fakes import InMemoryAccountRepository, RecordingEmailSender

pytestmark = pytest.mark.adversarial


@pytest.fixture(params=[10, 12], ids=["cost10", "cost12"])
def timing_service(request: pytest.FixtureRequest) -> AccountService:
    service = AccountService(
        repository=InMemoryAccountRepository(),
        email_sender=RecordingEmailSender(),
        hasher=BcryptPasswordHasher(cost=request.param),
        tokens=JwtTokenService(secret="timing-secret"),
    )
    service.register("Jane", "jane@x.com", "password123")
    service.activate(service.email_sender.last_activation_token)
    service.register("Pending", "pending@x.com", "password123")
    return service


class TestTimingAttacks:
    """
    Verify constant-time behavior prevents timing oracle attacks.

    These tests measure response times for different failure scenarios
    and verify they are statistically indistinguishable.
    """

    # Number of measurements per scenario for statistical significance
    ITERATIONS = 20

    # Maximum allowed difference in mean times
    MAX_VARIANCE_RATIO = 0.20

    def measure_time(self, service: AccountService, email: str, password: str) -> float:
        """Measure execution time for a single failed login."""
        start = time.perf_counter()
        with pytest.raises(AccountError):
            service.login(email, password)
        return time.perf_counter() - start

    def assert_timing_similar(
        self,
        times1: list[float],
        times2: list[float],
        label1: str,
        label2: str,
    ) -> None:
        """Assert two timing distributions are statistically similar."""
        mean1 = statistics.mean(times1)
        mean2 = statistics.mean(times2)

        ratio = abs(mean1 - mean2) / max(mean1, mean2)

        assert ratio < self.MAX_VARIANCE_RATIO, (
            f"Timing difference too large between {label1} and {label2}: "
            f"{ratio:.1%} (threshold: {self.MAX_VARIANCE_RATIO:.0%})\n"
            f"  {label1}: mean={mean1:.4f}s, stdev={statistics.stdev(times1):.4f}s\n"
            f"  {label2}: mean={mean2:.4f}s, stdev={statistics.stdev(times2):.4f}s"
        )

    def test_unknown_email_timing_similar_to_wrong_password(
        self, timing_service: AccountService
    ) -> None:
        """
        The primary timing oracle: "email not found" vs "password wrong".
        """
        unknown_times = [
            self.measure_time(timing_service, f"nobody{i}@x.com", "password123")
            for i in range(self.ITERATIONS)
        ]
        wrong_password_times = [
            self.measure_time(timing_service, "jane@x.com", "wrongpassword")
            for _ in range(self.ITERATIONS)
        ]

        self.assert_timing_similar(
            unknown_times, wrong_password_times, "unknown_email", "wrong_password"
        )

    def test_inactive_account_timing_similar_to_wrong_password(
        self, timing_service: AccountService
    ) -> None:
        """A correct password on a Pending account costs the same bcrypt round."""
        inactive_times = [
            self.measure_time(timing_service, "pending@x.com", "password123")
            for _ in range(self.ITERATIONS)
        ]
        wrong_password_times = [
            self.measure_time(timing_service, "jane@x.com", "wrongpassword")
            for _ in range(self.ITERATIONS)
        ]

        self.assert_timing_similar(
            inactive_times, wrong_password_times, "inactive_account", "wrong_password"
        )


class TestEnumerationResistance:
    """Failure outcomes must not reveal whether an email is registered."""

    def test_login_failures_are_indistinguishable(self, timing_service: AccountService) -> None:
        with pytest.raises(AccountError) as unknown:
            timing_service.login("nobody@x.com", "password123")
        with pytest.raises(AccountError) as wrong:
            timing_service.login("jane@x.com", "wrongpassword")

        assert (unknown.value.kind, unknown.value.message) == (
            wrong.value.kind,
            wrong.value.message,
        )

    def test_forgot_password_is_silent_for_unknown_email(
        self, timing_service: AccountService
    ) -> None:
        sender = timing_service.email_sender

        timing_service.forgot_password("nobody@x.com")

        assert sender.reset_emails == []
