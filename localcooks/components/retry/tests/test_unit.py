"""
Retry component unit tests.

Covers:
- Error classification rules (auth, constraint, not found, transient)
- Attempt counting per category
- Linear backoff delays
- Policy validation
"""

from __future__ import annotations

import sqlite3

import pytest

from localcooks.components.retry import (
    ErrorCategory,
    Retrier,
    RetryPolicy,
    classify_error,
    is_retryable,
    retry,
)


class CodedError(Exception):
    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class FlakyOperation:
    """Fails with the given errors, then returns ``result``."""

    def __init__(self, errors: list[Exception], result: str = "ok") -> None:
        self._errors = list(errors)
        self.result = result
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self.result


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, base_delay_seconds=0.5)


# --- Classification ---


class TestClassifyError:
    @pytest.mark.parametrize(
        "message",
        ["JWT expired", "invalid auth credentials", "authentication failed"],
    )
    def test_auth_errors(self, message: str) -> None:
        assert classify_error(Exception(message)) == ErrorCategory.AUTH

    @pytest.mark.parametrize(
        "message",
        [
            'duplicate key value violates unique constraint "email_key"',
            "UNIQUE constraint failed: newsletter_subscriptions.email",
        ],
    )
    def test_constraint_errors(self, message: str) -> None:
        assert classify_error(Exception(message)) == ErrorCategory.CONSTRAINT

    def test_not_found_by_message(self) -> None:
        assert classify_error(Exception("row not found")) == ErrorCategory.NOT_FOUND

    def test_not_found_by_code(self) -> None:
        error = CodedError("JSON object requested, multiple (or no) rows returned", "PGRST116")
        assert classify_error(error) == ErrorCategory.NOT_FOUND

    def test_not_found_code_in_message(self) -> None:
        assert classify_error(Exception("PGRST116: no rows")) == ErrorCategory.NOT_FOUND

    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError("timed out"),
            ConnectionResetError("connection reset by peer"),
            Exception("503 Service Unavailable"),
            sqlite3.OperationalError("database is locked"),
        ],
    )
    def test_everything_else_is_transient(self, error: Exception) -> None:
        assert classify_error(error) == ErrorCategory.TRANSIENT
        assert is_retryable(error)

    def test_match_is_case_sensitive(self) -> None:
        # Lower-case "jwt" does not match the "JWT" marker
        assert classify_error(Exception("jwt")) == ErrorCategory.TRANSIENT

    def test_auth_checked_before_constraint(self) -> None:
        error = Exception("auth check violates policy")
        assert classify_error(error) == ErrorCategory.AUTH

    def test_only_transient_is_retryable(self) -> None:
        assert [c for c in ErrorCategory if c.retryable] == [ErrorCategory.TRANSIENT]


# --- Retry behaviour ---


class TestRetry:
    def test_success_first_try(self, policy: RetryPolicy, sleeper: RecordingSleep) -> None:
        op = FlakyOperation([])
        assert retry(op, policy, sleep=sleeper) == "ok"
        assert op.calls == 1
        assert sleeper.delays == []

    def test_jwt_error_makes_exactly_one_attempt(
        self, policy: RetryPolicy, sleeper: RecordingSleep
    ) -> None:
        op = FlakyOperation([Exception("JWT expired")] * 3)
        with pytest.raises(Exception, match="JWT expired"):
            retry(op, policy, sleep=sleeper)
        assert op.calls == 1
        assert sleeper.delays == []

    def test_constraint_error_makes_one_attempt(
        self, policy: RetryPolicy, sleeper: RecordingSleep
    ) -> None:
        op = FlakyOperation([Exception("violates check constraint")])
        with pytest.raises(Exception):
            retry(op, policy, sleep=sleeper)
        assert op.calls == 1

    def test_not_found_makes_one_attempt(
        self, policy: RetryPolicy, sleeper: RecordingSleep
    ) -> None:
        op = FlakyOperation([CodedError("no rows", "PGRST116")])
        with pytest.raises(CodedError):
            retry(op, policy, sleep=sleeper)
        assert op.calls == 1

    def test_transient_error_uses_all_attempts(
        self, policy: RetryPolicy, sleeper: RecordingSleep
    ) -> None:
        op = FlakyOperation([TimeoutError("timed out")] * 5)
        with pytest.raises(TimeoutError):
            retry(op, policy, sleep=sleeper)
        assert op.calls == 3

    def test_last_error_propagates(self, policy: RetryPolicy, sleeper: RecordingSleep) -> None:
        op = FlakyOperation(
            [TimeoutError("first"), TimeoutError("second"), TimeoutError("third")]
        )
        with pytest.raises(TimeoutError, match="third"):
            retry(op, policy, sleep=sleeper)

    def test_recovers_after_transient_errors(
        self, policy: RetryPolicy, sleeper: RecordingSleep
    ) -> None:
        op = FlakyOperation([TimeoutError("t1"), ConnectionError("c1")], result="done")
        assert retry(op, policy, sleep=sleeper) == "done"
        assert op.calls == 3

    def test_linear_backoff(self, sleeper: RecordingSleep) -> None:
        policy = RetryPolicy(max_attempts=4, base_delay_seconds=0.5)
        op = FlakyOperation([TimeoutError("t")] * 4)
        with pytest.raises(TimeoutError):
            retry(op, policy, sleep=sleeper)
        # No sleep after the final attempt
        assert sleeper.delays == [0.5, 1.0, 1.5]

    def test_transient_then_non_retryable_stops(
        self, policy: RetryPolicy, sleeper: RecordingSleep
    ) -> None:
        op = FlakyOperation([TimeoutError("t"), Exception("JWT invalid")])
        with pytest.raises(Exception, match="JWT invalid"):
            retry(op, policy, sleep=sleeper)
        assert op.calls == 2
        assert sleeper.delays == [0.5]

    def test_single_attempt_policy(self, sleeper: RecordingSleep) -> None:
        op = FlakyOperation([TimeoutError("t")])
        with pytest.raises(TimeoutError):
            retry(op, RetryPolicy(max_attempts=1), sleep=sleeper)
        assert op.calls == 1

    def test_custom_classifier(self, policy: RetryPolicy, sleeper: RecordingSleep) -> None:
        op = FlakyOperation([TimeoutError("t")])
        with pytest.raises(TimeoutError):
            retry(op, policy, sleep=sleeper, classifier=lambda e: ErrorCategory.AUTH)
        assert op.calls == 1


class TestRetrier:
    def test_call_uses_policy(self, sleeper: RecordingSleep) -> None:
        retrier = Retrier(RetryPolicy(max_attempts=2, base_delay_seconds=1.0), sleep=sleeper)
        op = FlakyOperation([TimeoutError("t")] * 2)
        with pytest.raises(TimeoutError):
            retrier.call(op, label="find_by_email")
        assert op.calls == 2
        assert sleeper.delays == [1.0]

    def test_default_policy(self) -> None:
        retrier = Retrier()
        assert retrier.policy == RetryPolicy(max_attempts=3, base_delay_seconds=1.0)

    def test_logs_retries(
        self, sleeper: RecordingSleep, caplog: pytest.LogCaptureFixture
    ) -> None:
        retrier = Retrier(RetryPolicy(max_attempts=2, base_delay_seconds=0.1), sleep=sleeper)
        op = FlakyOperation([TimeoutError("boom")] * 2)
        with caplog.at_level("WARNING"), pytest.raises(TimeoutError):
            retrier.call(op, label="insert_pending")
        assert "insert_pending attempt 1/2 failed" in caplog.text
        assert "insert_pending failed after 2 attempts" in caplog.text


class TestRetryPolicy:
    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(base_delay_seconds=-1)

    def test_delay_after(self) -> None:
        policy = RetryPolicy(base_delay_seconds=0.75)
        assert policy.delay_after(1) == 0.75
        assert policy.delay_after(2) == 1.5
