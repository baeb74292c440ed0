"""Unit tests for core.retry.with_retry."""

from unittest.mock import MagicMock, patch

import pytest

from querydispatch.core.exceptions import RetryExhaustedError
from querydispatch.core.models import RetryPolicy
from querydispatch.core.retry import with_retry


def _flaky(failures: int, value: str = "ok") -> MagicMock:
    """Mock that raises RuntimeError ``failures`` times, then returns ``value``."""
    return MagicMock(
        side_effect=[RuntimeError(f"boom {i + 1}") for i in range(failures)] + [value]
    )


class TestWithRetry:
    def test_success_first_try(self):
        op = MagicMock(return_value=42)
        logger = MagicMock()
        with patch("querydispatch.core.retry.time.sleep") as sleep:
            assert with_retry(op, RetryPolicy(max_attempts=3, sleep_seconds=5), logger) == 42
        op.assert_called_once_with()
        sleep.assert_not_called()
        logger.error.assert_not_called()

    def test_always_failing_runs_exactly_max_attempts(self):
        op = MagicMock(side_effect=[RuntimeError("e1"), RuntimeError("e2"), RuntimeError("e3")])
        logger = MagicMock()
        with pytest.raises(RetryExhaustedError) as exc_info:
            with_retry(op, RetryPolicy(max_attempts=3, sleep_seconds=0), logger)
        assert op.call_count == 3
        assert str(exc_info.value.last_error) == "e3"
        assert exc_info.value.attempts == 3
        assert exc_info.value.__cause__ is exc_info.value.last_error

    def test_fails_twice_then_succeeds(self):
        op = _flaky(2)
        logger = MagicMock()
        assert with_retry(op, RetryPolicy(max_attempts=3, sleep_seconds=0), logger) == "ok"
        assert op.call_count == 3
        assert logger.error.call_count == 2
        logger.info.assert_called_once()

    def test_sleeps_only_between_attempts(self):
        op = MagicMock(side_effect=RuntimeError("down"))
        with patch("querydispatch.core.retry.time.sleep") as sleep:
            with pytest.raises(RetryExhaustedError):
                with_retry(op, RetryPolicy(max_attempts=4, sleep_seconds=2.5), MagicMock())
        assert sleep.call_count == 3
        sleep.assert_called_with(2.5)

    def test_single_attempt_never_sleeps(self):
        op = MagicMock(side_effect=RuntimeError("down"))
        with patch("querydispatch.core.retry.time.sleep") as sleep:
            with pytest.raises(RetryExhaustedError):
                with_retry(op, RetryPolicy(max_attempts=1, sleep_seconds=10), MagicMock())
        op.assert_called_once()
        sleep.assert_not_called()

    def test_every_failure_is_logged_with_attempt_index(self):
        op = MagicMock(side_effect=RuntimeError("down"))
        logger = MagicMock()
        with pytest.raises(RetryExhaustedError):
            with_retry(
                op, RetryPolicy(max_attempts=2, sleep_seconds=0), logger, description="probe"
            )
        assert logger.error.call_count == 2
        first, second = logger.error.call_args_list
        assert first.args[1:4] == (1, 2, "probe")
        assert second.args[1:4] == (2, 2, "probe")
        assert "down" in str(second.args)

    def test_non_matching_errors_propagate_unwrapped(self):
        op = MagicMock(side_effect=KeyError("k"))
        with pytest.raises(KeyError):
            with_retry(
                op,
                RetryPolicy(max_attempts=3, sleep_seconds=0),
                MagicMock(),
                retry_on=(RuntimeError,),
            )
        op.assert_called_once()

    def test_default_policy_from_settings(self):
        op = MagicMock(side_effect=RuntimeError("down"))
        with patch("querydispatch.core.models.settings") as s, patch(
            "querydispatch.core.retry.time.sleep"
        ) as sleep:
            s.DISPATCH_MAX_ATTEMPTS = 2
            s.DISPATCH_RETRY_SLEEP_SECONDS = 0.5
            with pytest.raises(RetryExhaustedError):
                with_retry(op, logger=MagicMock())
        assert op.call_count == 2
        sleep.assert_called_once_with(0.5)

    def test_default_logger_records_failures(self, caplog):
        op = _flaky(1)
        with caplog.at_level("ERROR", logger="querydispatch.core.retry"):
            assert with_retry(op, RetryPolicy(max_attempts=2, sleep_seconds=0)) == "ok"
        assert "Attempt 1/2" in caplog.text
        assert "boom 1" in caplog.text


class TestRetryPolicy:
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_sleep(self):
        with pytest.raises(ValueError):
            RetryPolicy(sleep_seconds=-1)

    def test_is_frozen(self):
        policy = RetryPolicy()
        with pytest.raises(ValueError):
            policy.max_attempts = 5  # type: ignore[misc]
