"""Tests for the connection retry policy."""

from unittest.mock import Mock

import pytest

from rowflow.connections.retry import (
    RetryConfig,
    RetryExhaustedError,
    RetryHandler,
    linear_delay,
    no_delay,
)


class TestRetryConfig:
    def test_defaults(self):
        config = RetryConfig()
        assert config.max_attempts == 3
        assert config.delay is linear_delay

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryConfig(max_attempts=0)

    def test_linear_delay(self):
        assert [linear_delay(a) for a in (1, 2, 3)] == [1.0, 2.0, 3.0]
        assert linear_delay(2, step=0.5) == 1.0
        assert no_delay(5) == 0.0


class TestRetryHandler:
    def test_success_after_failures(self):
        sleep = Mock()
        operation = Mock(side_effect=[ConnectionError("down"), ConnectionError("down"), "ok"])
        handler = RetryHandler(RetryConfig(max_attempts=5, sleep=sleep))

        assert handler.execute_with_retry(operation) == "ok"
        assert operation.call_count == 3
        assert handler.attempts == 3
        assert handler.delays == [1.0, 2.0]
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]

    def test_delays_do_not_decrease(self):
        operation = Mock(side_effect=[OSError()] * 4 + ["ok"])
        handler = RetryHandler(RetryConfig(max_attempts=5, sleep=Mock()))
        handler.execute_with_retry(operation)
        assert handler.delays == sorted(handler.delays)

    def test_exhausted_after_max_attempts(self):
        sleep = Mock()
        errors = [ConnectionError(f"fail {i}") for i in range(3)]
        operation = Mock(side_effect=errors)
        handler = RetryHandler(RetryConfig(max_attempts=3, sleep=sleep))

        with pytest.raises(RetryExhaustedError) as exc_info:
            handler.execute_with_retry(operation)

        assert operation.call_count == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_exception is errors[-1]
        # no sleep after the final attempt
        assert sleep.call_count == 2

    def test_non_retryable_exception_is_raised_unchanged(self):
        operation = Mock(side_effect=KeyError("bad"))
        config = RetryConfig(max_attempts=3, sleep=Mock(), retry_on_exceptions=(ConnectionError,))
        handler = RetryHandler(config)

        with pytest.raises(KeyError):
            handler.execute_with_retry(operation)
        assert operation.call_count == 1

    def test_zero_delay_does_not_sleep(self):
        sleep = Mock()
        operation = Mock(side_effect=[OSError(), "ok"])
        RetryHandler(RetryConfig(delay=no_delay, sleep=sleep)).execute_with_retry(operation)
        sleep.assert_not_called()

    def test_should_retry(self):
        handler = RetryHandler(RetryConfig(max_attempts=3, retry_on_exceptions=(ConnectionError,)))
        assert handler.should_retry(ConnectionError(), 1)
        assert not handler.should_retry(ConnectionError(), 3)
        assert not handler.should_retry(ValueError(), 1)
