"""Tests for RetryPolicy and call_with_retry()."""

import pytest

from code_sync.errors import StoreError
from code_sync.sync.retry import RetryPolicy, call_with_retry


class _Flaky:
    """Callable that fails *failures* times before returning 'ok'."""

    def __init__(self, failures, transient=True):
        self.failures = failures
        self.transient = transient
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        self.last_args = (args, kwargs)
        if self.calls <= self.failures:
            raise StoreError("boom", transient=self.transient)
        return "ok"


class TestRetryPolicy:
    def test_exponential_delays(self):
        policy = RetryPolicy(base_delay=1.0, max_delay=30.0)
        assert [policy.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_delay_capped(self):
        policy = RetryPolicy(base_delay=10.0, max_delay=15.0)
        assert policy.delay_for(3) == 15.0

    def test_frozen(self):
        with pytest.raises(AttributeError):
            RetryPolicy().max_attempts = 5


class TestCallWithRetry:
    def test_success_first_try(self):
        sleeps = []
        func = _Flaky(0)
        result = call_with_retry(
            func, "a", policy=RetryPolicy(), sleep=sleeps.append, key="v"
        )
        assert result == "ok"
        assert func.last_args == (("a",), {"key": "v"})
        assert sleeps == []

    def test_transient_then_success(self):
        sleeps = []
        func = _Flaky(2)
        result = call_with_retry(
            func, policy=RetryPolicy(max_attempts=3, base_delay=0.1), sleep=sleeps.append
        )
        assert result == "ok"
        assert func.calls == 3
        assert sleeps == [0.1, 0.2]

    def test_exhausted_reraises_last_error(self):
        sleeps = []
        func = _Flaky(5)
        with pytest.raises(StoreError, match="boom"):
            call_with_retry(func, policy=RetryPolicy(max_attempts=3), sleep=sleeps.append)
        assert func.calls == 3
        assert len(sleeps) == 2

    def test_non_transient_not_retried(self):
        sleeps = []
        func = _Flaky(1, transient=False)
        with pytest.raises(StoreError):
            call_with_retry(func, policy=RetryPolicy(max_attempts=5), sleep=sleeps.append)
        assert func.calls == 1
        assert sleeps == []

    def test_other_exceptions_propagate(self):
        def broken():
            raise KeyError("x")

        with pytest.raises(KeyError):
            call_with_retry(broken, policy=RetryPolicy(), sleep=lambda s: None)

    def test_logs_each_retry(self, caplog):
        func = _Flaky(1)
        with caplog.at_level("WARNING", logger="code_sync.sync.retry"):
            call_with_retry(
                func,
                policy=RetryPolicy(),
                sleep=lambda s: None,
                description="upsert a.txt",
            )
        assert "upsert a.txt failed (attempt 1/3)" in caplog.text
