"""Tests for rate-limit backoff."""

import pytest

from zirkel_inventory.core.config import RetryPolicy
from zirkel_inventory.core.errors import ErrorKind, RemoteServiceError
from zirkel_inventory.core.retry import build_retrying, call_with_backoff, is_rate_limited


def flaky(outcomes):
    """Callable raising/returning the queued outcomes in order."""
    calls = []

    def func(*args, **kwargs):
        calls.append((args, kwargs))
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    func.calls = calls
    return func


def rate_limited():
    return RemoteServiceError("quota", kind=ErrorKind.RATE_LIMITED, status_code=429)


def test_is_rate_limited():
    assert is_rate_limited(rate_limited())
    assert not is_rate_limited(RemoteServiceError("down", kind=ErrorKind.TRANSIENT))
    assert not is_rate_limited(ValueError("x"))


def test_retries_rate_limited_until_success(fast_retry):
    """Rate-limited calls should be retried and the eventual result returned."""
    func = flaky([rate_limited(), rate_limited(), "ok"])
    assert call_with_backoff(func, "a", policy=fast_retry, b=1) == "ok"
    assert len(func.calls) == 3
    assert func.calls[0] == (("a",), {"b": 1})


def test_gives_up_after_max_attempts(fast_retry):
    """The last rate-limit error should propagate once attempts run out."""
    func = flaky([rate_limited() for _ in range(5)])
    with pytest.raises(RemoteServiceError) as exc_info:
        call_with_backoff(func, policy=fast_retry)
    assert exc_info.value.is_rate_limited
    assert len(func.calls) == fast_retry.max_attempts


def test_other_errors_are_not_retried(fast_retry):
    func = flaky([RemoteServiceError("bad", kind=ErrorKind.PERMANENT), "never"])
    with pytest.raises(RemoteServiceError):
        call_with_backoff(func, policy=fast_retry)
    assert len(func.calls) == 1


def test_transient_errors_are_not_retried(fast_retry):
    func = flaky([RemoteServiceError("503", kind=ErrorKind.TRANSIENT), "never"])
    with pytest.raises(RemoteServiceError):
        call_with_backoff(func, policy=fast_retry)
    assert len(func.calls) == 1


def test_backoff_sleeps_grow_exponentially():
    """Sleeps should double per attempt up to the cap."""
    sleeps = []
    policy = RetryPolicy(max_attempts=5, base_delay=1, max_delay=4, jitter=0)
    func = flaky([rate_limited() for _ in range(4)] + ["ok"])

    assert build_retrying(policy, sleep=sleeps.append)(func) == "ok"
    assert sleeps == [1, 2, 4, 4]
