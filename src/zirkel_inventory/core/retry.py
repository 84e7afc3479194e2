"""
Exponential backoff for rate-limited remote calls.

Wraps a callable in a tenacity ``Retrying`` loop that only re-attempts
``RemoteServiceError`` instances classified as ``ErrorKind.RATE_LIMITED``.
Any other exception propagates on the first attempt; once the attempt budget
is spent the last rate-limit error is re-raised for the caller to escalate.
"""

import logging
import time
from typing import Any, Callable, Optional, TypeVar

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from zirkel_inventory.core.config import DEFAULT_RETRY_POLICY, RetryPolicy
from zirkel_inventory.core.errors import RemoteServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limited(exc: BaseException) -> bool:
    """Return True for errors a port classified as rate-limited."""
    return isinstance(exc, RemoteServiceError) and exc.is_rate_limited


def build_retrying(
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """
    Build the tenacity controller for a retry policy.

    Args:
        policy: Attempt budget and delays (defaults to environment settings)
        sleep: Sleep function, replaceable in tests

    Returns:
        Configured Retrying instance
    """
    policy = policy or DEFAULT_RETRY_POLICY
    return Retrying(
        stop=stop_after_attempt(max(1, policy.max_attempts)),
        wait=wait_exponential(multiplier=policy.base_delay, max=policy.max_delay)
        + wait_random(0, policy.jitter),
        retry=retry_if_exception(is_rate_limited),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )


def call_with_backoff(
    func: Callable[..., T],
    *args: Any,
    policy: Optional[RetryPolicy] = None,
    **kwargs: Any,
) -> T:
    """
    Call ``func(*args, **kwargs)``, retrying while it raises rate-limit errors.

    Raises:
        RemoteServiceError: The last rate-limit error once attempts are exhausted,
            or any non-rate-limit error immediately
    """
    return build_retrying(policy)(func, *args, **kwargs)
