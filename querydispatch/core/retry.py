"""
Bounded retry for any zero-argument operation.

Used unchanged for connecting, fetching and writing: it knows nothing about
databases. Every failed attempt is logged before the next attempt or the final
RetryExhaustedError, so transient failures leave a trail even when a later
attempt succeeds.
"""

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from querydispatch.core.exceptions import RetryExhaustedError
from querydispatch.core.models import RetryPolicy

T = TypeVar("T")

_log = logging.getLogger(__name__)


def with_retry(
    operation: Callable[[], T],
    policy: RetryPolicy | None = None,
    logger: Any = None,
    *,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    description: str | None = None,
) -> T:
    """
    Call ``operation`` until it succeeds or ``policy.max_attempts`` is reached.

    - policy: defaults to RetryPolicy.from_settings().
    - logger: anything with ``info`` and ``error`` (logging.Logger by default).
    - retry_on: exceptions that count as a failed attempt; others propagate as is.
    - description: label for log lines (defaults to the operation's name).

    Sleeps ``policy.sleep_seconds`` between attempts, never after the last one.
    Raises RetryExhaustedError carrying the last error once attempts run out.
    """
    policy = policy or RetryPolicy.from_settings()
    log = logger or _log
    label = description or getattr(operation, "__name__", repr(operation))

    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = operation()
        except retry_on as e:
            log.error(
                "Attempt %d/%d of %s failed: %s: %s",
                attempt,
                policy.max_attempts,
                label,
                type(e).__name__,
                e,
            )
            if attempt == policy.max_attempts:
                raise RetryExhaustedError(e, attempt) from e
            if policy.sleep_seconds > 0:
                time.sleep(policy.sleep_seconds)
            continue
        if attempt > 1:
            log.info("%s succeeded on attempt %d/%d", label, attempt, policy.max_attempts)
        return result

    # max_attempts >= 1 is enforced by RetryPolicy
    raise AssertionError("unreachable")
