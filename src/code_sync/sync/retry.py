"""Bounded retry with exponential backoff for store calls.

Only ``StoreError`` instances flagged ``transient`` are retried; anything
else propagates on the first failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from code_sync.errors import StoreError

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a transient failure.

    Attributes:
        max_attempts: Total attempts including the first (>= 1).
        base_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound for any single delay, in seconds.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0

    def delay_for(self, attempt: int) -> float:
        """Return the delay after failed attempt number *attempt* (1-based)."""
        return min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    policy: RetryPolicy,
    sleep: Callable[[float], None],
    description: str = "store call",
    **kwargs: Any,
) -> T:
    """Call ``func(*args, **kwargs)``, retrying transient ``StoreError``.

    Args:
        func: The store operation.
        policy: Retry limits.
        sleep: Delay primitive (``Clock.sleep``).
        description: Label used in log messages.

    Returns:
        Whatever *func* returns.

    Raises:
        StoreError: The last failure once attempts are exhausted, or the
            first non-transient failure.
    """
    attempt = 1
    while True:
        try:
            return func(*args, **kwargs)
        except StoreError as exc:
            if not exc.transient or attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d): %s -- retrying in %.1fs",
                description,
                attempt,
                policy.max_attempts,
                exc,
                delay,
            )
            sleep(delay)
            attempt += 1
