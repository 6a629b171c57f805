"""Retry logic with exponential backoff for API requests."""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from acai.abort import AbortSignal

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for automatic retry behaviour."""

    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 60.0
    backoff_multiplier: float = 2.0
    jitter: bool = True


def calculate_delay(attempt: int, policy: RetryPolicy) -> float:
    """Seconds to wait before retry number ``attempt`` (0-based).

    ``base_delay * backoff_multiplier ** attempt`` capped at ``max_delay``;
    jitter scales the result by a random factor in [0.5, 1.5].
    """
    delay = min(
        policy.base_delay * (policy.backoff_multiplier ** attempt),
        policy.max_delay,
    )
    if policy.jitter:
        delay *= random.uniform(0.5, 1.5)
    return delay


def with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    deadline: float | None = None,
    abort: AbortSignal | None = None,
) -> T:
    """Execute *fn*, retrying retryable errors according to *policy*.

    Errors without a ``retryable`` attribute are never retried. ``deadline``
    is a ``time.monotonic()`` value: a backoff that would end past it is not
    taken. An aborted ``abort`` signal stops retrying and cuts a backoff short.
    In both cases the last error is raised.
    """
    for attempt in range(policy.max_retries + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt >= policy.max_retries:
                raise
            if not getattr(exc, "retryable", False):
                raise
            if abort is not None and abort.aborted:
                raise

            retry_after: float | None = getattr(exc, "retry_after", None)
            if retry_after is not None and retry_after > policy.max_delay:
                raise
            delay = retry_after if retry_after is not None else calculate_delay(attempt, policy)

            if deadline is not None and time.monotonic() + delay >= deadline:
                logger.warning("Request failed (%s); a %.1fs backoff would pass the deadline", exc, delay)
                raise

            logger.warning("Request failed (%s), retrying in %.1fs", exc, delay)
            if abort is None:
                sleep(delay)
            elif abort.wait(delay):
                raise

    raise AssertionError("unreachable")  # pragma: no cover
