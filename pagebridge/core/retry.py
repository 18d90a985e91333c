"""Backoff helpers shared by clipboard writes, bridge waits and injection retries."""

from __future__ import annotations

import random

MAX_RETRY_DELAY = 10.0  # Maximum delay between retries in seconds
DEFAULT_RETRY_BACKOFF = 2.0  # Exponential backoff multiplier


def backoff_delay(
    attempt: int,
    base: float,
    multiplier: float = DEFAULT_RETRY_BACKOFF,
    max_delay: float = MAX_RETRY_DELAY,
    jitter: float = 0.0,
) -> float:
    """Calculate delay for retry with exponential backoff.

    Args:
        attempt: The current attempt number (0-indexed).
        base: Delay before the first retry, in seconds.
        multiplier: Growth factor per attempt.
        max_delay: Upper bound on the returned delay.
        jitter: Maximum random seconds added on top (0 disables jitter).

    Returns:
        Delay in seconds before next retry.
    """
    delay = base * (multiplier ** attempt)
    if jitter > 0:
        delay += random.uniform(0, jitter)
    return min(delay, max_delay)
