"""
Retry Delay
===========
Exponential backoff delay calculation.
"""

import random
from typing import Callable

from .models import RetryConfig


def calculate_delay(
    attempt: int,
    config: RetryConfig,
    rand: Callable[[], float] = random.random,
) -> float:
    """
    Compute the wait before the next attempt.

    ``initial_delay * backoff_multiplier ** attempt`` capped at ``max_delay``,
    plus a random amount in ``[0, jitter_range)`` when jitter is enabled. The
    cap is applied before jitter, so jitter only ever lengthens the wait.

    Args:
        attempt: Zero-based index of the attempt that just failed
        config: Retry configuration
        rand: Source of uniform values in [0, 1)

    Returns:
        Delay in seconds
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")

    try:
        base = config.initial_delay * (config.backoff_multiplier ** attempt)
    except OverflowError:
        base = config.max_delay

    delay = min(base, config.max_delay)

    if config.jitter_enabled and config.jitter_range > 0:
        delay += rand() * config.jitter_range

    return delay
