"""
Retry Models
============
Immutable retry policy configuration.
"""

from dataclasses import dataclass, replace as dataclass_replace
from typing import Any, Callable, Optional


RetryCondition = Callable[[BaseException], bool]
RetryObserver = Callable[[int, BaseException, float], Any]


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for a retry policy. Durations are in seconds."""
    max_retries: int = 3                              # Total attempts = max_retries + 1
    initial_delay: float = 1.0                        # Wait after attempt 0
    max_delay: float = 30.0                           # Ceiling before jitter
    backoff_multiplier: float = 2.0
    jitter_enabled: bool = True
    jitter_range: float = 1.0                         # Upper bound of additive jitter
    retry_condition: Optional[RetryCondition] = None  # Overrides the default classifier
    on_retry: Optional[RetryObserver] = None          # (attempt, fault, delay), sync or async
    honor_retry_after: bool = False                   # Prefer a server Retry-After hint

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay < 0 or self.max_delay < 0 or self.jitter_range < 0:
            raise ValueError("delays must be non-negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def replace(self, **changes) -> "RetryConfig":
        """Return a copy with the given fields changed."""
        return dataclass_replace(self, **changes)
