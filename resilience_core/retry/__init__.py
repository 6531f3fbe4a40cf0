"""
Retry Logic with Exponential Backoff
=====================================
Retry executor, delay calculation and attempt bookkeeping for transient failures.
"""

from .models import RetryConfig
from .delay import calculate_delay
from .executor import retry_with_backoff, with_retry
from .tracker import AttemptTracker, AttemptTrackerEntry

__all__ = [
    # Config
    "RetryConfig",
    # Backoff
    "calculate_delay",
    "retry_with_backoff",
    "with_retry",
    # Tracker
    "AttemptTracker",
    "AttemptTrackerEntry",
]
