"""
Circuit Breaker Models
======================
Data models and enums for the circuit breaker pattern.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CircuitState(str, Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for a circuit breaker."""
    failure_threshold: int = 5        # Consecutive failures before opening
    recovery_timeout: float = 60.0    # Seconds to stay open before probing
    success_threshold: int = 2        # Consecutive successes to close from half-open
    half_open_max_calls: int = 1      # Probes allowed in flight while half-open
    excluded_exceptions: tuple = ()   # Exceptions that don't count as failures

    def __post_init__(self):
        if self.failure_threshold < 1 or self.success_threshold < 1:
            raise ValueError("thresholds must be >= 1")
        if self.half_open_max_calls < 1:
            raise ValueError("half_open_max_calls must be >= 1")
        if self.recovery_timeout < 0:
            raise ValueError("recovery_timeout must be non-negative")


@dataclass
class CircuitBreakerState:
    """Runtime state of a circuit breaker."""
    state: CircuitState = CircuitState.CLOSED
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    opened_at: Optional[float] = None
    half_open_calls: int = 0
    generation: int = 0               # Bumped on every transition

    # Metrics
    total_calls: int = 0
    total_failures: int = 0
    total_successes: int = 0
    total_rejections: int = 0
