"""
Resilience Exceptions
=====================
Fault taxonomy shared by the retry executor, the circuit breaker and the
service wrappers that produce structured faults.
"""

from enum import Enum
from typing import Any, Optional


class TransportCode(str, Enum):
    """Transport-level error codes a fault may carry."""
    ECONNREFUSED = "ECONNREFUSED"
    ECONNRESET = "ECONNRESET"
    ENOTFOUND = "ENOTFOUND"
    EHOSTUNREACH = "EHOSTUNREACH"
    ENETUNREACH = "ENETUNREACH"
    ETIMEDOUT = "ETIMEDOUT"


CONNECTION_CODES = frozenset({
    TransportCode.ECONNREFUSED,
    TransportCode.ECONNRESET,
    TransportCode.ENOTFOUND,
    TransportCode.EHOSTUNREACH,
    TransportCode.ENETUNREACH,
})

TIMEOUT_CODES = frozenset({TransportCode.ETIMEDOUT})


class ResilienceError(Exception):
    """Base exception for everything raised by resilience_core."""


class ServiceFault(ResilienceError):
    """A failure reported by an external dependency, with a structured signal."""

    def __init__(
        self,
        message: str,
        service: str = "unknown",
        status_code: Optional[int] = None,
        code: Optional[TransportCode] = None,
        retry_after: Optional[float] = None,
        details: Any = None,
    ):
        self.message = message
        self.service = service
        self.status_code = status_code
        self.code = code
        self.retry_after = retry_after
        self.details = details
        signal = code.value if code is not None else status_code
        super().__init__(f"[{service}] {message} (Signal: {signal})")


class TransientNetworkFault(ServiceFault):
    """Connection-level failure: refused, reset, unresolvable or timed out."""
    pass


class TransientServiceFault(ServiceFault):
    """The dependency answered with 429 or a 5xx status."""
    pass


class PermanentRequestFault(ServiceFault):
    """The dependency rejected the request itself (4xx other than 429)."""
    pass


class CircuitOpenError(ResilienceError):
    """Raised when a breaker rejects a call without invoking the operation."""

    def __init__(self, service_name: str, state: Any, retry_after: float):
        self.service_name = service_name
        self.state = state
        self.retry_after = retry_after
        state_label = getattr(state, "value", state)
        super().__init__(
            f"Circuit breaker for '{service_name}' is {state_label}. "
            f"Retry after {retry_after:.1f}s"
        )


class RetriesExhausted(ResilienceError):
    """Raised when every permitted attempt failed with a retryable fault."""

    def __init__(self, message: str, last_exception: BaseException, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts
