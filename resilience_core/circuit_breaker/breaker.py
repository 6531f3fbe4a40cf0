"""
Circuit Breaker Core
====================
The CircuitBreaker state machine guarding a single dependency.
"""

import threading
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, NamedTuple, Optional

import structlog

from ..exceptions import CircuitOpenError
from ..metrics import record_circuit_state, record_rejection
from ..utils import maybe_await
from .models import CircuitBreakerConfig, CircuitBreakerState, CircuitState

logger = structlog.get_logger(__name__)


class _Admission(NamedTuple):
    """Handed out when a call is admitted; ties its outcome to a state generation."""
    generation: int
    probe: bool


class CircuitBreaker:
    """
    Async-compatible circuit breaker.

    State changes happen under a lock that is never held across an await, so a
    breaker can be shared by every coroutine (and thread) calling a dependency.
    Outcomes of calls admitted before the most recent transition are counted in
    the totals but do not move the state machine.

    Example:
        breaker = CircuitBreaker("openai")

        try:
            result = await breaker.execute(lambda: client.complete(prompt))
        except CircuitOpenError:
            return fallback_value
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitBreakerState()
        self._lock = threading.Lock()
        record_circuit_state(self.name, CircuitState.CLOSED.value)

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state.state

    @property
    def metrics(self) -> Dict[str, Any]:
        """Get circuit breaker metrics."""
        with self._lock:
            s = self._state
            return {
                "name": self.name,
                "state": s.state.value,
                "consecutive_failures": s.consecutive_failures,
                "consecutive_successes": s.consecutive_successes,
                "opened_at": s.opened_at,
                "retry_after": self._retry_after(),
                "half_open_calls": s.half_open_calls,
                "total_calls": s.total_calls,
                "total_failures": s.total_failures,
                "total_successes": s.total_successes,
                "total_rejections": s.total_rejections,
                "failure_threshold": self.config.failure_threshold,
                "success_threshold": self.config.success_threshold,
                "recovery_timeout": self.config.recovery_timeout,
            }

    def _retry_after(self) -> float:
        s = self._state
        if s.state != CircuitState.OPEN or s.opened_at is None:
            return 0.0
        return max(0.0, self.config.recovery_timeout - (self._clock() - s.opened_at))

    def _transition(self, new_state: CircuitState) -> None:
        """Move to ``new_state``. Caller holds the lock."""
        s = self._state
        previous = s.state
        s.state = new_state
        s.generation += 1
        s.half_open_calls = 0
        s.consecutive_successes = 0

        if new_state == CircuitState.OPEN:
            s.opened_at = self._clock()
            logger.warning(
                "circuit_opened",
                service=self.name,
                previous=previous.value,
                failures=s.consecutive_failures,
            )
        elif new_state == CircuitState.HALF_OPEN:
            logger.info("circuit_half_open", service=self.name)
        else:
            s.consecutive_failures = 0
            s.opened_at = None
            logger.info("circuit_closed", service=self.name)

        record_circuit_state(self.name, new_state.value, previous.value)

    def _admit(self) -> _Admission:
        """Admit a call or raise CircuitOpenError without invoking anything."""
        with self._lock:
            s = self._state

            if s.state == CircuitState.OPEN:
                elapsed = self._clock() - (s.opened_at or 0.0)
                if elapsed >= self.config.recovery_timeout:
                    self._transition(CircuitState.HALF_OPEN)

            if s.state == CircuitState.CLOSED:
                return _Admission(s.generation, probe=False)

            if (
                s.state == CircuitState.HALF_OPEN
                and s.half_open_calls < self.config.half_open_max_calls
            ):
                s.half_open_calls += 1
                return _Admission(s.generation, probe=True)

            s.total_rejections += 1
            rejected_state = s.state
            retry_after = self._retry_after()

        record_rejection(self.name)
        logger.debug("circuit_rejected", service=self.name, state=rejected_state.value)
        raise CircuitOpenError(self.name, rejected_state, retry_after)

    def _record_success(self, admission: _Admission) -> None:
        with self._lock:
            s = self._state
            s.total_calls += 1
            s.total_successes += 1
            if admission.generation != s.generation:
                return

            if s.state == CircuitState.CLOSED:
                s.consecutive_failures = 0
            elif s.state == CircuitState.HALF_OPEN:
                s.half_open_calls = max(0, s.half_open_calls - 1)
                s.consecutive_successes += 1
                if s.consecutive_successes >= self.config.success_threshold:
                    self._transition(CircuitState.CLOSED)

    def _record_failure(self, admission: _Admission, exc: Exception) -> None:
        if isinstance(exc, self.config.excluded_exceptions):
            self._release(admission)
            return

        with self._lock:
            s = self._state
            s.total_calls += 1
            s.total_failures += 1
            if admission.generation != s.generation:
                return

            if s.state == CircuitState.CLOSED:
                s.consecutive_failures += 1
                if s.consecutive_failures >= self.config.failure_threshold:
                    self._transition(CircuitState.OPEN)
            elif s.state == CircuitState.HALF_OPEN:
                logger.warning("circuit_probe_failed", service=self.name, error=str(exc))
                self._transition(CircuitState.OPEN)

    def _release(self, admission: _Admission) -> None:
        """Give back a half-open slot without counting an outcome."""
        with self._lock:
            s = self._state
            if (
                admission.probe
                and admission.generation == s.generation
                and s.state == CircuitState.HALF_OPEN
            ):
                s.half_open_calls = max(0, s.half_open_calls - 1)

    async def execute(
        self,
        operation: Callable[[], Any],
        fallback: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """
        Execute an operation with circuit breaker protection.

        Args:
            operation: Zero-argument callable, sync or returning an awaitable
            fallback: Called instead of raising when the circuit rejects the call

        Returns:
            Result of operation (or of fallback when rejected)

        Raises:
            CircuitOpenError: If the circuit rejects the call and no fallback is given
        """
        try:
            admission = self._admit()
        except CircuitOpenError:
            if fallback is None:
                raise
            logger.debug("circuit_fallback", service=self.name)
            return await maybe_await(fallback())

        try:
            result = await maybe_await(operation())
        except Exception as e:
            self._record_failure(admission, e)
            raise
        except BaseException:
            # Cancellation and interpreter exits give the slot back uncounted
            self._release(admission)
            raise

        self._record_success(admission)
        return result

    @asynccontextmanager
    async def protect(self) -> AsyncIterator["CircuitBreaker"]:
        """
        Guard a block of code instead of a callable.

        Usage:
            async with breaker.protect():
                response = await client.get("/v1/products")
        """
        admission = self._admit()
        try:
            yield self
        except Exception as e:
            self._record_failure(admission, e)
            raise
        except BaseException:
            # Cancellation and interpreter exits give the slot back uncounted
            self._release(admission)
            raise
        self._record_success(admission)

    def reset(self) -> None:
        """Force the breaker back to CLOSED with zero counters."""
        with self._lock:
            previous = self._state.state
            self._state = CircuitBreakerState(generation=self._state.generation + 1)
        record_circuit_state(self.name, CircuitState.CLOSED.value, previous.value)
        logger.info("circuit_reset", service=self.name, previous=previous.value)
