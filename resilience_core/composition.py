"""
Composition
===========
Nesting the retry executor and a circuit breaker, in either order.

Retry outside the breaker (the default): every attempt passes through the
breaker, so failures accumulate toward tripping it and a CircuitOpenError ends
the retry loop at once, since the classifier treats it as terminal.

Breaker outside the retry: the whole retry sequence counts as a single call,
so only an exhausted or aborted sequence counts as one breaker failure.
"""

from typing import Any, Callable, Optional

from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitBreakerRegistry
from .retry import RetryConfig, retry_with_backoff


async def call_with_resilience(
    operation: Callable[[], Any],
    *,
    breaker: CircuitBreaker,
    retry_config: Optional[RetryConfig] = None,
    retry_outside_breaker: bool = True,
    operation_name: Optional[str] = None,
) -> Any:
    """
    Run ``operation`` under both a retry policy and a circuit breaker.

    Args:
        operation: Zero-argument callable, sync or returning an awaitable
        breaker: Breaker guarding the dependency
        retry_config: Retry policy (defaults to RetryConfig())
        retry_outside_breaker: Nesting order, see module docstring
        operation_name: Label for logs and metrics (defaults to the breaker name)
    """
    name = operation_name or breaker.name

    if retry_outside_breaker:
        return await retry_with_backoff(
            lambda: breaker.execute(operation),
            retry_config,
            operation_name=name,
        )

    return await breaker.execute(
        lambda: retry_with_backoff(operation, retry_config, operation_name=name)
    )


async def with_circuit_breaker(
    registry: CircuitBreakerRegistry,
    name: str,
    operation: Callable[[], Any],
    config: Optional[CircuitBreakerConfig] = None,
) -> Any:
    """Run ``operation`` once under the registry's breaker for ``name``."""
    return await registry.get_or_create(name, config).execute(operation)
