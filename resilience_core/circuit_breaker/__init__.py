"""
Circuit Breaker
===============
Async circuit breaker for calls to external dependencies.

Circuit breaker pattern stops calling a dependency that is known to be
unhealthy. States:

1. CLOSED: Normal operation, requests flow through
2. OPEN: Dependency is failing, requests are immediately rejected
3. HALF-OPEN: Probing whether the dependency has recovered

Usage:
    from resilience_core.circuit_breaker import CircuitBreakerRegistry

    registry = CircuitBreakerRegistry()
    breaker = registry.get_or_create("document-parser")

    result = await breaker.execute(lambda: parser.parse(upload))

    # Or with context manager
    async with breaker.protect():
        result = await parser.parse(upload)
"""

from ..exceptions import CircuitOpenError
from .models import (
    CircuitState,
    CircuitBreakerConfig,
    CircuitBreakerState,
)
from .breaker import CircuitBreaker
from .registry import CircuitBreakerRegistry
from .decorators import circuit_breaker

__all__ = [
    # Models
    "CircuitState",
    "CircuitOpenError",
    "CircuitBreakerConfig",
    "CircuitBreakerState",
    # Breaker
    "CircuitBreaker",
    # Registry
    "CircuitBreakerRegistry",
    # Decorator
    "circuit_breaker",
]
