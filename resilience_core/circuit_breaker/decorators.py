"""
Circuit Breaker Decorator
=========================
Decorator for wrapping async functions with circuit breaker protection.
"""

from functools import wraps
from typing import Awaitable, Callable, Optional, TypeVar

from .models import CircuitBreakerConfig
from .registry import CircuitBreakerRegistry

T = TypeVar("T")


def circuit_breaker(
    registry: CircuitBreakerRegistry,
    service_name: str,
    config: Optional[CircuitBreakerConfig] = None,
    fallback: Optional[Callable[[], Awaitable[T]]] = None,
):
    """
    Decorator to wrap async functions with a named circuit breaker.

    Example:
        @circuit_breaker(registry, "openai")
        async def complete(prompt: str):
            return await openai_client.complete(prompt)

        @circuit_breaker(registry, "instacart", fallback=lambda: {"status": "queued"})
        async def create_shopping_list(items: list):
            return await instacart_client.create_list(items)
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        breaker = registry.get_or_create(service_name, config)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await breaker.execute(
                lambda: func(*args, **kwargs),
                fallback=fallback,
            )

        wrapper.breaker = breaker
        return wrapper

    return decorator
