"""
Circuit Breaker Registry
========================
Registry owning one circuit breaker per dependency name.

Create one registry at process startup and hand it to the code that calls
external dependencies; every lookup by the same name returns the same breaker.
"""

import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from .breaker import CircuitBreaker
from .models import CircuitBreakerConfig

logger = structlog.get_logger(__name__)


class CircuitBreakerRegistry:
    """
    Named, lazily populated collection of circuit breakers.

    Args:
        defaults: Per-name configs used when a breaker is first created
        default_config: Config for names without an entry in ``defaults``
        clock: Time source passed to every breaker
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, CircuitBreakerConfig]] = None,
        default_config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._defaults: Dict[str, CircuitBreakerConfig] = dict(defaults or {})
        self._default_config = default_config or CircuitBreakerConfig()
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> CircuitBreaker:
        """
        Get or create the circuit breaker for a dependency.

        Args:
            name: Name of the downstream dependency
            config: Optional configuration (only used if creating a new breaker)

        Returns:
            CircuitBreaker instance
        """
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is None:
                breaker = CircuitBreaker(
                    name=name,
                    config=config or self._defaults.get(name, self._default_config),
                    clock=self._clock,
                )
                self._breakers[name] = breaker
                logger.debug("circuit_registered", service=name)
                return breaker

        if config is not None and config != breaker.config:
            logger.warning("circuit_config_ignored", service=name)
        return breaker

    def get(self, name: str) -> Optional[CircuitBreaker]:
        with self._lock:
            return self._breakers.get(name)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._breakers)

    def list(self) -> List[CircuitBreaker]:
        """All registered breakers, ordered by name."""
        with self._lock:
            return [self._breakers[name] for name in sorted(self._breakers)]

    def metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get metrics for all registered circuit breakers."""
        return {breaker.name: breaker.metrics for breaker in self.list()}

    def reset(self, name: str) -> bool:
        """Reset a circuit breaker to closed state. Returns False for unknown names."""
        breaker = self.get(name)
        if breaker is None:
            return False
        breaker.reset()
        return True

    def reset_all(self) -> None:
        """Reset all circuit breakers to closed state."""
        for breaker in self.list():
            breaker.reset()

    def remove(self, name: str) -> bool:
        """Drop a breaker entirely; the next lookup creates a fresh one."""
        with self._lock:
            return self._breakers.pop(name, None) is not None

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._breakers

    def __len__(self) -> int:
        with self._lock:
            return len(self._breakers)

    def __bool__(self) -> bool:
        # An empty registry is still a usable registry
        return True
