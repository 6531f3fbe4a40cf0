"""
Resilience Core Library
=======================
Circuit breakers and retry-with-backoff for calls to unreliable dependencies.
"""

__version__ = "0.1.0"

# Faults
from resilience_core.exceptions import (
    TransportCode,
    ResilienceError,
    ServiceFault,
    TransientNetworkFault,
    TransientServiceFault,
    PermanentRequestFault,
    CircuitOpenError,
    RetriesExhausted,
)

# Classifier
from resilience_core.classifier import (
    FaultKind,
    classify,
    is_retryable,
    retry_after_seconds,
)

# Retry
from resilience_core.retry import (
    RetryConfig,
    calculate_delay,
    retry_with_backoff,
    with_retry,
    AttemptTracker,
)

# Circuit Breaker
from resilience_core.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitState,
    circuit_breaker,
)

# Composition
from resilience_core.composition import (
    call_with_resilience,
    with_circuit_breaker,
)

# Config
from resilience_core.config import (
    DEPENDENCY_PRESETS,
    breaker_config_from_env,
    retry_config_from_env,
    create_registry,
)

__all__ = [
    # Faults
    "TransportCode",
    "ResilienceError",
    "ServiceFault",
    "TransientNetworkFault",
    "TransientServiceFault",
    "PermanentRequestFault",
    "CircuitOpenError",
    "RetriesExhausted",
    # Classifier
    "FaultKind",
    "classify",
    "is_retryable",
    "retry_after_seconds",
    # Retry
    "RetryConfig",
    "calculate_delay",
    "retry_with_backoff",
    "with_retry",
    "AttemptTracker",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerRegistry",
    "CircuitState",
    "circuit_breaker",
    # Composition
    "call_with_resilience",
    "with_circuit_breaker",
    # Config
    "DEPENDENCY_PRESETS",
    "breaker_config_from_env",
    "retry_config_from_env",
    "create_registry",
]
