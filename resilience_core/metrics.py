"""
Resilience Metrics
==================
Prometheus metrics for retry attempts and circuit breaker state.

All metrics live on a dedicated registry so they can be exposed next to a
service's own metrics without name clashes.

Usage:
    from resilience_core.metrics import get_metrics_text

    body, content_type = get_metrics_text()
"""

from typing import Optional, Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    generate_latest,
)

RESILIENCE_REGISTRY = CollectorRegistry()

RETRY_ATTEMPTS = Counter(
    name="resilience_retry_attempts_total",
    documentation="Attempts made by the retry executor",
    labelnames=["operation", "outcome"],
    registry=RESILIENCE_REGISTRY,
)

CIRCUIT_BREAKER_STATE = Gauge(
    name="resilience_circuit_breaker_state",
    documentation="Circuit breaker state (0=closed, 1=half-open, 2=open)",
    labelnames=["service"],
    registry=RESILIENCE_REGISTRY,
)

CIRCUIT_BREAKER_TRANSITIONS = Counter(
    name="resilience_circuit_breaker_transitions_total",
    documentation="Circuit breaker state transitions",
    labelnames=["service", "from_state", "to_state"],
    registry=RESILIENCE_REGISTRY,
)

CIRCUIT_BREAKER_REJECTIONS = Counter(
    name="resilience_circuit_breaker_rejections_total",
    documentation="Calls rejected without invoking the operation",
    labelnames=["service"],
    registry=RESILIENCE_REGISTRY,
)

_STATE_VALUES = {"closed": 0, "half_open": 1, "open": 2}


def record_retry_attempt(operation: Optional[str], outcome: str) -> None:
    """
    Count one retry-executor attempt.

    Args:
        operation: Logical operation name
        outcome: success, retry, exhausted or aborted
    """
    RETRY_ATTEMPTS.labels(operation=operation or "anonymous", outcome=outcome).inc()


def record_circuit_state(service: str, state: str, previous: Optional[str] = None) -> None:
    """Publish a breaker's current state, and the transition if one happened."""
    CIRCUIT_BREAKER_STATE.labels(service=service).set(_STATE_VALUES.get(state, -1))
    if previous is not None and previous != state:
        CIRCUIT_BREAKER_TRANSITIONS.labels(
            service=service, from_state=previous, to_state=state,
        ).inc()


def record_rejection(service: str) -> None:
    CIRCUIT_BREAKER_REJECTIONS.labels(service=service).inc()


def get_metrics_text() -> Tuple[bytes, str]:
    """Render the resilience registry in Prometheus exposition format."""
    return generate_latest(RESILIENCE_REGISTRY), CONTENT_TYPE_LATEST
