"""
Resilience Admin Router
=======================
Operator endpoints to inspect and reset circuit breakers and attempt history.
"""

from typing import Dict, List, Optional

import structlog
from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel

from .circuit_breaker import CircuitBreaker, CircuitBreakerRegistry, CircuitState
from .metrics import get_metrics_text
from .retry import AttemptTracker

logger = structlog.get_logger(__name__)


class BreakerHealth(BaseModel):
    name: str
    state: CircuitState
    consecutive_failures: int
    consecutive_successes: int
    retry_after: float
    total_calls: int
    total_failures: int
    total_successes: int
    total_rejections: int
    failure_threshold: int
    success_threshold: int
    recovery_timeout: float


class FailureSummary(BaseModel):
    type: str
    message: str


class AttemptHistory(BaseModel):
    key: str
    attempts: int
    failures: List[FailureSummary]


def _breaker_health(breaker: CircuitBreaker) -> BreakerHealth:
    metrics = breaker.metrics
    return BreakerHealth(**{name: metrics[name] for name in BreakerHealth.model_fields})


def create_admin_router(
    registry: CircuitBreakerRegistry,
    tracker: Optional[AttemptTracker] = None,
    prefix: str = "/resilience",
) -> APIRouter:
    """
    Create the admin router.

    Args:
        registry: Breaker registry to expose
        tracker: Attempt tracker to expose (attempt endpoints return 404 without one)
        prefix: URL prefix for every route

    Returns:
        FastAPI router with breaker, attempt and metrics endpoints
    """
    router = APIRouter(prefix=prefix, tags=["Resilience"])

    def _require_breaker(name: str) -> CircuitBreaker:
        breaker = registry.get(name)
        if breaker is None:
            raise HTTPException(status_code=404, detail=f"Unknown circuit breaker '{name}'")
        return breaker

    def _require_tracker() -> AttemptTracker:
        if tracker is None:
            raise HTTPException(status_code=404, detail="Attempt tracking is not enabled")
        return tracker

    @router.get("/breakers", response_model=List[BreakerHealth])
    async def list_breakers() -> List[BreakerHealth]:
        return [_breaker_health(breaker) for breaker in registry.list()]

    @router.post("/breakers/reset")
    async def reset_all_breakers() -> Dict[str, int]:
        registry.reset_all()
        logger.info("admin_reset_all_breakers", count=len(registry))
        return {"reset": len(registry)}

    @router.get("/breakers/{name}", response_model=BreakerHealth)
    async def get_breaker(name: str) -> BreakerHealth:
        return _breaker_health(_require_breaker(name))

    @router.post("/breakers/{name}/reset", response_model=BreakerHealth)
    async def reset_breaker(name: str) -> BreakerHealth:
        breaker = _require_breaker(name)
        breaker.reset()
        logger.info("admin_reset_breaker", service=name)
        return _breaker_health(breaker)

    @router.get("/attempts", response_model=List[str])
    async def list_attempt_keys() -> List[str]:
        return _require_tracker().keys()

    @router.get("/attempts/{key}", response_model=AttemptHistory)
    async def get_attempts(key: str) -> AttemptHistory:
        entry = _require_tracker().snapshot(key)
        return AttemptHistory(
            key=key,
            attempts=entry.attempts,
            failures=[
                FailureSummary(type=type(fault).__name__, message=str(fault))
                for fault in entry.failures
            ],
        )

    @router.delete("/attempts/{key}", status_code=204)
    async def reset_attempts(key: str) -> Response:
        _require_tracker().reset(key)
        return Response(status_code=204)

    @router.delete("/attempts", status_code=204)
    async def clear_attempts() -> Response:
        _require_tracker().clear()
        return Response(status_code=204)

    @router.get("/metrics")
    async def metrics() -> Response:
        body, content_type = get_metrics_text()
        return Response(content=body, media_type=content_type)

    return router
