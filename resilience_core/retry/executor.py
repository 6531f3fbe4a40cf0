"""
Retry Executor
==============
Exponential backoff retry for calls to unreliable dependencies.
"""

import asyncio
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from ..classifier import is_retryable, retry_after_seconds
from ..exceptions import RetriesExhausted
from ..metrics import record_retry_attempt
from ..utils import maybe_await
from .delay import calculate_delay
from .models import RetryConfig
from .tracker import AttemptTracker

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _should_retry(config: RetryConfig, exc: Exception, operation: str) -> bool:
    if config.retry_condition is None:
        return is_retryable(exc)
    try:
        return bool(config.retry_condition(exc))
    except Exception as condition_error:
        logger.warning(
            "retry_condition_failed",
            operation=operation,
            error=str(condition_error),
        )
        return False


async def _notify(
    config: RetryConfig, attempt: int, exc: Exception, delay: float, operation: str
) -> None:
    """Run the on_retry observer; its own errors never replace the fault being retried."""
    if config.on_retry is None:
        return
    try:
        await maybe_await(config.on_retry(attempt, exc, delay))
    except Exception as observer_error:
        logger.warning(
            "on_retry_failed",
            operation=operation,
            attempt=attempt,
            error=str(observer_error),
        )


def _next_delay(config: RetryConfig, attempt: int, exc: Exception) -> float:
    delay = calculate_delay(attempt, config)
    if config.honor_retry_after:
        hint = retry_after_seconds(exc)
        if hint is not None:
            delay = min(hint, config.max_delay)
    return delay


async def retry_with_backoff(
    operation: Callable[[], Any],
    config: Optional[RetryConfig] = None,
    *,
    operation_name: Optional[str] = None,
    tracker: Optional[AttemptTracker] = None,
    tracker_key: Optional[str] = None,
) -> Any:
    """
    Execute an operation with exponential backoff retry.

    Args:
        operation: Zero-argument callable, sync or returning an awaitable
        config: Retry policy (defaults to RetryConfig())
        operation_name: Label used in logs and metrics
        tracker: Optional AttemptTracker to mirror attempts and failures into
        tracker_key: Key to record under (defaults to operation_name)

    Returns:
        Result of the operation

    Raises:
        RetriesExhausted: If every attempt failed with a retryable fault
        Exception: The original fault, unchanged, when it is not retryable
    """
    config = config or RetryConfig()
    name = operation_name or getattr(operation, "__name__", "operation")
    key = tracker_key or name
    attempt = 0

    while True:
        if tracker is not None:
            tracker.record_attempt(key)

        try:
            result = await maybe_await(operation())
        except Exception as e:
            if tracker is not None:
                tracker.record_failure(key, e)

            if not _should_retry(config, e, name):
                record_retry_attempt(name, "aborted")
                logger.info(
                    "retry_aborted",
                    operation=name,
                    attempt=attempt,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise

            if attempt >= config.max_retries:
                record_retry_attempt(name, "exhausted")
                logger.error(
                    "retry_exhausted",
                    operation=name,
                    attempts=attempt + 1,
                    error=str(e),
                )
                raise RetriesExhausted(
                    f"Failed after {attempt + 1} attempts: {e}",
                    last_exception=e,
                    attempts=attempt + 1,
                ) from e

            delay = _next_delay(config, attempt, e)
            record_retry_attempt(name, "retry")
            logger.warning(
                "retry_scheduled",
                operation=name,
                attempt=attempt,
                delay=round(delay, 3),
                error=str(e),
            )

            await _notify(config, attempt, e, delay, name)
            await asyncio.sleep(delay)
            attempt += 1
            continue

        record_retry_attempt(name, "success")
        if attempt:
            logger.info("retry_succeeded", operation=name, attempts=attempt + 1)
        return result


def with_retry(
    config: Optional[RetryConfig] = None,
    operation_name: Optional[str] = None,
):
    """
    Decorator for retry with exponential backoff.

    Usage:
        @with_retry(RetryConfig(max_retries=5))
        async def fetch_catalog():
            ...
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            return await retry_with_backoff(
                lambda: func(*args, **kwargs),
                config,
                operation_name=operation_name or func.__name__,
            )
        return wrapper
    return decorator
