"""
Structured Logging
==================
structlog configuration for services embedding resilience_core.

Usage:
    from resilience_core.structured_logging import setup_logging, bind_operation_id

    setup_logging(service_name="recipe-api")

    with bind_operation_id("generate-recipe-42"):
        await retry_with_backoff(call_openai, config)
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import structlog

operation_id_var: ContextVar[str] = ContextVar("operation_id", default="")


def setup_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
) -> None:
    """
    Configure stdlib logging and structlog for a service.

    Args:
        service_name: Name bound to every log event
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON (production) instead of console output
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    structlog.contextvars.bind_contextvars(service=service_name)
    structlog.get_logger(__name__).info("logging_configured", level=level.upper())


@contextmanager
def bind_operation_id(operation_id: str) -> Iterator[str]:
    """Attach ``operation_id`` to every log event emitted inside the block."""
    token = operation_id_var.set(operation_id)
    structlog.contextvars.bind_contextvars(operation_id=operation_id)
    try:
        yield operation_id
    finally:
        structlog.contextvars.unbind_contextvars("operation_id")
        operation_id_var.reset(token)
