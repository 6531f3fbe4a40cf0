"""
Resilience Configuration
========================
Environment-driven defaults and per-dependency breaker presets.

Environment variables:
    RESILIENCE_MAX_RETRIES            (default 3)
    RESILIENCE_INITIAL_DELAY          seconds (default 1.0)
    RESILIENCE_MAX_DELAY              seconds (default 30.0)
    RESILIENCE_BACKOFF_MULTIPLIER     (default 2.0)
    RESILIENCE_JITTER_ENABLED         true/false (default true)
    RESILIENCE_JITTER_RANGE           seconds (default 1.0)
    RESILIENCE_FAILURE_THRESHOLD      (default 5)
    RESILIENCE_RECOVERY_TIMEOUT       seconds (default 60.0)
    RESILIENCE_SUCCESS_THRESHOLD      (default 2)
    RESILIENCE_HALF_OPEN_MAX_CALLS    (default 1)
"""

import os
from typing import Dict, Mapping, Optional

from .circuit_breaker import CircuitBreakerConfig, CircuitBreakerRegistry
from .retry import RetryConfig

ENV_PREFIX = "RESILIENCE_"

# Guarded dependencies
OPENAI = "openai"
INSTACART = "instacart"
DOCUMENT_PARSER = "document-parser"
OBJECT_STORAGE = "object-storage"

DEPENDENCY_PRESETS: Dict[str, CircuitBreakerConfig] = {
    # Completion API: slow calls, long cooldown
    OPENAI: CircuitBreakerConfig(failure_threshold=5, recovery_timeout=60.0, success_threshold=2),
    # Catalog/ordering service rate-limits aggressively
    INSTACART: CircuitBreakerConfig(failure_threshold=3, recovery_timeout=30.0, success_threshold=2),
    DOCUMENT_PARSER: CircuitBreakerConfig(failure_threshold=5, recovery_timeout=30.0, success_threshold=1),
    OBJECT_STORAGE: CircuitBreakerConfig(failure_threshold=5, recovery_timeout=15.0, success_threshold=1),
}


def _env(environ: Mapping[str, str], name: str, default: str) -> str:
    return environ.get(f"{ENV_PREFIX}{name}", default)


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env(environ, name, "true" if default else "false")
    return raw.strip().lower() in ("1", "true", "yes", "on")


def retry_config_from_env(environ: Optional[Mapping[str, str]] = None, **overrides) -> RetryConfig:
    """Build a RetryConfig from RESILIENCE_* variables; keyword overrides win."""
    environ = os.environ if environ is None else environ
    values = {
        "max_retries": int(_env(environ, "MAX_RETRIES", "3")),
        "initial_delay": float(_env(environ, "INITIAL_DELAY", "1.0")),
        "max_delay": float(_env(environ, "MAX_DELAY", "30.0")),
        "backoff_multiplier": float(_env(environ, "BACKOFF_MULTIPLIER", "2.0")),
        "jitter_enabled": _env_bool(environ, "JITTER_ENABLED", True),
        "jitter_range": float(_env(environ, "JITTER_RANGE", "1.0")),
    }
    values.update(overrides)
    return RetryConfig(**values)


def breaker_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    **overrides,
) -> CircuitBreakerConfig:
    """Build a CircuitBreakerConfig from RESILIENCE_* variables; keyword overrides win."""
    environ = os.environ if environ is None else environ
    values = {
        "failure_threshold": int(_env(environ, "FAILURE_THRESHOLD", "5")),
        "recovery_timeout": float(_env(environ, "RECOVERY_TIMEOUT", "60.0")),
        "success_threshold": int(_env(environ, "SUCCESS_THRESHOLD", "2")),
        "half_open_max_calls": int(_env(environ, "HALF_OPEN_MAX_CALLS", "1")),
    }
    values.update(overrides)
    return CircuitBreakerConfig(**values)


def create_registry(
    environ: Optional[Mapping[str, str]] = None,
    presets: Optional[Mapping[str, CircuitBreakerConfig]] = None,
) -> CircuitBreakerRegistry:
    """
    Build the process-wide breaker registry.

    Known dependencies get their preset config; any other name gets the
    environment-driven default.
    """
    return CircuitBreakerRegistry(
        defaults=DEPENDENCY_PRESETS if presets is None else presets,
        default_config=breaker_config_from_env(environ),
    )
