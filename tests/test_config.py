"""
Tests for environment configuration and logging setup.
"""

import json
import logging

import pytest
import structlog

from resilience_core.circuit_breaker import CircuitBreakerConfig
from resilience_core.config import (
    DEPENDENCY_PRESETS,
    INSTACART,
    breaker_config_from_env,
    create_registry,
    retry_config_from_env,
)
from resilience_core.structured_logging import bind_operation_id, operation_id_var, setup_logging


class TestEnvironmentConfig:
    """Tests for RESILIENCE_* environment variables."""

    def test_retry_defaults(self):
        config = retry_config_from_env({})

        assert config.max_retries == 3
        assert config.initial_delay == 1.0
        assert config.jitter_enabled is True

    def test_retry_from_environment(self):
        config = retry_config_from_env({
            "RESILIENCE_MAX_RETRIES": "5",
            "RESILIENCE_INITIAL_DELAY": "0.5",
            "RESILIENCE_JITTER_ENABLED": "false",
        })

        assert config.max_retries == 5
        assert config.initial_delay == 0.5
        assert config.jitter_enabled is False

    def test_overrides_win(self):
        config = retry_config_from_env({"RESILIENCE_MAX_RETRIES": "5"}, max_retries=1)

        assert config.max_retries == 1

    def test_breaker_from_environment(self):
        config = breaker_config_from_env({
            "RESILIENCE_FAILURE_THRESHOLD": "7",
            "RESILIENCE_RECOVERY_TIMEOUT": "12.5",
        })

        assert config.failure_threshold == 7
        assert config.recovery_timeout == 12.5
        assert config.success_threshold == 2

    def test_invalid_breaker_values_rejected(self):
        with pytest.raises(ValueError):
            breaker_config_from_env({"RESILIENCE_FAILURE_THRESHOLD": "0"})

    def test_registry_uses_presets(self):
        registry = create_registry({"RESILIENCE_FAILURE_THRESHOLD": "9"})

        assert registry.get_or_create(INSTACART).config is DEPENDENCY_PRESETS[INSTACART]
        assert registry.get_or_create("weather").config == CircuitBreakerConfig(failure_threshold=9)


class TestLogging:
    """Tests for structlog setup."""

    @pytest.fixture(autouse=True)
    def restore_structlog(self):
        yield
        structlog.reset_defaults()
        structlog.contextvars.clear_contextvars()
        logging.getLogger().handlers.clear()

    def test_json_output_includes_context(self, capsys):
        setup_logging("recipe-api", level="DEBUG", json_output=True)
        capsys.readouterr()

        with bind_operation_id("op-123"):
            assert operation_id_var.get() == "op-123"
            structlog.get_logger("test").info("circuit_opened", service="openai")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "circuit_opened"
        assert event["operation_id"] == "op-123"
        assert event["level"] == "info"
        assert operation_id_var.get() == ""
