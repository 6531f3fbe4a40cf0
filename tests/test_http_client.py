"""
Tests for httpx fault mapping and the resilient service client.
"""

import socket

import httpx
import pytest

from resilience_core.circuit_breaker import (
    CircuitBreakerConfig,
    CircuitBreakerRegistry,
    CircuitOpenError,
)
from resilience_core.classifier import is_retryable
from resilience_core.exceptions import (
    PermanentRequestFault,
    RetriesExhausted,
    TransientNetworkFault,
    TransientServiceFault,
    TransportCode,
)
from resilience_core.http import ResilientServiceClient, fault_from_httpx, fault_from_response
from resilience_core.metrics import RESILIENCE_REGISTRY
from resilience_core.retry import RetryConfig

FAST = RetryConfig(max_retries=2, initial_delay=0.001, max_delay=0.002, jitter_enabled=False)
REQUEST = httpx.Request("GET", "https://catalog.test/v1/products")


class TestFaultMapping:
    """Tests for fault_from_httpx / fault_from_response."""

    def test_timeout(self):
        fault = fault_from_httpx(httpx.ReadTimeout("slow", request=REQUEST), "instacart")

        assert isinstance(fault, TransientNetworkFault)
        assert fault.code == TransportCode.ETIMEDOUT
        assert is_retryable(fault)

    def test_dns_failure(self):
        """A connect error caused by name resolution should map to ENOTFOUND."""
        try:
            try:
                raise socket.gaierror(-2, "Name or service not known")
            except socket.gaierror as cause:
                raise httpx.ConnectError("dns", request=REQUEST) from cause
        except httpx.ConnectError as exc:
            fault = fault_from_httpx(exc, "object-storage")

        assert fault.code == TransportCode.ENOTFOUND

    def test_connection_refused(self):
        try:
            try:
                raise ConnectionRefusedError(111, "Connection refused")
            except ConnectionRefusedError as cause:
                raise httpx.ConnectError("refused", request=REQUEST) from cause
        except httpx.ConnectError as exc:
            fault = fault_from_httpx(exc, "document-parser")

        assert fault.code == TransportCode.ECONNREFUSED
        assert fault.service == "document-parser"

    def test_dropped_connection(self):
        fault = fault_from_httpx(httpx.RemoteProtocolError("eof", request=REQUEST), "openai")

        assert fault.code == TransportCode.ECONNRESET

    def test_status_error(self):
        response = httpx.Response(503, request=REQUEST)
        exc = httpx.HTTPStatusError("boom", request=REQUEST, response=response)

        fault = fault_from_httpx(exc, "openai")

        assert isinstance(fault, TransientServiceFault)
        assert fault.status_code == 503

    def test_rate_limit_carries_retry_after(self):
        response = httpx.Response(429, headers={"Retry-After": "5"}, request=REQUEST)

        fault = fault_from_response(response, "instacart")

        assert isinstance(fault, TransientServiceFault)
        assert fault.retry_after == 5.0

    def test_client_error_is_permanent(self):
        response = httpx.Response(404, text="no such product", request=REQUEST)

        fault = fault_from_response(response, "instacart")

        assert isinstance(fault, PermanentRequestFault)
        assert fault.details == "no such product"
        assert not is_retryable(fault)

    def test_status_above_5xx_range_is_permanent(self):
        """Should agree with the classifier for statuses outside 5xx."""
        response = httpx.Response(600, request=REQUEST)

        fault = fault_from_response(response, "openai")

        assert isinstance(fault, PermanentRequestFault)
        assert not is_retryable(fault)


def make_client(handler, registry=None, **kwargs) -> ResilientServiceClient:
    return ResilientServiceClient(
        base_url="https://catalog.test",
        service_name="instacart",
        registry=registry if registry is not None else CircuitBreakerRegistry(),
        retry_config=kwargs.pop("retry_config", FAST),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestResilientServiceClient:
    """Tests for ResilientServiceClient."""

    @pytest.mark.asyncio
    async def test_returns_json(self):
        def handler(request):
            return httpx.Response(200, json={"items": [1, 2]})

        async with make_client(handler) as client:
            assert await client.get("/v1/products") == {"items": [1, 2]}

    @pytest.mark.asyncio
    async def test_no_content(self):
        async with make_client(lambda request: httpx.Response(204)) as client:
            assert await client.delete("/v1/lists/1") is None

    @pytest.mark.asyncio
    async def test_retries_server_errors(self):
        attempts = []

        def handler(request):
            attempts.append(request.url.path)
            if len(attempts) < 3:
                return httpx.Response(502)
            return httpx.Response(201, json={"id": "list-1"})

        async with make_client(handler) as client:
            result = await client.post("/v1/lists", json={"items": ["eggs"]})

        assert result == {"id": "list-1"}
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_does_not_retry_client_errors(self):
        attempts = []

        def handler(request):
            attempts.append(1)
            return httpx.Response(401)

        async with make_client(handler) as client:
            with pytest.raises(PermanentRequestFault):
                await client.get("/v1/products")

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_exhaustion_wraps_last_fault(self):
        async with make_client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(RetriesExhausted) as exc_info:
                await client.get("/v1/products")

        assert isinstance(exc_info.value.last_exception, TransientServiceFault)
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_connect_errors_are_mapped(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(RetriesExhausted) as exc_info:
                await client.get("/v1/products")

        assert isinstance(exc_info.value.last_exception, TransientNetworkFault)

    @pytest.mark.asyncio
    async def test_open_breaker_fails_fast(self):
        registry = CircuitBreakerRegistry(
            defaults={"instacart": CircuitBreakerConfig(failure_threshold=2)},
        )
        attempts = []

        def handler(request):
            attempts.append(1)
            return httpx.Response(503)

        async with make_client(handler, registry=registry) as client:
            with pytest.raises(CircuitOpenError):
                await client.get("/v1/products")
            with pytest.raises(CircuitOpenError):
                await client.get("/v1/products")

        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_metric_labels_do_not_include_paths(self):
        """Should label retry metrics by service and method, never by request path."""
        async with make_client(lambda request: httpx.Response(200, json={})) as client:
            for product_id in range(5):
                await client.get(f"/v1/products/{product_id}")

        operations = {
            sample.labels["operation"]
            for metric in RESILIENCE_REGISTRY.collect()
            if metric.name == "resilience_retry_attempts"
            for sample in metric.samples
            if sample.name == "resilience_retry_attempts_total"
        }

        assert "instacart:GET" in operations
        assert not any("/" in operation for operation in operations)
