from typing import Any, Dict, Optional

import httpx
import structlog

from ..circuit_breaker import CircuitBreakerConfig, CircuitBreakerRegistry
from ..composition import call_with_resilience
from ..retry import RetryConfig
from .faults import fault_from_httpx, fault_from_response

logger = structlog.get_logger(__name__)


class ResilientServiceClient:
    """
    Async HTTP client for an external dependency, guarded by retry and a breaker.

    Features:
    - Every request passes through the dependency's named circuit breaker.
    - Transient faults (connection errors, timeouts, 429, 5xx) are retried with backoff.
    - httpx errors are mapped to structured ServiceFaults.
    """

    def __init__(
        self,
        base_url: str,
        service_name: str,
        registry: CircuitBreakerRegistry,
        retry_config: Optional[RetryConfig] = None,
        breaker_config: Optional[CircuitBreakerConfig] = None,
        timeout: float = 10.0,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.service_name = service_name
        self.retry_config = retry_config or RetryConfig()
        self.breaker = registry.get_or_create(service_name, breaker_config)

        default_headers = {"Accept": "application/json"}
        default_headers.update(headers or {})

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=default_headers,
            transport=transport,
        )

    async def aclose(self):
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "ResilientServiceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def _send_once(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise fault_from_httpx(e, self.service_name) from e

        if response.is_error:
            raise fault_from_response(response, self.service_name)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """Execute a request under retry-of-breaker protection."""
        logger.debug("service_request", service=self.service_name, method=method, path=path)
        return await call_with_resilience(
            lambda: self._send_once(method, path, **kwargs),
            breaker=self.breaker,
            retry_config=self.retry_config,
            operation_name=f"{self.service_name}:{method}",
        )

    async def get(self, path: str, params: Optional[Dict] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> Any:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)
