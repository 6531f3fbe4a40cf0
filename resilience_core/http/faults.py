"""
HTTP Fault Mapping
==================
Translate httpx errors and responses into structured ServiceFaults so the
classifier reads one well-defined signal instead of probing ad hoc fields.
"""

import errno
import socket
from typing import Optional

import httpx

from ..classifier import retry_after_seconds
from ..exceptions import (
    PermanentRequestFault,
    ServiceFault,
    TransientNetworkFault,
    TransientServiceFault,
    TransportCode,
)

_ERRNO_CODES = {
    errno.ECONNREFUSED: TransportCode.ECONNREFUSED,
    errno.ECONNRESET: TransportCode.ECONNRESET,
    errno.EHOSTUNREACH: TransportCode.EHOSTUNREACH,
    errno.ENETUNREACH: TransportCode.ENETUNREACH,
}


def _connect_code(exc: BaseException) -> TransportCode:
    """Find the OS-level reason behind a connect failure."""
    cause: Optional[BaseException] = exc
    seen = set()
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        if isinstance(cause, socket.gaierror):
            return TransportCode.ENOTFOUND
        if isinstance(cause, OSError) and cause.errno in _ERRNO_CODES:
            return _ERRNO_CODES[cause.errno]
        cause = cause.__cause__ or cause.__context__

    message = str(exc).lower()
    if "name or service not known" in message or "nodename nor servname" in message:
        return TransportCode.ENOTFOUND
    return TransportCode.ECONNREFUSED


def fault_from_response(response: httpx.Response, service: str) -> ServiceFault:
    """Build a fault for a non-2xx response."""
    status = response.status_code
    retry_after = retry_after_seconds({"response": response})
    details = response.text

    if status == 429:
        return TransientServiceFault(
            "Rate limited", service=service, status_code=status,
            retry_after=retry_after, details=details,
        )
    if 500 <= status <= 599:
        return TransientServiceFault(
            "Server error", service=service, status_code=status,
            retry_after=retry_after, details=details,
        )
    return PermanentRequestFault(
        f"HTTP {status} Error", service=service, status_code=status, details=details,
    )


def fault_from_httpx(exc: Exception, service: str) -> ServiceFault:
    """Map httpx exceptions to structured service faults."""
    if isinstance(exc, httpx.TimeoutException):
        return TransientNetworkFault(
            "Request timed out", service=service, code=TransportCode.ETIMEDOUT,
        )
    if isinstance(exc, httpx.ConnectError):
        return TransientNetworkFault(
            f"Failed to connect: {exc}", service=service, code=_connect_code(exc),
        )
    if isinstance(exc, (httpx.NetworkError, httpx.RemoteProtocolError)):
        return TransientNetworkFault(
            f"Connection lost: {exc}", service=service, code=TransportCode.ECONNRESET,
        )
    if isinstance(exc, httpx.HTTPStatusError):
        return fault_from_response(exc.response, service)

    return PermanentRequestFault(f"Unexpected error: {exc}", service=service)
