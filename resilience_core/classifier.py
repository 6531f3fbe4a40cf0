"""
Failure Classifier
==================
Decides whether a fault represents a transient condition worth retrying.

The classifier never raises. Faults without any recognizable signal are
treated as permanent so programming errors are not masked as transient ones.
"""

import asyncio
import concurrent.futures
import errno
import re
import socket
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional

from .exceptions import (
    CONNECTION_CODES,
    TIMEOUT_CODES,
    CircuitOpenError,
    PermanentRequestFault,
    TransientNetworkFault,
    TransientServiceFault,
    TransportCode,
)


class FaultKind(str, Enum):
    """Kind-level classification of a fault."""
    TRANSIENT_NETWORK = "transient_network"
    TRANSIENT_SERVICE = "transient_service"
    PERMANENT_REQUEST = "permanent_request"
    CANCELLED = "cancelled"
    CIRCUIT_OPEN = "circuit_open"


RETRYABLE_KINDS = frozenset({FaultKind.TRANSIENT_NETWORK, FaultKind.TRANSIENT_SERVICE})

_ERRNO_CODES = {
    errno.ECONNREFUSED: TransportCode.ECONNREFUSED,
    errno.ECONNRESET: TransportCode.ECONNRESET,
    errno.EHOSTUNREACH: TransportCode.EHOSTUNREACH,
    errno.ENETUNREACH: TransportCode.ENETUNREACH,
    errno.ETIMEDOUT: TransportCode.ETIMEDOUT,
}

_TRANSIENT_MESSAGE = re.compile(
    r"time[d\s-]?out|timed out|connection|network|socket hang up",
    re.IGNORECASE,
)

# Distinct classes before Python 3.11
_TIMEOUT_ERRORS = (TimeoutError, asyncio.TimeoutError, concurrent.futures.TimeoutError)

_MISSING = object()


def _lookup(obj: Any, name: str) -> Any:
    """Read an attribute or mapping key without ever raising."""
    if obj is None:
        return None
    try:
        if isinstance(obj, Mapping):
            return obj.get(name)
        value = getattr(obj, name, _MISSING)
    except Exception:
        return None
    return None if value is _MISSING else value


def _as_status(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _transport_code(fault: Any) -> Optional[TransportCode]:
    code = _lookup(fault, "code")
    if isinstance(code, str):
        try:
            return TransportCode(code.upper())
        except ValueError:
            pass

    err = _lookup(fault, "errno")
    if isinstance(err, int) and err in _ERRNO_CODES:
        return _ERRNO_CODES[err]

    if isinstance(fault, socket.gaierror):
        return TransportCode.ENOTFOUND
    if isinstance(fault, ConnectionRefusedError):
        return TransportCode.ECONNREFUSED
    if isinstance(fault, ConnectionResetError):
        return TransportCode.ECONNRESET
    if isinstance(fault, _TIMEOUT_ERRORS):
        return TransportCode.ETIMEDOUT
    return None


def extract_status_code(fault: Any) -> Optional[int]:
    """
    Find an HTTP-style status code on a fault.

    Locations are probed in a fixed order: a direct ``status`` field, a nested
    ``response.status`` / ``response.status_code`` field, then ``status_code``.
    """
    response = _lookup(fault, "response")
    candidates = (
        _lookup(fault, "status"),
        _lookup(response, "status"),
        _lookup(response, "status_code"),
        _lookup(fault, "status_code"),
    )
    for candidate in candidates:
        status = _as_status(candidate)
        if status is not None:
            return status
    return None


def _message_of(fault: Any) -> str:
    message = _lookup(fault, "message")
    if isinstance(message, str):
        return message
    if isinstance(fault, BaseException):
        try:
            return str(fault)
        except Exception:
            return ""
    return ""


def classify(fault: Any) -> FaultKind:
    """Classify a fault into one of the FaultKind buckets."""
    if isinstance(fault, asyncio.CancelledError):
        return FaultKind.CANCELLED
    if isinstance(fault, CircuitOpenError):
        return FaultKind.CIRCUIT_OPEN

    code = _transport_code(fault)
    if code in CONNECTION_CODES or code in TIMEOUT_CODES:
        return FaultKind.TRANSIENT_NETWORK

    status = extract_status_code(fault)
    if status is not None:
        if status == 429 or 500 <= status <= 599:
            return FaultKind.TRANSIENT_SERVICE
        return FaultKind.PERMANENT_REQUEST

    # Typed faults already carry the wrapper layer's decision
    if isinstance(fault, PermanentRequestFault):
        return FaultKind.PERMANENT_REQUEST
    if isinstance(fault, TransientServiceFault):
        return FaultKind.TRANSIENT_SERVICE
    if isinstance(fault, TransientNetworkFault):
        return FaultKind.TRANSIENT_NETWORK

    # Message text is only consulted when no structured signal exists
    if _TRANSIENT_MESSAGE.search(_message_of(fault)):
        return FaultKind.TRANSIENT_NETWORK

    return FaultKind.PERMANENT_REQUEST


def is_retryable(fault: Any) -> bool:
    """Return True when the fault is transient and worth another attempt."""
    try:
        return classify(fault) in RETRYABLE_KINDS
    except Exception:
        return False


def retry_after_seconds(fault: Any) -> Optional[float]:
    """Server-provided wait hint, from a ``retry_after`` field or a Retry-After header."""
    hint = _lookup(fault, "retry_after")
    if isinstance(hint, (int, float)) and not isinstance(hint, bool) and hint >= 0:
        return float(hint)

    headers = _lookup(_lookup(fault, "response"), "headers")
    if headers is None:
        return None
    try:
        raw = headers.get("Retry-After") or headers.get("retry-after")
    except Exception:
        return None
    if isinstance(raw, str) and raw.strip().isdigit():
        return float(raw.strip())
    return None
