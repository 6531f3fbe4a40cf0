from .client import ResilientServiceClient
from .faults import fault_from_httpx, fault_from_response

__all__ = [
    "ResilientServiceClient",
    "fault_from_httpx",
    "fault_from_response",
]
