"""
Transport layer: endpoint building, the transport protocol and its httpx
implementation.
"""

from boardsync.core.transport.base import Transport, TransportRequest
from boardsync.core.transport.endpoints import EntityRequestType, build_endpoint
from boardsync.core.transport.http import HttpTransport
from boardsync.core.transport.retry import RetryConfig

__all__ = [
    "EntityRequestType",
    "HttpTransport",
    "RetryConfig",
    "Transport",
    "TransportRequest",
    "build_endpoint",
]
