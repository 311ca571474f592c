"""
Outbound request pipeline.

Requests are queued, gated until prepared, and dispatched in order by a
background handler. Unsent requests can be persisted and restored.
"""

from boardsync.core.requests.handler import RequestQueueHandler
from boardsync.core.requests.models import (
    Endpoint,
    PersistedRequest,
    RequestMethod,
    RequestState,
)
from boardsync.core.requests.queue import QueuedRequest, RequestQueue
from boardsync.core.requests.store import QueueStore

__all__ = [
    "Endpoint",
    "PersistedRequest",
    "QueueStore",
    "QueuedRequest",
    "RequestMethod",
    "RequestQueue",
    "RequestQueueHandler",
    "RequestState",
]
