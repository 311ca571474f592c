"""
Request queue.

An ordered, thread-safe container of pending outbound requests, decoupled
from the transport so requests can be paused, persisted and replayed.

Each ``QueuedRequest`` carries a readiness gate: the handler will not
dispatch it until ``prepare()`` has attached a transport request. The gate is
a ``threading.Event``, so the dispatcher blocks instead of spinning.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from collections.abc import Iterable, Iterator
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any

from boardsync.core.requests.models import (
    Endpoint,
    PersistedRequest,
    RequestMethod,
    RequestState,
)

if TYPE_CHECKING:
    from boardsync.core.transport.base import TransportRequest

logger = logging.getLogger(__name__)

_sequence = itertools.count(1)


class QueuedRequest:
    """
    A queued unit of work.

    Attributes:
        endpoint: Target endpoint (method, path, query parameters)
        body: Payload for write requests
        result_type: Entity kind the response belongs to (e.g. "card")
        many: Whether the response is a list of entities
        restored: True when rebuilt from a persisted request; the service
            routes the response of such requests into the entity cache
        future: Completes with the deserialized payload or the failure
    """

    def __init__(
        self,
        endpoint: Endpoint,
        body: dict[str, Any] | None = None,
        *,
        result_type: str | None = None,
        many: bool = False,
        restored: bool = False,
    ) -> None:
        self.sequence = next(_sequence)
        self.endpoint = endpoint
        self.body = body
        self.result_type = result_type
        self.many = many
        self.restored = restored
        self.state = RequestState.QUEUED
        self.future: Future[Any] = Future()
        self._transport_request: TransportRequest | None = None
        self._ready = threading.Event()

    @property
    def method(self) -> RequestMethod:
        return self.endpoint.method

    @property
    def transport_request(self) -> TransportRequest | None:
        return self._transport_request

    @property
    def is_ready(self) -> bool:
        """True once a transport request is attached."""
        return self._ready.is_set()

    def prepare(self, transport_request: TransportRequest) -> None:
        """Attach the transport request and open the readiness gate."""
        self._transport_request = transport_request
        self._ready.set()

    def wait_ready(self, timeout: float | None = None) -> bool:
        """Block until the request is prepared; returns False on timeout."""
        return self._ready.wait(timeout)

    def to_persisted(self) -> PersistedRequest:
        """Serializable form used to persist unsent work."""
        return PersistedRequest(
            endpoint=self.endpoint.path,
            method=self.endpoint.method,
            parameters=dict(self.endpoint.params),
            body=dict(self.body) if self.body is not None else None,
            result_type=self.result_type,
            many=self.many,
        )

    def __repr__(self) -> str:
        return f"QueuedRequest(#{self.sequence} {self.endpoint}, state={self.state.value})"


class RequestQueue:
    """
    Ordered, thread-safe sequence of pending requests.

    Structural mutations (enqueue, dequeue, remove) are serialized by a
    condition variable; iteration works on a snapshot so callers can inspect
    or persist the contents without removing anything.

    Example:
        >>> queue = RequestQueue()
        >>> queue.enqueue(request)
        >>> [r.endpoint.path for r in queue]
        ['cards/5f0c0a0b0c0d0e0f10111213']
    """

    def __init__(self) -> None:
        self._items: deque[QueuedRequest] = deque()
        self._changed = threading.Condition()

    def enqueue(self, request: QueuedRequest) -> None:
        """Append a request."""
        with self._changed:
            self._items.append(request)
            self._changed.notify_all()
        logger.debug("Enqueued %r (pending: %d)", request, len(self))

    def bulk_enqueue(self, requests: Iterable[QueuedRequest]) -> None:
        """Append several requests atomically, preserving their order."""
        batch = list(requests)
        with self._changed:
            self._items.extend(batch)
            self._changed.notify_all()
        logger.debug("Enqueued %d requests", len(batch))

    def peek(self, timeout: float | None = None) -> QueuedRequest | None:
        """
        Return the head request without removing it.

        Blocks up to ``timeout`` seconds for one to arrive (None waits
        forever). Returns None if the queue is still empty.
        """
        with self._changed:
            if not self._items:
                self._changed.wait(timeout)
            return self._items[0] if self._items else None

    def dequeue(self) -> QueuedRequest | None:
        """Remove and return the head request, or None if empty."""
        with self._changed:
            if not self._items:
                return None
            request = self._items.popleft()
            self._changed.notify_all()
            return request

    def remove(self, request: QueuedRequest) -> bool:
        """Remove a specific request; returns False if it was not queued."""
        with self._changed:
            try:
                self._items.remove(request)
            except ValueError:
                return False
            self._changed.notify_all()
            return True

    def wake(self) -> None:
        """Wake any thread blocked in ``peek()``."""
        with self._changed:
            self._changed.notify_all()

    def __iter__(self) -> Iterator[QueuedRequest]:
        with self._changed:
            snapshot = list(self._items)
        return iter(snapshot)

    def __len__(self) -> int:
        with self._changed:
            return len(self._items)

    def __bool__(self) -> bool:
        return len(self) > 0
