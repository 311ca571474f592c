"""
Request queue handler.

A background worker that drains a ``RequestQueue`` against a transport.
Dispatch happens on a single thread, so requests reach the transport in
enqueue order. While the handler is inactive (``pause()`` / holding
requests) work accumulates in the queue; in-flight requests are never
cancelled.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from boardsync.core.exceptions import BoardSyncError, TransportConnectionError
from boardsync.core.requests.models import RequestState
from boardsync.core.requests.queue import QueuedRequest, RequestQueue

if TYPE_CHECKING:
    from boardsync.core.transport.base import Transport

logger = logging.getLogger(__name__)

ResponseHook = Callable[[QueuedRequest, Any], None]


class RequestQueueHandler:
    """
    Dispatches queued requests on a background thread.

    The loop blocks on three primitives, in order: the active flag, the queue
    (for a head request) and the head request's readiness gate. The timeout
    on each wait only exists so ``stop()`` is observed promptly.

    Attributes:
        request_interval: Minimum seconds between two dispatches

    Example:
        >>> handler = RequestQueueHandler(queue, transport, request_interval=0.1)
        >>> handler.start()
        >>> handler.pause()     # hold requests
        >>> handler.resume()    # dispatch everything still queued
        >>> handler.stop()
    """

    POLL_INTERVAL = 0.25

    def __init__(
        self,
        queue: RequestQueue,
        transport: Transport,
        *,
        request_interval: float = 0.0,
        on_response: ResponseHook | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the handler.

        Args:
            queue: Queue to drain
            transport: Transport executing prepared requests
            request_interval: Minimum seconds between dispatches
            on_response: Called with (request, payload) before the request's
                future completes; an exception fails the request
            clock: Monotonic clock used for pacing
        """
        if request_interval < 0:
            raise ValueError(f"request_interval must be >= 0, got {request_interval}")

        self.request_interval = request_interval
        self._queue = queue
        self._transport = transport
        self._on_response = on_response
        self._clock = clock
        self._active = threading.Event()
        self._active.set()
        self._stopping = threading.Event()
        self._connected = True
        self._last_dispatch: float | None = None
        self._thread: threading.Thread | None = None

    @property
    def is_active(self) -> bool:
        """Whether queued requests are being dispatched."""
        return self._active.is_set()

    @is_active.setter
    def is_active(self, value: bool) -> None:
        if value:
            self.resume()
        else:
            self.pause()

    @property
    def is_connected(self) -> bool:
        """False after a connection failure, until a dispatch succeeds again."""
        return self._connected

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_dispatch_thread(self) -> bool:
        """True when called from the handler's own thread (e.g. a future callback)."""
        return threading.current_thread() is self._thread

    def pause(self) -> None:
        """Stop dispatching new requests; in-flight work completes."""
        if self._active.is_set():
            logger.info("Holding requests (%d pending)", len(self._queue))
        self._active.clear()

    def resume(self) -> None:
        """Dispatch everything still queued plus anything enqueued meanwhile."""
        if not self._active.is_set():
            logger.info("Resuming requests (%d pending)", len(self._queue))
        self._active.set()
        self._queue.wake()

    def start(self) -> None:
        """Start the dispatch thread (idempotent)."""
        if self.is_running:
            return
        self._stopping.clear()
        self._thread = threading.Thread(
            target=self._run, name="boardsync-request-handler", daemon=True
        )
        self._thread.start()
        logger.debug("Request queue handler started")

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the dispatch thread.

        Requests still queued stay queued; they can be read back for
        persistence.
        """
        self._stopping.set()
        self._queue.wake()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.debug("Request queue handler stopped")

    def _run(self) -> None:
        while not self._stopping.is_set():
            if not self._active.wait(self.POLL_INTERVAL):
                continue

            request = self._queue.peek(self.POLL_INTERVAL)
            if request is None or self._stopping.is_set():
                continue

            # Never dispatch a half-constructed request
            if not request.wait_ready(self.POLL_INTERVAL):
                continue

            if not self._active.is_set() or self._stopping.is_set():
                continue

            self._pace()
            if not self._queue.remove(request):
                continue
            self._dispatch(request)

    def _pace(self) -> None:
        if self._last_dispatch is None or self.request_interval <= 0:
            return
        remaining = self.request_interval - (self._clock() - self._last_dispatch)
        if remaining > 0:
            self._stopping.wait(remaining)

    def _dispatch(self, request: QueuedRequest) -> None:
        if not request.future.set_running_or_notify_cancel():
            logger.debug("Skipping cancelled %r", request)
            return
        request.state = RequestState.DISPATCHED
        self._last_dispatch = self._clock()
        logger.debug("Dispatching %r", request)

        transport_request = request.transport_request
        if transport_request is None:
            error = BoardSyncError(f"Dispatched unprepared request {request.endpoint}")
            self._fail(request, error)
            return

        try:
            payload = self._transport.execute(transport_request)
            self._connected = True
            if self._on_response is not None:
                self._on_response(request, payload)
        except TransportConnectionError as e:
            self._connected = False
            logger.warning("Connection failure for %s: %s", request.endpoint, e)
            self._fail(request, e)
        except Exception as e:
            logger.debug("Request %r failed: %s", request, e)
            self._fail(request, e)
        else:
            request.state = RequestState.COMPLETED
            request.future.set_result(payload)

    @staticmethod
    def _fail(request: QueuedRequest, error: Exception) -> None:
        request.state = RequestState.FAILED
        request.future.set_exception(error)
