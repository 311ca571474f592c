"""Tests for the request queue and queued requests."""

import threading

from boardsync.core.requests import (
    Endpoint,
    QueuedRequest,
    RequestMethod,
    RequestQueue,
    RequestState,
)
from boardsync.core.transport import TransportRequest


def make_request(path: str, method: RequestMethod = RequestMethod.GET, **kwargs) -> QueuedRequest:
    return QueuedRequest(Endpoint(method, tuple(path.split("/"))), **kwargs)


class TestQueuedRequest:
    """Tests for QueuedRequest."""

    def test_defaults(self) -> None:
        request = make_request("cards/abc")

        assert request.state is RequestState.QUEUED
        assert request.method is RequestMethod.GET
        assert not request.is_ready
        assert request.transport_request is None
        assert not request.future.done()

    def test_sequence_increases(self) -> None:
        first, second = make_request("a"), make_request("b")

        assert second.sequence > first.sequence

    def test_readiness_gate(self) -> None:
        """wait_ready blocks until prepare() attaches the transport request."""
        request = make_request("cards/abc")

        assert request.wait_ready(0.01) is False

        prepared = TransportRequest.from_endpoint(request.endpoint)
        request.prepare(prepared)

        assert request.wait_ready(0.01) is True
        assert request.transport_request is prepared

    def test_to_persisted(self) -> None:
        request = make_request(
            "cards/abc",
            RequestMethod.PUT,
            body={"name": "Ship it"},
            result_type="card",
        )

        persisted = request.to_persisted()

        assert persisted.endpoint == "cards/abc"
        assert persisted.method is RequestMethod.PUT
        assert persisted.body == {"name": "Ship it"}
        assert persisted.result_type == "card"
        assert persisted.many is False

    def test_to_persisted_copies_body(self) -> None:
        """Later edits of the live body do not leak into the persisted one."""
        body = {"name": "Ship it"}
        request = make_request("cards/abc", RequestMethod.PUT, body=body)

        persisted = request.to_persisted()
        body["name"] = "Changed"

        assert persisted.body == {"name": "Ship it"}


class TestRequestQueue:
    """Tests for RequestQueue."""

    def test_fifo(self) -> None:
        queue = RequestQueue()
        requests = [make_request(f"cards/{n}") for n in range(3)]
        for request in requests:
            queue.enqueue(request)

        assert [queue.dequeue() for _ in range(3)] == requests
        assert queue.dequeue() is None

    def test_bulk_enqueue_keeps_order(self) -> None:
        queue = RequestQueue()
        queue.enqueue(make_request("first"))
        batch = [make_request("second"), make_request("third")]

        queue.bulk_enqueue(batch)

        assert [r.endpoint.path for r in queue] == ["first", "second", "third"]

    def test_iteration_does_not_consume(self) -> None:
        queue = RequestQueue()
        queue.enqueue(make_request("cards/abc"))

        list(queue)

        assert len(queue) == 1
        assert queue

    def test_peek(self) -> None:
        queue = RequestQueue()
        request = make_request("cards/abc")
        queue.enqueue(request)

        assert queue.peek(0.01) is request
        assert len(queue) == 1

    def test_peek_times_out_when_empty(self) -> None:
        queue = RequestQueue()

        assert queue.peek(0.01) is None
        assert not queue

    def test_peek_wakes_on_enqueue(self) -> None:
        """A blocked peek returns as soon as a request arrives."""
        queue = RequestQueue()
        request = make_request("cards/abc")
        seen: list[QueuedRequest | None] = []

        waiter = threading.Thread(target=lambda: seen.append(queue.peek(5.0)))
        waiter.start()
        queue.enqueue(request)
        waiter.join(5.0)

        assert seen == [request]

    def test_remove(self) -> None:
        queue = RequestQueue()
        keep, drop = make_request("keep"), make_request("drop")
        queue.enqueue(keep)
        queue.enqueue(drop)

        assert queue.remove(drop) is True
        assert queue.remove(drop) is False
        assert list(queue) == [keep]
