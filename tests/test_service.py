"""
Tests for BoardService.

Covers construction, credentials, entity retrieval and identity, held and
restored requests, and response routing.
"""

import threading

import pytest

from boardsync.core.config.models import ServiceConfig
from boardsync.core.entities import Card, Member
from boardsync.core.exceptions import (
    BoardSyncError,
    ConfigError,
    ReadOnlyAccessError,
    SerializationError,
    TransportError,
)
from boardsync.core.requests import PersistedRequest, RequestMethod, RequestState
from boardsync.core.service import BoardService
from boardsync.core.transport import EntityRequestType, build_endpoint

CARD_ID = "5f1a2b3c4d5e6f7a8b9c0d1e"
OTHER_CARD_ID = "5f1a2b3c4d5e6f7a8b9c0d1f"
BOARD_ID = "5f1a2b3c4d5e6f7a8b9c0d2f"
MEMBER_ID = "5f1a2b3c4d5e6f7a8b9c0d4b"


def card_endpoint(kind=EntityRequestType.CARD_READ_REFRESH, card_id=CARD_ID):
    return build_endpoint(kind, {"_id": card_id})


class TestConstruction:
    """Tests for creating a service."""

    def test_requires_app_key(self, transport) -> None:
        with pytest.raises(ConfigError) as exc_info:
            BoardService(config=ServiceConfig(), transport=transport, start=False)

        assert "BOARDSYNC_APP_KEY" in str(exc_info.value.context["hint"])

    def test_app_key_from_config(self, transport) -> None:
        service = BoardService(
            config=ServiceConfig(app_key="cfg-key", user_token="cfg-token"),
            transport=transport,
            start=False,
        )

        assert service.app_key == "cfg-key"
        assert service.user_token == "cfg-token"
        assert transport.credentials == ("cfg-key", "cfg-token")

    def test_arguments_override_config(self, transport) -> None:
        service = BoardService(
            "arg-key",
            "arg-token",
            config=ServiceConfig(app_key="cfg-key", user_token="cfg-token"),
            transport=transport,
            start=False,
        )

        assert transport.credentials == ("arg-key", "arg-token")
        assert service.can_write

    def test_unknown_serializer(self, transport) -> None:
        with pytest.raises(ConfigError, match="Serializer 'xml' not registered"):
            BoardService(
                "key", config=ServiceConfig(serializer="xml"), transport=transport, start=False
            )

    def test_context_manager_stops_handler(self, transport) -> None:
        with BoardService("key", transport=transport) as service:
            assert service.handler.is_running

        assert not service.handler.is_running

    def test_repr_masks_credentials(self, service) -> None:
        assert repr(service) == "BoardService(key=app-…, token=user…)"

    def test_independent_sessions(self, make_service) -> None:
        first, second = make_service(), make_service()
        card = Card(CARD_ID, first)

        assert first.resolve(Card, CARD_ID) is card
        assert second.resolve(Card, CARD_ID) is not card


class TestCredentials:
    """Tests for tokens and write access."""

    def test_read_only_session(self, make_service) -> None:
        service = make_service(user_token=None)

        assert not service.can_write
        with pytest.raises(ReadOnlyAccessError):
            service.require_write_access()

    def test_writes_need_token(self, make_service, transport) -> None:
        service = make_service(user_token=None)

        with pytest.raises(ReadOnlyAccessError):
            service.execute(card_endpoint(EntityRequestType.CARD_WRITE_DELETE))
        assert transport.calls() == []
        assert len(service.queue) == 0

    def test_reads_work_without_token(self, make_service, transport, card_json) -> None:
        transport.respond("GET", f"cards/{CARD_ID}", card_json)
        service = make_service(user_token=None)

        assert service.retrieve(Card, CARD_ID).name == "Write release notes"

    def test_user_token_setter(self, service, transport) -> None:
        service.user_token = "other-token"

        assert transport.credentials == ("app-key", "other-token")

        service.user_token = None

        assert transport.credentials == ("app-key", None)
        assert not service.can_write

    def test_blank_user_token(self, service) -> None:
        with pytest.raises(ValueError):
            service.user_token = "  "

    def test_me(self, service, transport, member_json) -> None:
        transport.respond("GET", "members/me", {"id": MEMBER_ID})
        transport.respond("GET", f"members/{MEMBER_ID}", member_json)

        me = service.me

        assert isinstance(me, Member)
        assert me.username == "wile_e"
        assert service.me is me
        assert len(transport.calls("GET", "members/me")) == 1
        assert transport.calls("GET", "members/me")[0].params == {"fields": "id"}

    def test_me_is_reset_with_token(self, service, transport, member_json) -> None:
        transport.respond("GET", "members/me", {"id": MEMBER_ID})
        transport.respond("GET", f"members/{MEMBER_ID}", member_json)
        service.me

        service.user_token = "other-token"
        service.me

        assert len(transport.calls("GET", "members/me")) == 2

    def test_me_requires_token(self, make_service) -> None:
        with pytest.raises(ReadOnlyAccessError):
            make_service(user_token=None).me


class TestRetrieve:
    """Tests for retrieving entities."""

    def test_identity(self, service, transport, card_json) -> None:
        """One live instance per remote object, fetched once."""
        transport.respond("GET", f"cards/{CARD_ID}", card_json)

        first = service.retrieve(Card, CARD_ID)
        second = service.retrieve("card", CARD_ID)

        assert first is second
        assert len(transport.calls()) == 1

    def test_resolve_returns_retrieved_instance(self, service, transport, card_json) -> None:
        transport.respond("GET", f"cards/{CARD_ID}", card_json)
        card = service.retrieve(Card, CARD_ID)

        assert service.resolve(Card, CARD_ID) is card

    @pytest.mark.parametrize("identifier", ["", "   "])
    def test_empty_identifier(self, service, identifier) -> None:
        with pytest.raises(ValueError):
            service.retrieve(Card, identifier)

    def test_not_found(self, service) -> None:
        assert service.retrieve(Card, CARD_ID) is None
        assert len(service.cache) == 0

    def test_failure_caches_nothing(self, service, transport, card_json) -> None:
        """A failed verification leaves no entity behind; the next call retries."""
        transport.respond(
            "GET",
            f"cards/{CARD_ID}",
            TransportError("bad gateway", status_code=502),
            card_json,
        )

        with pytest.raises(TransportError):
            service.retrieve(Card, CARD_ID)
        assert len(service.cache) == 0

        assert service.retrieve(Card, CARD_ID).name == "Write release notes"

    def test_concurrent_retrieve(self, service, transport, card_json) -> None:
        """Concurrent callers all receive the same instance."""
        transport.respond("GET", f"cards/{CARD_ID}", card_json)
        results: list[Card] = []
        lock = threading.Lock()
        start = threading.Barrier(4)

        def retrieve() -> None:
            start.wait()
            card = service.retrieve(Card, CARD_ID)
            with lock:
                results.append(card)

        threads = [threading.Thread(target=retrieve) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)

        assert len(results) == 4
        assert all(card is results[0] for card in results)
        assert len(service.cache) == 1

    def test_unknown_kind(self, service) -> None:
        with pytest.raises(ValueError):
            service.retrieve("list", CARD_ID)


class TestRequests:
    """Tests for executing, holding and persisting requests."""

    def test_execute(self, service, transport, card_json) -> None:
        transport.respond("GET", f"cards/{CARD_ID}", card_json)

        assert service.execute(card_endpoint()) == card_json

    def test_unrouted_responses(self, service, transport, card_json) -> None:
        """Plain requests never populate the cache."""
        transport.respond("GET", f"cards/{CARD_ID}", card_json)

        service.execute(card_endpoint())

        assert len(service.cache) == 0

    def test_unserializable_body(self, service) -> None:
        endpoint = card_endpoint(EntityRequestType.CARD_WRITE_UPDATE)

        with pytest.raises(BoardSyncError):
            service.enqueue(endpoint, {"value": object()})
        assert len(service.queue) == 0

    def test_execute_on_dispatch_thread(self, service, transport, card_json) -> None:
        """Blocking from a completion callback is refused instead of deadlocking."""
        transport.respond("GET", f"cards/{CARD_ID}", card_json)
        errors: list[Exception] = []
        done = threading.Event()

        def callback(_future) -> None:
            try:
                service.execute(card_endpoint())
            except BoardSyncError as e:
                errors.append(e)
            finally:
                done.set()

        service.hold_requests()
        request = service.enqueue(card_endpoint())
        request.future.add_done_callback(callback)
        service.resume_requests()
        request.future.result(5)
        done.wait(5)

        assert len(errors) == 1
        assert "dispatch thread" in str(errors[0])

    def test_hold_and_resume(self, service, transport, card_json) -> None:
        transport.respond("PUT", f"cards/{CARD_ID}", card_json)
        service.hold_requests()

        request = service.enqueue(
            card_endpoint(EntityRequestType.CARD_WRITE_UPDATE), {"name": "Held"}, result_type="card"
        )

        unsent = service.get_unsent_requests()
        assert unsent == [
            PersistedRequest(
                endpoint=f"cards/{CARD_ID}",
                method=RequestMethod.PUT,
                body={"name": "Held"},
                result_type="card",
            )
        ]
        assert transport.calls() == []

        service.resume_requests()

        assert request.future.result(5) == card_json
        assert service.get_unsent_requests() == []

    def test_is_connected(self, service) -> None:
        assert service.is_connected


class TestRestoreRequests:
    """Tests for replaying persisted requests."""

    def test_routes_response_into_cache(self, service, transport, card_json) -> None:
        """The response populates the cached entity without a refresh."""
        card = Card(CARD_ID, service)
        transport.respond("PUT", f"cards/{CARD_ID}", {**card_json, "name": "Restored"})

        (request,) = service.restore_requests([
            PersistedRequest(
                endpoint=f"cards/{CARD_ID}",
                method=RequestMethod.PUT,
                body={"name": "Restored"},
                result_type="card",
            )
        ])
        request.future.result(5)

        assert card.name == "Restored"
        assert transport.calls("GET", f"cards/{CARD_ID}") == []
        assert request.state is RequestState.COMPLETED

    def test_updates_existing_entity(self, service, transport, card_json) -> None:
        card = Card(CARD_ID, service, data=card_json)
        transport.respond("PUT", f"cards/{CARD_ID}", {**card_json, "name": "Restored"})

        (request,) = service.restore_requests([
            PersistedRequest(
                endpoint=f"cards/{CARD_ID}",
                method=RequestMethod.PUT,
                body={"name": "Restored"},
                result_type="card",
            )
        ])
        request.future.result(5)

        assert card.name == "Restored"

    def test_list_responses_fan_out(self, service, transport, card_json) -> None:
        cards = [Card(CARD_ID, service), Card(OTHER_CARD_ID, service)]
        transport.respond(
            "GET",
            f"boards/{BOARD_ID}/cards",
            [card_json, {**card_json, "id": OTHER_CARD_ID, "name": "Second"}],
        )

        (request,) = service.restore_requests([
            PersistedRequest(endpoint=f"boards/{BOARD_ID}/cards", result_type="card", many=True)
        ])
        request.future.result(5)

        assert [c.name for c in cards] == ["Write release notes", "Second"]
        assert transport.calls("GET", f"cards/{CARD_ID}") == []

    def test_without_result_type(self, service, transport, card_json) -> None:
        transport.respond("GET", f"cards/{CARD_ID}", card_json)

        (request,) = service.restore_requests([PersistedRequest(endpoint=f"cards/{CARD_ID}")])
        request.future.result(5)

        assert len(service.cache) == 0

    def test_order_is_preserved(self, service, transport) -> None:
        for n in range(3):
            transport.respond("DELETE", f"cards/{n}", None)

        restored = service.restore_requests([
            PersistedRequest(endpoint=f"cards/{n}", method=RequestMethod.DELETE) for n in range(3)
        ])
        for request in restored:
            request.future.result(5)

        assert [r.path for r in transport.calls()] == ["cards/0", "cards/1", "cards/2"]

    def test_failures_reported_per_request(self, service, transport) -> None:
        transport.respond("DELETE", "cards/ok", None)
        transport.respond("DELETE", "cards/bad", TransportError("forbidden", status_code=403))

        ok, bad = service.restore_requests([
            PersistedRequest(endpoint="cards/ok", method=RequestMethod.DELETE),
            PersistedRequest(endpoint="cards/bad", method=RequestMethod.DELETE),
        ])

        assert ok.future.result(5) is None
        with pytest.raises(TransportError):
            bad.future.result(5)

    def test_unserializable_batch_queues_nothing(self, service, transport, card_json) -> None:
        """A bad body rejects the whole batch and later requests still flow."""
        transport.respond("GET", f"cards/{CARD_ID}", card_json)

        with pytest.raises(SerializationError):
            service.restore_requests([
                PersistedRequest(
                    endpoint=f"cards/{CARD_ID}",
                    method=RequestMethod.PUT,
                    body={"labels": {"red", "green"}},
                ),
                PersistedRequest(endpoint=f"boards/{BOARD_ID}"),
            ])

        assert len(service.queue) == 0
        assert service.handler.is_active
        assert service.execute(card_endpoint(), timeout=5) == card_json
        assert transport.calls("GET", f"boards/{BOARD_ID}") == []

    def test_writes_need_token(self, make_service) -> None:
        service = make_service(user_token=None)

        with pytest.raises(ReadOnlyAccessError):
            service.restore_requests([
                PersistedRequest(endpoint="cards/x", method=RequestMethod.DELETE)
            ])
        assert len(service.queue) == 0

    def test_held_service_stays_held(self, service, transport) -> None:
        service.hold_requests()

        service.restore_requests([PersistedRequest(endpoint=f"boards/{BOARD_ID}")])

        assert not service.handler.is_active
        assert len(service.get_unsent_requests()) == 1
        assert transport.calls() == []

    def test_round_trip(self, make_service, transport, card_json) -> None:
        """Requests held in one session are replayed by another."""
        first = make_service(sync={"auto_submit": False})
        card = Card(CARD_ID, first, data=card_json)
        first.hold_requests()
        card.name = "Offline edit"
        card.context.schedule_submit()
        unsent = first.get_unsent_requests()
        first.close()

        transport.respond("PUT", f"cards/{CARD_ID}", {**card_json, "name": "Offline edit"})
        second = make_service()
        restored_card = Card(CARD_ID, second)
        (request,) = second.restore_requests(unsent)
        request.future.result(5)

        assert restored_card is not card
        assert restored_card.name == "Offline edit"
        assert len(transport.calls("PUT", f"cards/{CARD_ID}")) == 1
