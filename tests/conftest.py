"""
Pytest configuration and shared fixtures.

Provides a scripted in-memory transport, a manual clock, service factories
and sample API payloads used across the test suite.
"""

import copy
import threading
from typing import Any

import pytest

from boardsync.core.config import clear_cache
from boardsync.core.config.models import RequestConfig, ServiceConfig, SyncConfig
from boardsync.core.exceptions import NotFoundError
from boardsync.core.service import BoardService
from boardsync.core.transport.base import TransportRequest

# ==============================================================================
# Test Doubles
# ==============================================================================


class FakeTransport:
    """
    In-memory transport.

    Payloads are scripted per (method, path) with ``respond``, which replaces
    any earlier script; the last payload repeats once earlier ones are used
    up. Exceptions in the script are raised instead of returned. Unscripted
    paths answer 404.
    Clearing ``gate`` blocks every ``execute`` until it is set again.
    """

    def __init__(self) -> None:
        self.requests: list[TransportRequest] = []
        self.credentials: tuple[str | None, str | None] = (None, None)
        self.gate = threading.Event()
        self.gate.set()
        self._responses: dict[tuple[str, str], list[Any]] = {}
        self._changed = threading.Condition()

    def respond(self, method: str, path: str, *payloads: Any) -> None:
        with self._changed:
            self._responses[(method, path)] = list(payloads)

    def set_credentials(self, app_key: str | None, user_token: str | None) -> None:
        self.credentials = (app_key, user_token)

    def execute(self, request: TransportRequest) -> Any:
        self.gate.wait(5.0)
        with self._changed:
            self.requests.append(request)
            self._changed.notify_all()
            script = self._responses.get((request.method.value, request.path))
            if not script:
                raise NotFoundError(f"{request.path} was not found", path=request.path)
            payload = script.pop(0) if len(script) > 1 else script[0]
        if isinstance(payload, Exception):
            raise payload
        return copy.deepcopy(payload)

    def calls(self, method: str | None = None, path: str | None = None) -> list[TransportRequest]:
        with self._changed:
            return [
                r
                for r in self.requests
                if (method is None or r.method.value == method) and (path is None or r.path == path)
            ]

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        """Block until at least ``count`` requests were executed."""
        with self._changed:
            return self._changed.wait_for(lambda: len(self.requests) >= count, timeout)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ==============================================================================
# Sample Identifiers and Payloads
# ==============================================================================

ORG_ID = "5f1a2b3c4d5e6f7a8b9c0d3a"
BOARD_ID = "5f1a2b3c4d5e6f7a8b9c0d2f"
CARD_ID = "5f1a2b3c4d5e6f7a8b9c0d1e"
CHECKLIST_ID = "5f1a2b3c4d5e6f7a8b9c0d6d"
MEMBER_ID = "5f1a2b3c4d5e6f7a8b9c0d4b"
ACTION_ID = "5f1a2b3c4d5e6f7a8b9c0d5c"


@pytest.fixture
def ids() -> dict[str, str]:
    """Valid remote identifiers for each entity kind."""
    return {
        "organization": ORG_ID,
        "board": BOARD_ID,
        "card": CARD_ID,
        "checklist": CHECKLIST_ID,
        "member": MEMBER_ID,
        "action": ACTION_ID,
    }


@pytest.fixture
def card_json() -> dict[str, Any]:
    return {
        "id": CARD_ID,
        "name": "Write release notes",
        "desc": "Cover the new sync engine",
        "closed": False,
        "due": "2024-03-01T12:00:00.000Z",
        "dueComplete": False,
        "idBoard": BOARD_ID,
        "idList": "5f1a2b3c4d5e6f7a8b9c0d7e",
        "idMembers": [MEMBER_ID],
        "idShort": 42,
        "pos": 16384,
        "url": "https://trello.com/c/abc123/42-write-release-notes",
    }


@pytest.fixture
def board_json() -> dict[str, Any]:
    return {
        "id": BOARD_ID,
        "name": "Release",
        "desc": "",
        "closed": False,
        "idOrganization": ORG_ID,
        "subscribed": False,
        "url": "https://trello.com/b/def456/release",
    }


@pytest.fixture
def organization_json() -> dict[str, Any]:
    return {
        "id": ORG_ID,
        "name": "acme_inc",
        "displayName": "Acme Inc",
        "desc": "Makers of everything",
        "url": "https://trello.com/acme_inc",
        "website": "https://acme.example.com",
        "products": [],
    }


@pytest.fixture
def member_json() -> dict[str, Any]:
    return {
        "id": MEMBER_ID,
        "username": "wile_e",
        "fullName": "Wile E. Coyote",
        "initials": "WC",
        "bio": "Genius",
        "confirmed": True,
        "status": "active",
    }


@pytest.fixture
def action_json() -> dict[str, Any]:
    return {
        "id": ACTION_ID,
        "type": "updateCard",
        "date": "2024-03-02T08:30:00.000Z",
        "idMemberCreator": MEMBER_ID,
        "data": {
            "card": {"id": CARD_ID, "idList": "5f1a2b3c4d5e6f7a8b9c0d8f", "name": "Moved card"},
            "old": {"idList": "5f1a2b3c4d5e6f7a8b9c0d7e"},
        },
    }


# ==============================================================================
# Service Fixtures
# ==============================================================================


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def make_service(transport, clock):
    """
    Factory for services wired to the fake transport and manual clock.

    Keyword arguments ``sync`` and ``requests`` override those config
    sections; ``user_token=None`` gives a read-only session.
    """
    services: list[BoardService] = []

    def factory(
        user_token: str | None = "user-token",
        sync: dict[str, Any] | None = None,
        requests: dict[str, Any] | None = None,
        start: bool = True,
    ) -> BoardService:
        config = ServiceConfig(
            app_key="app-key",
            sync=SyncConfig(**(sync or {})),
            requests=RequestConfig(**{"request_interval": 0.0, **(requests or {})}),
        )
        service = BoardService(
            user_token=user_token,
            config=config,
            transport=transport,
            clock=clock,
            start=start,
        )
        services.append(service)
        return service

    yield factory

    transport.gate.set()
    for service in services:
        service.close()


@pytest.fixture
def service(make_service) -> BoardService:
    return make_service()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from real config files and BOARDSYNC_* variables."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "BOARDSYNC_APP_KEY",
        "BOARDSYNC_USER_TOKEN",
        "BOARDSYNC_BASE_URL",
        "BOARDSYNC_ITEM_DURATION",
        "BOARDSYNC_AUTO_REFRESH",
        "BOARDSYNC_AUTO_SUBMIT",
    ):
        monkeypatch.delenv(name, raising=False)
    clear_cache()
    yield
    clear_cache()
