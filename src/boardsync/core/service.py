"""
Board service.

``BoardService`` is the session object: it owns the configuration, the
entity cache, the request queue with its handler thread and the transport.
Entities reach the network only through it.

Example:
    >>> with BoardService("app-key", "user-token") as service:
    ...     card = service.retrieve(Card, "5f1a2b3c4d5e6f7a8b9c0d1e")
    ...     card.name = "Ship it"
    ...     card.submit()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from boardsync.core.cache import EntityCache
from boardsync.core.config.models import ServiceConfig, mask_secret
from boardsync.core.entities import Entity, Member, get_entity_type
from boardsync.core.exceptions import (
    BoardSyncError,
    ConfigError,
    NotFoundError,
    ReadOnlyAccessError,
    SerializationError,
)
from boardsync.core.requests import (
    Endpoint,
    PersistedRequest,
    QueuedRequest,
    RequestQueue,
    RequestQueueHandler,
    RequestState,
)
from boardsync.core.serialization import get_serializer
from boardsync.core.transport import (
    EntityRequestType,
    HttpTransport,
    RetryConfig,
    Transport,
    TransportRequest,
    build_endpoint,
)

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=Entity)


class BoardService:
    """
    Session against the remote board API.

    Several services can coexist; each has its own cache and queue.

    Attributes:
        config: Effective configuration
        cache: Live entities of this session
        queue: Pending outbound requests
        handler: Background dispatcher draining the queue
        clock: Monotonic clock used for TTL bookkeeping
    """

    def __init__(
        self,
        app_key: str | None = None,
        user_token: str | None = None,
        *,
        config: ServiceConfig | None = None,
        transport: Transport | None = None,
        cache: EntityCache[Entity] | None = None,
        queue: RequestQueue | None = None,
        clock: Callable[[], float] = time.monotonic,
        start: bool = True,
    ) -> None:
        """
        Initialize the service.

        Args:
            app_key: Application key (falls back to ``config.app_key``)
            user_token: User token (falls back to ``config.user_token``);
                without one the session is read-only
            config: Configuration; defaults to ``ServiceConfig()``
            transport: Transport to use; defaults to an ``HttpTransport``
            cache: Entity cache to use
            queue: Request queue to use
            clock: Clock for TTL bookkeeping
            start: Start the handler thread immediately

        Raises:
            ConfigError: If no application key is available or the
                configured serializer is unknown
        """
        self.config = config or ServiceConfig()
        app_key = app_key or self.config.app_key
        if not app_key:
            raise ConfigError(
                "An application key is required",
                hint="Set BOARDSYNC_APP_KEY or app_key in .boardsync.json",
            )
        self._app_key = app_key
        self._user_token = user_token if user_token is not None else self.config.user_token
        self.clock = clock

        try:
            self.serializer = get_serializer(self.config.serializer)
        except ValueError as e:
            raise ConfigError(str(e), serializer=self.config.serializer) from e

        self._owns_transport = transport is None
        if transport is None:
            transport = HttpTransport(
                self.config.base_url,
                self._app_key,
                self._user_token,
                serializer=self.serializer,
                timeout=self.config.requests.timeout,
                retry=RetryConfig(max_retries=self.config.requests.max_retries),
                user_agent="boardsync",
            )
        else:
            transport.set_credentials(self._app_key, self._user_token)
        self._transport = transport

        self.cache: EntityCache[Entity] = cache if cache is not None else EntityCache()
        self.queue = queue if queue is not None else RequestQueue()
        self.handler = RequestQueueHandler(
            self.queue,
            transport,
            request_interval=self.config.requests.request_interval,
            on_response=self._route_response,
        )
        self._me: Member | None = None
        self._me_lock = threading.Lock()

        if start:
            self.handler.start()

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    @property
    def app_key(self) -> str:
        return self._app_key

    @property
    def user_token(self) -> str | None:
        return self._user_token

    @user_token.setter
    def user_token(self, value: str | None) -> None:
        if value is not None and not value.strip():
            raise ValueError("user_token must be a non-empty string or None")
        with self._me_lock:
            self._user_token = value
            self._me = None
        self._transport.set_credentials(self._app_key, value)

    @property
    def can_write(self) -> bool:
        return self._user_token is not None

    def require_write_access(self) -> None:
        """
        Raises:
            ReadOnlyAccessError: If the session has no user token
        """
        if not self.can_write:
            raise ReadOnlyAccessError("A user token is required to modify remote data")

    @property
    def me(self) -> Member:
        """
        The member who owns the user token.

        Raises:
            ReadOnlyAccessError: If the session has no user token
            NotFoundError: If the API does not return the member
        """
        with self._me_lock:
            if self._me is not None:
                return self._me
            if self._user_token is None:
                raise ReadOnlyAccessError(
                    "A user token is required to retrieve the current member"
                )

        payload = self.execute(build_endpoint(EntityRequestType.MEMBER_READ_ME, {"fields": "id"}))
        member_id = payload.get("id") if isinstance(payload, dict) else None
        member = self.retrieve(Member, member_id) if member_id else None
        if member is None:
            raise NotFoundError("The current member could not be determined")

        with self._me_lock:
            self._me = member
        return member

    @property
    def is_connected(self) -> bool:
        return self.handler.is_connected

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def enqueue(
        self,
        endpoint: Endpoint,
        body: dict[str, Any] | None = None,
        *,
        result_type: str | None = None,
        many: bool = False,
    ) -> QueuedRequest:
        """
        Queue a request and prepare it for dispatch.

        The request takes its place in the queue first and is then
        prepared; the handler waits on its readiness gate in between.

        Raises:
            ReadOnlyAccessError: For writes without a user token
            SerializationError: If the body cannot be serialized
        """
        if endpoint.method.is_write:
            self.require_write_access()
        request = QueuedRequest(endpoint, body, result_type=result_type, many=many)
        self.queue.enqueue(request)
        self._prepare(request)
        return request

    def _transport_request(self, request: QueuedRequest) -> TransportRequest:
        text = self.serializer.serialize(request.body) if request.body is not None else None
        return TransportRequest.from_endpoint(request.endpoint, text)

    def _prepare(self, request: QueuedRequest) -> None:
        try:
            request.prepare(self._transport_request(request))
        except Exception as e:
            self.queue.remove(request)
            request.state = RequestState.FAILED
            request.future.set_exception(e)
            raise

    def execute(
        self,
        endpoint: Endpoint,
        body: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """
        Queue a request and block until it completes.

        Returns:
            Deserialized payload

        Raises:
            BoardSyncError: If called from the dispatch thread, where
                waiting would deadlock
            TransportError: If the request fails
        """
        if self.handler.is_dispatch_thread():
            raise BoardSyncError(
                f"Blocking request {endpoint} issued from the dispatch thread"
            )
        request = self.enqueue(endpoint, body)
        return request.future.result(timeout)

    def hold_requests(self) -> None:
        """Stop dispatching; queued and new requests wait until resumed."""
        self.handler.pause()

    def resume_requests(self) -> None:
        """Dispatch everything still queued, then keep going."""
        self.handler.resume()

    def get_unsent_requests(self) -> list[PersistedRequest]:
        """Persistable form of every request not yet dispatched, in queue order."""
        return [r.to_persisted() for r in self.queue if r.state is RequestState.QUEUED]

    def restore_requests(self, requests: Iterable[PersistedRequest]) -> list[QueuedRequest]:
        """
        Re-queue persisted requests.

        Their responses are routed into the cache by result type once they
        complete.

        Returns:
            The queued requests, whose futures report each outcome

        Raises:
            ReadOnlyAccessError: If any request writes and the session has no user token
            SerializationError: If any body cannot be serialized; nothing is queued
        """
        restored = [
            QueuedRequest(
                persisted.to_endpoint(),
                persisted.body,
                result_type=persisted.result_type,
                many=persisted.many,
                restored=True,
            )
            for persisted in requests
        ]
        if any(r.method.is_write for r in restored):
            self.require_write_access()
        # Serialize the whole batch up front so a bad body queues nothing
        prepared = [self._transport_request(r) for r in restored]

        was_active = self.handler.is_active
        self.handler.pause()
        try:
            self.queue.bulk_enqueue(restored)
            for request, transport_request in zip(restored, prepared):
                request.prepare(transport_request)
        finally:
            if was_active:
                self.handler.resume()
        logger.info("Restored %d requests", len(restored))
        return restored

    def _route_response(self, request: QueuedRequest, payload: Any) -> None:
        if not request.restored or not request.result_type or payload is None:
            return
        entity_type = get_entity_type(request.result_type)
        items = payload if isinstance(payload, list) else [payload]
        for item in items:
            if isinstance(item, dict):
                self._materialize(entity_type, item)

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    @staticmethod
    def _entity_type(kind: str | type[EntityT]) -> type[Any]:
        return get_entity_type(kind) if isinstance(kind, str) else kind

    def resolve(self, kind: str | type[EntityT], identifier: str) -> Any:
        """
        Cached entity for an identifier, constructed (not fetched) if absent.

        Used for references between entities; the entity loads lazily.
        """
        entity_type = self._entity_type(kind)
        strategy = entity_type.construction
        return self.cache.find(
            lambda e: strategy.matches(e, entity_type, identifier),
            lambda: strategy.construct(entity_type, identifier, self),
        )

    def retrieve(self, kind: str | type[EntityT], identifier: str) -> Any:
        """
        Fetch an entity by identifier (or name/username where supported).

        Returns the cached instance if there is one; otherwise builds and
        verifies a new one.

        Returns:
            The entity, or None if it does not exist

        Raises:
            ValueError: If identifier is empty
            TransportError: If verification fails; nothing is cached
        """
        if not identifier or not identifier.strip():
            raise ValueError("identifier must be a non-empty string")
        entity_type = self._entity_type(kind)
        strategy = entity_type.construction
        try:
            return self.cache.find(
                lambda e: strategy.matches(e, entity_type, identifier),
                lambda: self._verify(entity_type, identifier),
            )
        except NotFoundError:
            logger.info("%s '%s' not found", entity_type.kind, identifier)
            return None

    def _verify(self, entity_type: type[Entity], identifier: str) -> Entity:
        strategy = entity_type.construction
        entity = strategy.construct(entity_type, identifier, self)
        try:
            strategy.verify(entity)
        except Exception:
            self.cache.remove(entity)
            raise
        return entity

    def fetch_list(self, endpoint: Endpoint, kind: str) -> list[Any]:
        """
        Fetch a collection and merge each item into its cached entity.

        Raises:
            SerializationError: If the payload is not a list
        """
        payload = self.execute(endpoint)
        if not isinstance(payload, list):
            raise SerializationError(
                f"Expected a list from {endpoint}", payload_type=type(payload).__name__
            )
        entity_type = get_entity_type(kind)
        return [self._materialize(entity_type, item) for item in payload if isinstance(item, dict)]

    def _materialize(self, entity_type: type[Entity], data: dict[str, Any]) -> Entity:
        identifier = data.get("id")
        if not identifier:
            raise SerializationError(f"{entity_type.kind} payload without an id")

        strategy = entity_type.construction
        created: list[Entity] = []

        def factory() -> Entity:
            entity = strategy.construct(entity_type, identifier, self, data=data)
            created.append(entity)
            return entity

        try:
            entity = self.cache.find(
                lambda e: strategy.matches(e, entity_type, identifier), factory
            )
            if entity is None:
                raise BoardSyncError(f"Could not cache {entity_type.kind} {identifier}")
            if entity not in created:
                entity.apply_json(data)
        except Exception as e:
            for candidate in created:
                self.cache.remove(candidate)
            logger.warning("Applying %s %s failed: %s", entity_type.kind, identifier, e)
            raise
        return entity

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop the handler thread and release the transport."""
        self.handler.stop()
        if self._owns_transport and isinstance(self._transport, HttpTransport):
            self._transport.close()

    def __enter__(self) -> BoardService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"BoardService(key={mask_secret(self._app_key)}, token={mask_secret(self._user_token)})"
