"""
Entity base class.

An entity is a thin typed facade over one synchronization context. Every
property is a ``Field`` bound to the context; the entity adds identity,
cache registration and change subscriptions. All instances that stand for
the same remote object are the same Python object (see ``EntityCache``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar

from boardsync.core.entities.construction import ConstructionStrategy, IdentifierStrategy
from boardsync.core.entities.registry import get_entity_type
from boardsync.core.sync.context import SynchronizationContext
from boardsync.core.sync.field import Field
from boardsync.core.sync.values import creation_date_from_id, is_valid_id
from boardsync.core.transport.endpoints import EntityRequestType, build_endpoint

if TYPE_CHECKING:
    from boardsync.core.entities.action import Action
    from boardsync.core.service import BoardService

logger = logging.getLogger(__name__)

UpdateCallback = Callable[["Entity", list[str]], None]


class synced_property:
    """
    Descriptor exposing one context property through the entity's field.

    Reads refresh a stale context first; writes validate and stage the
    value. The attribute name must match a property of the entity's context.
    """

    def __init__(self, doc: str | None = None) -> None:
        self.__doc__ = doc
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Entity | None, owner: type) -> Any:
        if instance is None:
            return self
        return instance.field(self.name).get()

    def __set__(self, instance: Entity, value: Any) -> None:
        instance.field(self.name).set(value)


class Entity:
    """
    Base class for remote entities.

    Subclasses set ``context_type`` and declare their properties with
    ``synced_property``; the kind name comes from ``register_entity``.

    Attributes:
        kind: Registered kind name
        context_type: Synchronization context class backing the entity
        construction: How the service matches, builds and verifies entities
        alias_keys: Snapshot keys that also identify the entity (names)
        update_actions: Action types whose payload ``apply_action`` merges
    """

    kind: ClassVar[str] = ""
    context_type: ClassVar[type[SynchronizationContext]] = SynchronizationContext
    construction: ClassVar[ConstructionStrategy] = IdentifierStrategy()
    alias_keys: ClassVar[tuple[str, ...]] = ()
    update_actions: ClassVar[frozenset[Any]] = frozenset()

    def __init__(
        self,
        identifier: str,
        service: BoardService,
        *,
        data: dict[str, Any] | None = None,
        register: bool = True,
    ) -> None:
        """
        Create an entity.

        Nothing is fetched here; the first property read loads the data.

        Args:
            identifier: Remote identifier (or name where the API accepts one)
            service: Owning service
            data: Prefetched snapshot
            register: Add the entity to the service's cache

        Raises:
            ValueError: If identifier is empty
        """
        if not identifier:
            raise ValueError(f"{type(self).__name__} requires an identifier")
        self._service = service
        self._callbacks: list[UpdateCallback] = []
        self._context = self.context_type(identifier, service, data=data)
        self._fields: dict[str, Field[Any]] = {
            name: Field(self._context, name, prop.rules)
            for name, prop in self.context_type.properties.items()
        }
        self._context.subscribe(self._synchronized)
        if register:
            service.cache.add(self)

    @property
    def context(self) -> SynchronizationContext:
        return self._context

    @property
    def service(self) -> BoardService:
        return self._service

    @property
    def id(self) -> str:
        """Remote identifier; fetches first if the entity was addressed by name."""
        if self._context.tracks_remote_id and not is_valid_id(self._context.identifier):
            self._context.synchronize()
        return self._context.identifier

    @property
    def creation_date(self) -> datetime:
        """Creation time encoded in the identifier."""
        return creation_date_from_id(self.id)

    @property
    def is_deleted(self) -> bool:
        return self._context.is_deleted

    @property
    def is_dirty(self) -> bool:
        return self._context.is_dirty

    @property
    def last_submit_error(self) -> BaseException | None:
        return self._context.last_submit_error

    def field(self, name: str) -> Field[Any]:
        """
        Field for a property name.

        Raises:
            KeyError: If the entity has no such property
        """
        try:
            return self._fields[name]
        except KeyError:
            raise KeyError(
                f"{self.kind} has no property '{name}'. Available: {', '.join(self._fields)}"
            ) from None

    @property
    def fields(self) -> dict[str, Field[Any]]:
        return dict(self._fields)

    def matches(self, entity_type: type[Entity], identifier: str) -> bool:
        """Whether this entity is of ``entity_type`` and known as ``identifier``."""
        if not isinstance(self, entity_type):
            return False
        if self._context.identifier == identifier:
            return True
        return any(self._context.peek(key) == identifier for key in self.alias_keys)

    # ------------------------------------------------------------------
    # Synchronization
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Expire the snapshot; the next read fetches."""
        self._context.expire()

    def synchronize(self, force: bool = False) -> bool:
        return self._context.synchronize(force=force)

    def submit(self, timeout: float | None = None) -> None:
        """Send pending writes and wait for them."""
        self._context.submit_data(timeout=timeout)

    def delete(self) -> None:
        """Delete the remote object and drop the entity from the cache."""
        self._context.delete()
        self._service.cache.remove(self)

    def apply_json(self, data: dict[str, Any]) -> None:
        """Merge data obtained outside the entity's own refresh."""
        self._context.merge(data)
        self.parse()

    def apply_action(self, action: Action) -> bool:
        """
        Merge the entity data embedded in an update action.

        Only actions whose type is in ``update_actions`` and whose payload
        names this entity are applied.

        Returns:
            True if the action was applied
        """
        if action.type not in self.update_actions:
            return False
        payload = action.data.get(self.kind)
        if not isinstance(payload, dict) or payload.get("id") != self.id:
            return False
        self.apply_json(payload)
        return True

    def _collection(self, request: EntityRequestType, kind: str) -> list[Any]:
        # Items come back as full snapshots and are merged into cached entities
        params: dict[str, Any] = {"_id": self.id}
        fields = get_entity_type(kind).context_type.download_fields
        if fields:
            params["fields"] = ",".join(fields)
        return self._service.fetch_list(build_endpoint(request, params), kind)

    def parse(self) -> None:
        """Derive cached values from the snapshot; runs after every change."""

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def on_updated(self, callback: UpdateCallback) -> None:
        """Call ``callback(entity, property_names)`` whenever properties change."""
        self._callbacks.append(callback)

    def _synchronized(self, names: list[str]) -> None:
        self.parse()
        for callback in list(self._callbacks):
            callback(self, names)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._context.display_id!r})"
