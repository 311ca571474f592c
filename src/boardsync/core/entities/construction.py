"""
Entity construction strategies.

When the service needs an entity it asks the entity class's strategy three
things: does a cached entity match this identifier, how is a new one built,
and how is a freshly built one verified before it is handed out.

- ``IdentifierStrategy``: match by identifier or alias, verify by fetching
- ``TokenStrategy``: match by the token's secret value only
- ``ParsedStrategy``: verify by fetching, then let the entity parse its
  payload (actions derive their type from the fetched data)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from boardsync.core.exceptions import NotFoundError

if TYPE_CHECKING:
    from boardsync.core.entities.base import Entity
    from boardsync.core.service import BoardService


@runtime_checkable
class ConstructionStrategy(Protocol):
    """Protocol for entity construction strategies."""

    def matches(self, entity: Entity, entity_type: type[Entity], identifier: str) -> bool:
        """Whether a cached entity stands for ``identifier``."""
        ...

    def construct(
        self,
        entity_type: type[Entity],
        identifier: str,
        service: BoardService,
        data: dict[str, Any] | None = None,
    ) -> Entity:
        """Build an unregistered entity."""
        ...

    def verify(self, entity: Entity) -> None:
        """Make sure the entity exists remotely; raise NotFoundError otherwise."""
        ...


class IdentifierStrategy:
    def matches(self, entity: Entity, entity_type: type[Entity], identifier: str) -> bool:
        return entity.matches(entity_type, identifier)

    def construct(
        self,
        entity_type: type[Entity],
        identifier: str,
        service: BoardService,
        data: dict[str, Any] | None = None,
    ) -> Entity:
        return entity_type(identifier, service, data=data, register=False)

    def verify(self, entity: Entity) -> None:
        entity.synchronize()
        if entity.context.is_missing:
            raise NotFoundError(
                f"{entity.kind} '{entity.context.display_id}' does not exist",
                kind=entity.kind,
            )


class TokenStrategy(IdentifierStrategy):
    """Tokens are keyed by their secret value; their remote id is never a lookup key."""

    def matches(self, entity: Entity, entity_type: type[Entity], identifier: str) -> bool:
        return isinstance(entity, entity_type) and entity.context.identifier == identifier


class ParsedStrategy(IdentifierStrategy):
    """Verifies, then calls ``entity.parse()`` on the fetched data."""

    def verify(self, entity: Entity) -> None:
        super().verify(entity)
        entity.parse()


__all__ = [
    "ConstructionStrategy",
    "IdentifierStrategy",
    "ParsedStrategy",
    "TokenStrategy",
]
