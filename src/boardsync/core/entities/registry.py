"""
Entity kind registry.

Maps the kind names used in request result types, persisted requests and
property references ("card", "board", ...) to entity classes.

- Entities are registered with a decorator at import time
- Lookup by kind raises ValueError for unknown kinds
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from boardsync.core.entities.base import Entity

EntityT = TypeVar("EntityT", bound="Entity")

_entities: dict[str, type[Entity]] = {}


def register_entity(kind: str) -> Callable[[type[EntityT]], type[EntityT]]:
    """
    Decorator to register an entity class under a kind name.

    Usage:
        @register_entity("card")
        class Card(Entity):
            context_type = CardContext

    Args:
        kind: Kind name; also set as the class's ``kind`` attribute

    Raises:
        ValueError: If the kind is already registered
    """

    def decorator(entity_class: type[EntityT]) -> type[EntityT]:
        if kind in _entities:
            raise ValueError(
                f"Entity kind '{kind}' is already registered. "
                f"Available kinds: {', '.join(_entities.keys())}"
            )
        entity_class.kind = kind
        _entities[kind] = entity_class
        return entity_class

    return decorator


def get_entity_type(kind: str) -> type[Entity]:
    """
    Get the entity class registered for a kind.

    Raises:
        ValueError: If no entity is registered under that kind
    """
    entity_class = _entities.get(kind)
    if entity_class is None:
        available = ", ".join(_entities.keys()) if _entities else "none registered"
        raise ValueError(f"Entity kind '{kind}' not registered. Available kinds: {available}")
    return entity_class


def list_entity_kinds() -> list[str]:
    """All registered kind names, alphabetically."""
    return sorted(_entities.keys())
