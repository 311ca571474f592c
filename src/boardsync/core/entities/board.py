"""Boards."""

from __future__ import annotations

from typing import TYPE_CHECKING

from boardsync.core.entities.action import ActionType
from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import BoardContext
from boardsync.core.transport.endpoints import EntityRequestType

if TYPE_CHECKING:
    from boardsync.core.entities.action import Action
    from boardsync.core.entities.card import Card


@register_entity("board")
class Board(Entity):
    context_type = BoardContext
    update_actions = frozenset({ActionType.UPDATE_BOARD})

    description = synced_property()
    is_closed = synced_property()
    is_subscribed = synced_property()
    name = synced_property()
    organization = synced_property("Owning organization, or None for personal boards.")
    url = synced_property()

    @property
    def cards(self) -> list[Card]:
        """Open cards on the board, merged into the cache."""
        return self._collection(EntityRequestType.BOARD_READ_CARDS, "card")

    @property
    def actions(self) -> list[Action]:
        return self._collection(EntityRequestType.BOARD_READ_ACTIONS, "action")

    def __str__(self) -> str:
        return str(self.name)
