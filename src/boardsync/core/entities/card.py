"""Cards."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from boardsync.core.entities.action import ActionType
from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import CardContext
from boardsync.core.sync.rules import NonEmptyStringRule, PositionRule
from boardsync.core.transport.endpoints import EntityRequestType

if TYPE_CHECKING:
    from boardsync.core.entities.action import Action
    from boardsync.core.entities.checklist import CheckList
    from boardsync.core.service import BoardService


@register_entity("card")
class Card(Entity):
    """
    A card on a board.

    Example:
        >>> card = service.retrieve(Card, "5f1a2b3c4d5e6f7a8b9c0d1e")
        >>> card.name = "Ship it"
        >>> card.position = Position.TOP
        >>> card.submit()
    """

    context_type = CardContext
    update_actions = frozenset({
        ActionType.UPDATE_CARD,
        ActionType.UPDATE_CARD_CLOSED,
        ActionType.UPDATE_CARD_DESC,
        ActionType.UPDATE_CARD_ID_LIST,
        ActionType.UPDATE_CARD_NAME,
    })

    board = synced_property()
    description = synced_property()
    due_date = synced_property()
    is_archived = synced_property()
    is_complete = synced_property()
    is_subscribed = synced_property()
    last_activity = synced_property()
    list_id = synced_property()
    member_ids = synced_property()
    name = synced_property()
    position = synced_property()
    short_id = synced_property()
    short_url = synced_property()
    url = synced_property()

    def __init__(
        self,
        identifier: str,
        service: BoardService,
        *,
        data: dict[str, Any] | None = None,
        register: bool = True,
    ) -> None:
        super().__init__(identifier, service, data=data, register=register)
        self.field("name").add_rule(NonEmptyStringRule())
        self.field("position").add_rule(PositionRule())

    @property
    def checklists(self) -> list[CheckList]:
        return self._collection(EntityRequestType.CARD_READ_CHECKLISTS, "checklist")

    @property
    def actions(self) -> list[Action]:
        return self._collection(EntityRequestType.CARD_READ_ACTIONS, "action")

    def __str__(self) -> str:
        return str(self.name)
