"""Organizations (teams that own boards)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from boardsync.core.entities.action import ActionType
from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import OrganizationContext
from boardsync.core.sync.rules import (
    ORGANIZATION_NAME_RULE,
    NonEmptyStringRule,
    NullableRule,
    UriRule,
)
from boardsync.core.transport.endpoints import EntityRequestType

if TYPE_CHECKING:
    from boardsync.core.entities.action import Action
    from boardsync.core.entities.board import Board
    from boardsync.core.service import BoardService


@register_entity("organization")
class Organization(Entity):
    """
    An organization.

    May be addressed by id or by name; ``id`` fetches the real identifier
    when the entity was created from a name.
    """

    context_type = OrganizationContext
    alias_keys = ("name",)
    update_actions = frozenset({ActionType.UPDATE_ORGANIZATION})

    description = synced_property()
    display_name = synced_property()
    is_business_class = synced_property()
    name = synced_property()
    url = synced_property()
    website = synced_property()

    def __init__(
        self,
        identifier: str,
        service: BoardService,
        *,
        data: dict[str, Any] | None = None,
        register: bool = True,
    ) -> None:
        super().__init__(identifier, service, data=data, register=register)
        self.field("name").add_rule(ORGANIZATION_NAME_RULE)
        self.field("display_name").add_rule(NonEmptyStringRule())
        self.field("website").add_rule(NullableRule(UriRule()))

    @property
    def boards(self) -> list[Board]:
        return self._collection(EntityRequestType.ORGANIZATION_READ_BOARDS, "board")

    @property
    def actions(self) -> list[Action]:
        return self._collection(EntityRequestType.ORGANIZATION_READ_ACTIONS, "action")

    def __str__(self) -> str:
        return str(self.display_name)
