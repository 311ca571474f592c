"""Checklists."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import CheckListContext
from boardsync.core.sync.rules import NonEmptyStringRule, PositionRule

if TYPE_CHECKING:
    from boardsync.core.service import BoardService


@register_entity("checklist")
class CheckList(Entity):
    context_type = CheckListContext

    board = synced_property()
    card = synced_property()
    name = synced_property()
    position = synced_property()

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

    def __str__(self) -> str:
        return str(self.name)
