"""Members (user accounts)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import MemberContext
from boardsync.core.sync.rules import INITIALS_RULE, USERNAME_RULE, NonEmptyStringRule

if TYPE_CHECKING:
    from boardsync.core.service import BoardService


@register_entity("member")
class Member(Entity):
    """A member; may be addressed by id or username."""

    context_type = MemberContext
    alias_keys = ("username",)

    avatar_hash = synced_property()
    bio = synced_property()
    full_name = synced_property()
    initials = synced_property()
    is_confirmed = synced_property()
    status = synced_property()
    url = synced_property()
    username = synced_property()

    def __init__(
        self,
        identifier: str,
        service: BoardService,
        *,
        data: dict[str, Any] | None = None,
        register: bool = True,
    ) -> None:
        super().__init__(identifier, service, data=data, register=register)
        self.field("full_name").add_rule(NonEmptyStringRule())
        self.field("initials").add_rule(INITIALS_RULE)
        self.field("username").add_rule(USERNAME_RULE)

    def __str__(self) -> str:
        return str(self.full_name)
