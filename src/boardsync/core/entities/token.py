"""
Tokens: user authorizations granted to an application.

A token is addressed by its secret value. The remote ``id`` is a separate
identifier that is only known after the first fetch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.construction import TokenStrategy
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import TokenContext

if TYPE_CHECKING:
    from boardsync.core.entities.member import Member


@register_entity("token")
class Token(Entity):
    context_type = TokenContext
    construction = TokenStrategy()

    date_created = synced_property()
    date_expires = synced_property()
    label = synced_property("Name of the application the token was issued to.")
    permissions = synced_property()

    @property
    def value(self) -> str:
        """The secret token value."""
        return self._context.identifier

    @property
    def id(self) -> str:
        return str(self.field("token_id").get())

    @property
    def member(self) -> Member | None:
        return self.field("member").get()  # type: ignore[no-any-return]

    def __str__(self) -> str:
        return self._context.display_id
