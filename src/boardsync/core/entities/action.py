"""
Actions: the server's record of what members did.

Actions are read-only apart from deletion. Their ``type`` is parsed from the
fetched data; a deleted action reports ``ActionType.UNKNOWN`` and no
creator.
"""

from __future__ import annotations

import functools
from enum import Enum
from typing import TYPE_CHECKING, Any

from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.construction import ParsedStrategy
from boardsync.core.entities.registry import register_entity
from boardsync.core.sync.contexts import ActionContext

if TYPE_CHECKING:
    from boardsync.core.entities.member import Member
    from boardsync.core.service import BoardService


class ActionType(str, Enum):
    """Action types, valued by their wire strings."""

    UNKNOWN = "unknown"
    ADD_ATTACHMENT_TO_CARD = "addAttachmentToCard"
    ADD_CHECKLIST_TO_CARD = "addChecklistToCard"
    ADD_MEMBER_TO_BOARD = "addMemberToBoard"
    ADD_MEMBER_TO_CARD = "addMemberToCard"
    ADD_MEMBER_TO_ORGANIZATION = "addMemberToOrganization"
    ADD_TO_ORGANIZATION_BOARD = "addToOrganizationBoard"
    COMMENT_CARD = "commentCard"
    COPY_COMMENT_CARD = "copyCommentCard"
    CONVERT_TO_CARD_FROM_CHECK_ITEM = "convertToCardFromCheckItem"
    COPY_BOARD = "copyBoard"
    CREATE_BOARD = "createBoard"
    CREATE_CARD = "createCard"
    COPY_CARD = "copyCard"
    CREATE_LIST = "createList"
    CREATE_ORGANIZATION = "createOrganization"
    DELETE_ATTACHMENT_FROM_CARD = "deleteAttachmentFromCard"
    DELETE_BOARD_INVITATION = "deleteBoardInvitation"
    DELETE_CARD = "deleteCard"
    DELETE_ORGANIZATION_INVITATION = "deleteOrganizationInvitation"
    MAKE_ADMIN_OF_BOARD = "makeAdminOfBoard"
    MAKE_NORMAL_MEMBER_OF_BOARD = "makeNormalMemberOfBoard"
    MAKE_NORMAL_MEMBER_OF_ORGANIZATION = "makeNormalMemberOfOrganization"
    MAKE_OBSERVER_OF_BOARD = "makeObserverOfBoard"
    MEMBER_JOINED = "memberJoinedTrello"
    MOVE_CARD_FROM_BOARD = "moveCardFromBoard"
    MOVE_LIST_FROM_BOARD = "moveListFromBoard"
    MOVE_CARD_TO_BOARD = "moveCardToBoard"
    MOVE_LIST_TO_BOARD = "moveListToBoard"
    REMOVE_ADMIN_FROM_BOARD = "removeAdminFromBoard"
    REMOVE_ADMIN_FROM_ORGANIZATION = "removeAdminFromOrganization"
    REMOVE_CHECKLIST_FROM_CARD = "removeChecklistFromCard"
    REMOVE_FROM_ORGANIZATION_BOARD = "removeFromOrganizationBoard"
    REMOVE_MEMBER_FROM_CARD = "removeMemberFromCard"
    UNCONFIRMED_BOARD_INVITATION = "unconfirmedBoardInvitation"
    UNCONFIRMED_ORGANIZATION_INVITATION = "unconfirmedOrganizationInvitation"
    UPDATE_BOARD = "updateBoard"
    UPDATE_CARD = "updateCard"
    UPDATE_CHECK_ITEM_STATE_ON_CARD = "updateCheckItemStateOnCard"
    UPDATE_CHECKLIST = "updateChecklist"
    UPDATE_MEMBER = "updateMember"
    UPDATE_ORGANIZATION = "updateOrganization"
    UPDATE_CARD_ID_LIST = "updateCard:idList"
    UPDATE_CARD_CLOSED = "updateCard:closed"
    UPDATE_CARD_DESC = "updateCard:desc"
    UPDATE_CARD_NAME = "updateCard:name"

    @classmethod
    def from_wire(cls, value: str | None) -> ActionType:
        """Map a wire string to a type; unrecognized strings map to UNKNOWN."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@functools.total_ordering
@register_entity("action")
class Action(Entity):
    """An action; ordered by date."""

    context_type = ActionContext
    construction = ParsedStrategy()

    date = synced_property("When the action was performed.")

    def __init__(
        self,
        identifier: str,
        service: BoardService,
        *,
        data: dict[str, Any] | None = None,
        register: bool = True,
    ) -> None:
        self._type = ActionType.UNKNOWN
        super().__init__(identifier, service, data=data, register=register)
        self.parse()

    @property
    def type(self) -> ActionType:
        if self.is_deleted:
            return ActionType.UNKNOWN
        self._context.synchronize()
        return self._type

    @property
    def member_creator(self) -> Member | None:
        if self.is_deleted:
            return None
        return self.field("member_creator").get()  # type: ignore[no-any-return]

    @property
    def data(self) -> dict[str, Any]:
        """Type-specific payload; empty for deleted actions."""
        if self.is_deleted:
            return {}
        return self.field("data").get() or {}

    def parse(self) -> None:
        raw = self._context.peek("type")
        action_type = ActionType.from_wire(raw)
        if action_type is ActionType.UPDATE_CARD:
            # The changed field is the single key recorded under data.old
            old = (self._context.peek("data") or {}).get("old") or {}
            if len(old) == 1:
                refined = ActionType.from_wire(f"{raw}:{next(iter(old))}")
                if refined is not ActionType.UNKNOWN:
                    action_type = refined
        self._type = action_type

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Action):
            return NotImplemented
        mine, theirs = self.date, other.date
        if mine is None or theirs is None:
            return False
        return bool(mine < theirs)

    def __str__(self) -> str:
        return f"{self.type.value} on {self.date}"
