"""
Per-kind synchronization contexts.

Each class binds the generic ``SynchronizationContext`` protocol to one
remote object kind: its request kinds, the fields it downloads and its
property table. Tables are built once at import time.
"""

from __future__ import annotations

from typing import Any

from boardsync.core.sync.context import SynchronizationContext
from boardsync.core.sync.properties import Property, PropertyTable, Snapshot
from boardsync.core.sync.values import Position, format_datetime, parse_datetime
from boardsync.core.transport.endpoints import EntityRequestType


def _position(name: str, key: str = "pos") -> Property:
    return Property.value(
        name, key, decode=Position.from_json, encode=lambda p: p.to_json()
    )


def _is_business_class(context: SynchronizationContext, data: Snapshot) -> Any:
    return bool(data.get("premiumFeatures") or data.get("products"))


class OrganizationContext(SynchronizationContext):
    kind = "organization"
    refresh_request = EntityRequestType.ORGANIZATION_READ_REFRESH
    update_request = EntityRequestType.ORGANIZATION_WRITE_UPDATE
    delete_request = EntityRequestType.ORGANIZATION_WRITE_DELETE
    download_fields = (
        "name",
        "displayName",
        "desc",
        "url",
        "website",
        "products",
        "premiumFeatures",
    )
    properties = PropertyTable([
        Property.value("description", "desc", default=""),
        Property.value("display_name", "displayName"),
        Property("is_business_class", _is_business_class, None, ("premiumFeatures", "products")),
        Property.value("name", "name"),
        Property.value("url", "url", read_only=True),
        Property.value("website", "website"),
    ])


class BoardContext(SynchronizationContext):
    kind = "board"
    refresh_request = EntityRequestType.BOARD_READ_REFRESH
    update_request = EntityRequestType.BOARD_WRITE_UPDATE
    delete_request = EntityRequestType.BOARD_WRITE_DELETE
    download_fields = ("name", "desc", "closed", "idOrganization", "subscribed", "url")
    properties = PropertyTable([
        Property.value("description", "desc", default=""),
        Property.value("is_closed", "closed", default=False),
        Property.value("is_subscribed", "subscribed", default=False),
        Property.value("name", "name"),
        Property.reference("organization", "idOrganization", "organization"),
        Property.value("url", "url", read_only=True),
    ])


class CardContext(SynchronizationContext):
    kind = "card"
    refresh_request = EntityRequestType.CARD_READ_REFRESH
    update_request = EntityRequestType.CARD_WRITE_UPDATE
    delete_request = EntityRequestType.CARD_WRITE_DELETE
    download_fields = (
        "badges",
        "closed",
        "dateLastActivity",
        "desc",
        "due",
        "dueComplete",
        "idBoard",
        "idList",
        "idMembers",
        "idShort",
        "name",
        "pos",
        "shortUrl",
        "subscribed",
        "url",
    )
    properties = PropertyTable([
        Property.reference("board", "idBoard", "board"),
        Property.value("description", "desc", default=""),
        Property.value("due_date", "due", decode=parse_datetime, encode=format_datetime),
        Property.value("is_archived", "closed", default=False),
        Property.value("is_complete", "dueComplete", default=False),
        Property.value("is_subscribed", "subscribed", default=False),
        Property.value("last_activity", "dateLastActivity", decode=parse_datetime, read_only=True),
        Property.value("list_id", "idList"),
        Property.listing("member_ids", "idMembers"),
        Property.value("name", "name"),
        _position("position"),
        Property.value("short_id", "idShort", read_only=True),
        Property.value("short_url", "shortUrl", read_only=True),
        Property.value("url", "url", read_only=True),
    ])


class CheckListContext(SynchronizationContext):
    kind = "checklist"
    refresh_request = EntityRequestType.CHECKLIST_READ_REFRESH
    update_request = EntityRequestType.CHECKLIST_WRITE_UPDATE
    delete_request = EntityRequestType.CHECKLIST_WRITE_DELETE
    download_fields = ("idBoard", "idCard", "name", "pos")
    properties = PropertyTable([
        Property.reference("board", "idBoard", "board"),
        Property.reference("card", "idCard", "card"),
        Property.value("name", "name"),
        _position("position"),
    ])


class MemberContext(SynchronizationContext):
    kind = "member"
    refresh_request = EntityRequestType.MEMBER_READ_REFRESH
    update_request = EntityRequestType.MEMBER_WRITE_UPDATE
    download_fields = (
        "avatarHash",
        "bio",
        "confirmed",
        "fullName",
        "initials",
        "status",
        "url",
        "username",
    )
    properties = PropertyTable([
        Property.value("avatar_hash", "avatarHash", read_only=True),
        Property.value("bio", "bio", default=""),
        Property.value("full_name", "fullName"),
        Property.value("initials", "initials"),
        Property.value("is_confirmed", "confirmed", default=False, read_only=True),
        Property.value("status", "status", read_only=True),
        Property.value("url", "url", read_only=True),
        Property.value("username", "username"),
    ])


class ActionContext(SynchronizationContext):
    kind = "action"
    refresh_request = EntityRequestType.ACTION_READ_REFRESH
    delete_request = EntityRequestType.ACTION_WRITE_DELETE
    download_fields = ("data", "date", "idMemberCreator", "type")
    properties = PropertyTable([
        Property.value("data", "data", decode=dict, read_only=True),
        Property.value("date", "date", decode=parse_datetime, read_only=True),
        Property.reference("member_creator", "idMemberCreator", "member", read_only=True),
        Property.value("type", "type", read_only=True),
    ])


class TokenContext(SynchronizationContext):
    """Tokens are addressed by their secret value, not their id."""

    kind = "token"
    refresh_request = EntityRequestType.TOKEN_READ_REFRESH
    delete_request = EntityRequestType.TOKEN_WRITE_DELETE
    download_fields = ("dateCreated", "dateExpires", "identifier", "idMember", "permissions")
    identifier_param = "_token"
    tracks_remote_id = False
    properties = PropertyTable([
        Property.value("date_created", "dateCreated", decode=parse_datetime, read_only=True),
        Property.value("date_expires", "dateExpires", decode=parse_datetime, read_only=True),
        Property.value("token_id", "id", read_only=True),
        Property.value("label", "identifier", read_only=True),
        Property.reference("member", "idMember", "member", read_only=True),
        Property.listing("permissions", "permissions"),
    ])

    @property
    def display_id(self) -> str:
        token = self.identifier
        return f"{token[:4]}...{token[-4:]}" if len(token) > 8 else "****"


__all__ = [
    "ActionContext",
    "BoardContext",
    "CardContext",
    "CheckListContext",
    "MemberContext",
    "OrganizationContext",
    "TokenContext",
]
