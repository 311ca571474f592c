"""
Endpoint factory.

Maps every request kind the entities issue to an HTTP verb and a path
template. ``build_endpoint`` is a pure function: placeholders (keys starting
with ``_``) are substituted into the path, all other parameters become query
parameters.

Example:
    >>> build_endpoint(EntityRequestType.CARD_READ_REFRESH, {"_id": "abc", "fields": "name"})
    Endpoint(method=<RequestMethod.GET: 'GET'>, segments=('cards', 'abc'), params={'fields': 'name'})
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from boardsync.core.requests.models import Endpoint, RequestMethod


class EntityRequestType(str, Enum):
    """Every request kind issued by the synchronization contexts."""

    ACTION_READ_REFRESH = "action_read_refresh"
    ACTION_WRITE_DELETE = "action_write_delete"
    BOARD_READ_REFRESH = "board_read_refresh"
    BOARD_READ_CARDS = "board_read_cards"
    BOARD_READ_ACTIONS = "board_read_actions"
    BOARD_WRITE_UPDATE = "board_write_update"
    BOARD_WRITE_DELETE = "board_write_delete"
    CARD_READ_REFRESH = "card_read_refresh"
    CARD_READ_ACTIONS = "card_read_actions"
    CARD_READ_CHECKLISTS = "card_read_checklists"
    CARD_WRITE_UPDATE = "card_write_update"
    CARD_WRITE_DELETE = "card_write_delete"
    CHECKLIST_READ_REFRESH = "checklist_read_refresh"
    CHECKLIST_WRITE_UPDATE = "checklist_write_update"
    CHECKLIST_WRITE_DELETE = "checklist_write_delete"
    MEMBER_READ_REFRESH = "member_read_refresh"
    MEMBER_READ_ME = "member_read_me"
    MEMBER_WRITE_UPDATE = "member_write_update"
    ORGANIZATION_READ_REFRESH = "organization_read_refresh"
    ORGANIZATION_READ_BOARDS = "organization_read_boards"
    ORGANIZATION_READ_ACTIONS = "organization_read_actions"
    ORGANIZATION_WRITE_UPDATE = "organization_write_update"
    ORGANIZATION_WRITE_DELETE = "organization_write_delete"
    TOKEN_READ_REFRESH = "token_read_refresh"
    TOKEN_WRITE_DELETE = "token_write_delete"


_GET = RequestMethod.GET
_PUT = RequestMethod.PUT
_DELETE = RequestMethod.DELETE

# kind -> (method, path template)
_ROUTES: dict[EntityRequestType, tuple[RequestMethod, tuple[str, ...]]] = {
    EntityRequestType.ACTION_READ_REFRESH: (_GET, ("actions", "{_id}")),
    EntityRequestType.ACTION_WRITE_DELETE: (_DELETE, ("actions", "{_id}")),
    EntityRequestType.BOARD_READ_REFRESH: (_GET, ("boards", "{_id}")),
    EntityRequestType.BOARD_READ_CARDS: (_GET, ("boards", "{_id}", "cards")),
    EntityRequestType.BOARD_READ_ACTIONS: (_GET, ("boards", "{_id}", "actions")),
    EntityRequestType.BOARD_WRITE_UPDATE: (_PUT, ("boards", "{_id}")),
    EntityRequestType.BOARD_WRITE_DELETE: (_DELETE, ("boards", "{_id}")),
    EntityRequestType.CARD_READ_REFRESH: (_GET, ("cards", "{_id}")),
    EntityRequestType.CARD_READ_ACTIONS: (_GET, ("cards", "{_id}", "actions")),
    EntityRequestType.CARD_READ_CHECKLISTS: (_GET, ("cards", "{_id}", "checklists")),
    EntityRequestType.CARD_WRITE_UPDATE: (_PUT, ("cards", "{_id}")),
    EntityRequestType.CARD_WRITE_DELETE: (_DELETE, ("cards", "{_id}")),
    EntityRequestType.CHECKLIST_READ_REFRESH: (_GET, ("checklists", "{_id}")),
    EntityRequestType.CHECKLIST_WRITE_UPDATE: (_PUT, ("checklists", "{_id}")),
    EntityRequestType.CHECKLIST_WRITE_DELETE: (_DELETE, ("checklists", "{_id}")),
    EntityRequestType.MEMBER_READ_REFRESH: (_GET, ("members", "{_id}")),
    EntityRequestType.MEMBER_READ_ME: (_GET, ("members", "me")),
    EntityRequestType.MEMBER_WRITE_UPDATE: (_PUT, ("members", "{_id}")),
    EntityRequestType.ORGANIZATION_READ_REFRESH: (_GET, ("organizations", "{_id}")),
    EntityRequestType.ORGANIZATION_READ_BOARDS: (_GET, ("organizations", "{_id}", "boards")),
    EntityRequestType.ORGANIZATION_READ_ACTIONS: (_GET, ("organizations", "{_id}", "actions")),
    EntityRequestType.ORGANIZATION_WRITE_UPDATE: (_PUT, ("organizations", "{_id}")),
    EntityRequestType.ORGANIZATION_WRITE_DELETE: (_DELETE, ("organizations", "{_id}")),
    EntityRequestType.TOKEN_READ_REFRESH: (_GET, ("tokens", "{_token}")),
    EntityRequestType.TOKEN_WRITE_DELETE: (_DELETE, ("tokens", "{_token}")),
}


def build_endpoint(kind: EntityRequestType, params: dict[str, Any] | None = None) -> Endpoint:
    """
    Build the endpoint for a request kind.

    Args:
        kind: Request kind
        params: Path placeholders (``_id``, ``_token``) and query parameters

    Returns:
        Endpoint descriptor

    Raises:
        ValueError: If a placeholder required by the path is missing or empty
    """
    method, template = _ROUTES[kind]
    params = dict(params or {})

    segments: list[str] = []
    for part in template:
        if part.startswith("{") and part.endswith("}"):
            key = part[1:-1]
            value = params.pop(key, None)
            if value is None or value == "":
                raise ValueError(f"Endpoint {kind.value} requires parameter '{key}'")
            segments.append(str(value))
        else:
            segments.append(part)

    query = {k: v for k, v in params.items() if not k.startswith("_")}
    return Endpoint(method, tuple(segments), query)
