"""
Remote entities.

Importing this package registers every entity kind.
"""

from boardsync.core.entities.action import Action, ActionType
from boardsync.core.entities.base import Entity, synced_property
from boardsync.core.entities.board import Board
from boardsync.core.entities.card import Card
from boardsync.core.entities.checklist import CheckList
from boardsync.core.entities.construction import (
    ConstructionStrategy,
    IdentifierStrategy,
    ParsedStrategy,
    TokenStrategy,
)
from boardsync.core.entities.member import Member
from boardsync.core.entities.organization import Organization
from boardsync.core.entities.registry import get_entity_type, list_entity_kinds, register_entity
from boardsync.core.entities.token import Token
from boardsync.core.sync.values import Position

__all__ = [
    "Action",
    "ActionType",
    "Board",
    "Card",
    "CheckList",
    "ConstructionStrategy",
    "Entity",
    "IdentifierStrategy",
    "Member",
    "Organization",
    "ParsedStrategy",
    "Position",
    "Token",
    "TokenStrategy",
    "get_entity_type",
    "list_entity_kinds",
    "register_entity",
    "synced_property",
]
