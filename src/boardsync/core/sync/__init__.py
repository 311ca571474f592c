"""
Entity synchronization: snapshots, property tables, fields and contexts.
"""

from boardsync.core.sync.context import SynchronizationContext
from boardsync.core.sync.contexts import (
    ActionContext,
    BoardContext,
    CardContext,
    CheckListContext,
    MemberContext,
    OrganizationContext,
    TokenContext,
)
from boardsync.core.sync.field import Field
from boardsync.core.sync.properties import Property, PropertyTable
from boardsync.core.sync.values import Position

__all__ = [
    "ActionContext",
    "BoardContext",
    "CardContext",
    "CheckListContext",
    "Field",
    "MemberContext",
    "OrganizationContext",
    "Position",
    "Property",
    "PropertyTable",
    "SynchronizationContext",
    "TokenContext",
]
