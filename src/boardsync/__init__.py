"""
boardsync - Synchronizing client for board/card project-management APIs

Typed entities that lazily fetch, cache and write back remote objects
through a queued request pipeline.
"""

__version__ = "0.3.0-dev"

# Re-export the public API for convenience
from boardsync.core.config.models import ServiceConfig
from boardsync.core.entities import (
    Action,
    ActionType,
    Board,
    Card,
    CheckList,
    Member,
    Organization,
    Position,
    Token,
)
from boardsync.core.service import BoardService

__all__ = [
    "Action",
    "ActionType",
    "Board",
    "BoardService",
    "Card",
    "CheckList",
    "Member",
    "Organization",
    "Position",
    "ServiceConfig",
    "Token",
    "__version__",
]
