"""
Value types and conversions for snapshot data.

Snapshots hold wire values (strings, numbers, lists); these helpers convert
them to and from the Python types entities expose.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")


def is_valid_id(value: str | None) -> bool:
    """True for a 24-character hexadecimal remote identifier."""
    return bool(value) and _ID_PATTERN.match(value) is not None  # type: ignore[arg-type]


def creation_date_from_id(value: str) -> datetime:
    """
    Extract the creation time encoded in a remote identifier.

    The first 8 hex digits are a unix timestamp.

    Raises:
        ValueError: If the identifier is not a valid id
    """
    if not is_valid_id(value):
        raise ValueError(f"'{value}' is not a valid identifier")
    return datetime.fromtimestamp(int(value[:8], 16), tz=timezone.utc)


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp such as ``2024-03-01T12:00:00.000Z``."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_datetime(value: datetime | None) -> str | None:
    """Format a datetime the way the API emits them (UTC, milliseconds, Z)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class Position:
    """
    Ordering position of a card or checklist.

    Either a positive number or one of the named positions ``top`` and
    ``bottom``, which the server resolves on write.

    Example:
        >>> Position(16384).value
        16384.0
        >>> Position.TOP.to_json()
        'top'
    """

    TOP: Position
    BOTTOM: Position

    __slots__ = ("_value", "_named")

    def __init__(self, value: float | str) -> None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("top", "bottom"):
                self._named: str | None = lowered
                self._value = 0.0 if lowered == "top" else float("inf")
                return
            value = float(lowered)
        self._named = None
        self._value = float(value)

    @property
    def value(self) -> float:
        return self._value

    @property
    def is_named(self) -> bool:
        return self._named is not None

    @property
    def is_valid(self) -> bool:
        """Named positions are always valid; numbers must be positive."""
        return self._named is not None or self._value > 0

    @classmethod
    def from_json(cls, value: Any) -> Position | None:
        if value is None:
            return None
        return cls(value)

    def to_json(self) -> float | str:
        return self._named if self._named is not None else self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return self._named == other._named and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._named, self._value))

    def __lt__(self, other: Position) -> bool:
        return self._value < other._value

    def __repr__(self) -> str:
        return f"Position({self.to_json()!r})"


Position.TOP = Position("top")
Position.BOTTOM = Position("bottom")
