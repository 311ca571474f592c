"""
Validation rules for field writes.

A rule inspects a candidate value and returns an error message, or None to
accept it. Rules compose: ``NullableRule`` lets None through to an inner
rule, ``AllOf`` chains several. A field runs its rules in order and rejects
the write on the first message.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlparse

from boardsync.core.sync.values import Position


@runtime_checkable
class Rule(Protocol):
    """Protocol for validation rules."""

    @property
    def name(self) -> str:
        """Short identifier reported in validation errors."""
        ...

    def validate(self, value: Any) -> str | None:
        """Return an error message for an invalid value, None otherwise."""
        ...


class NotNullRule:
    """Rejects None."""

    name = "not_null"

    def validate(self, value: Any) -> str | None:
        if value is None:
            return "value cannot be null"
        return None


class NonEmptyStringRule:
    """Requires a string with at least one non-whitespace character."""

    name = "non_empty_string"

    def validate(self, value: Any) -> str | None:
        if not isinstance(value, str) or not value.strip():
            return "value must be a non-empty string"
        return None


class MaxLengthRule:
    """Limits string length."""

    def __init__(self, max_length: int) -> None:
        if max_length < 1:
            raise ValueError("max_length must be >= 1")
        self.max_length = max_length

    @property
    def name(self) -> str:
        return f"max_length({self.max_length})"

    def validate(self, value: Any) -> str | None:
        if isinstance(value, str) and len(value) > self.max_length:
            return f"value must be at most {self.max_length} characters"
        return None


class PatternRule:
    """Requires a string matching a regular expression (full match)."""

    def __init__(self, pattern: str, description: str) -> None:
        self._pattern = re.compile(pattern)
        self.description = description

    @property
    def name(self) -> str:
        return f"pattern({self._pattern.pattern})"

    def validate(self, value: Any) -> str | None:
        if not isinstance(value, str) or self._pattern.fullmatch(value) is None:
            return f"value must be {self.description}"
        return None


class UriRule:
    """Requires an absolute http(s) URI."""

    name = "uri"

    def validate(self, value: Any) -> str | None:
        if not isinstance(value, str):
            return "value must be a URI string"
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return f"'{value}' is not a well-formed http(s) URI"
        return None


class EnumRule:
    """Requires membership in a fixed set of values."""

    def __init__(self, allowed: Iterable[Any]) -> None:
        self.allowed = tuple(allowed)
        if not self.allowed:
            raise ValueError("EnumRule needs at least one allowed value")

    @property
    def name(self) -> str:
        return "enum"

    def validate(self, value: Any) -> str | None:
        if value not in self.allowed:
            options = ", ".join(repr(a) for a in self.allowed)
            return f"value must be one of {options}"
        return None


class PositionRule:
    """Requires a valid ``Position`` (named, or a positive number)."""

    name = "position"

    def validate(self, value: Any) -> str | None:
        if not isinstance(value, Position):
            return "value must be a Position"
        if not value.is_valid:
            return "position must be 'top', 'bottom' or a positive number"
        return None


class NullableRule:
    """Accepts None, otherwise defers to the wrapped rule."""

    def __init__(self, rule: Rule) -> None:
        self.rule = rule

    @property
    def name(self) -> str:
        return f"nullable({self.rule.name})"

    def validate(self, value: Any) -> str | None:
        if value is None:
            return None
        return self.rule.validate(value)


class AllOf:
    """Runs several rules in order; the first message wins."""

    def __init__(self, *rules: Rule) -> None:
        self.rules = rules

    @property
    def name(self) -> str:
        return "all_of(" + ", ".join(r.name for r in self.rules) + ")"

    def validate(self, value: Any) -> str | None:
        for rule in self.rules:
            if (message := rule.validate(value)) is not None:
                return message
        return None


# Organization names and usernames: lowercase letters, digits and underscores
ORGANIZATION_NAME_RULE = PatternRule(
    r"[a-z0-9_]{3,}",
    "at least 3 lowercase letters, digits or underscores",
)
USERNAME_RULE = ORGANIZATION_NAME_RULE
INITIALS_RULE = PatternRule(r"\S{1,4}", "1 to 4 non-space characters")


__all__ = [
    "AllOf",
    "EnumRule",
    "INITIALS_RULE",
    "MaxLengthRule",
    "NonEmptyStringRule",
    "NotNullRule",
    "NullableRule",
    "ORGANIZATION_NAME_RULE",
    "PatternRule",
    "PositionRule",
    "Rule",
    "USERNAME_RULE",
    "UriRule",
]
