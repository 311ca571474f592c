"""
Field: a lazily synchronized property slot.

A field is bound to one property of one synchronization context. Reading
refreshes the context if its snapshot is stale; writing validates, stages
the value in the snapshot and lets the context schedule a submit. The field
itself never caches a value.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from boardsync.core.exceptions import FieldValidationError
from boardsync.core.sync.rules import Rule

if TYPE_CHECKING:
    from boardsync.core.sync.context import SynchronizationContext

T = TypeVar("T")


class Field(Generic[T]):
    """
    Typed view over one snapshot property.

    Example:
        >>> name = Field(context, "name").add_rule(NonEmptyStringRule())
        >>> name.value = "Release checklist"
        >>> name.value
        'Release checklist'
    """

    def __init__(
        self,
        context: SynchronizationContext,
        name: str,
        rules: Iterable[Rule] = (),
    ) -> None:
        # Fail fast on unknown property names
        context.properties[name]
        self._context = context
        self.name = name
        self._rules: list[Rule] = list(rules)

    @property
    def rules(self) -> tuple[Rule, ...]:
        return tuple(self._rules)

    def add_rule(self, rule: Rule) -> Field[T]:
        """Attach another validation rule; returns the field for chaining."""
        self._rules.append(rule)
        return self

    def validate(self, value: Any) -> None:
        """
        Run every rule against a candidate value.

        Raises:
            FieldValidationError: On the first rule that rejects the value
        """
        for rule in self._rules:
            message = rule.validate(value)
            if message is not None:
                raise FieldValidationError(self.name, value, rule.name, message)

    def get(self) -> T:
        """Refresh the context if stale, then project the property."""
        self._context.synchronize()
        return self._context.get_value(self.name)  # type: ignore[no-any-return]

    def set(self, value: T) -> None:
        """
        Validate and stage a new value.

        Raises:
            FieldValidationError: If a rule rejects the value
            ReadOnlyAccessError: If the session has no user token
        """
        self.validate(value)
        self._context.set_value(self.name, value)

    @property
    def value(self) -> T:
        return self.get()

    @value.setter
    def value(self, value: T) -> None:
        self.set(value)

    def __repr__(self) -> str:
        return f"Field({self._context.kind}.{self.name})"
