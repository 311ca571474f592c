"""
Static per-type property tables.

Each synchronization context class declares one ``PropertyTable`` at import
time. The table maps a property name to a getter that projects the value out
of a snapshot and a setter that writes it back; it is metadata shared by all
instances of the type, never per-instance state.

Example:
    >>> table = PropertyTable([
    ...     Property.value("name", "name"),
    ...     Property.value("due_date", "due", decode=parse_datetime, encode=format_datetime),
    ...     Property.reference("board", "idBoard", "board", read_only=True),
    ... ])
    >>> table.names_for_keys({"idBoard"})
    ['board']
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from boardsync.core.sync.context import SynchronizationContext
    from boardsync.core.sync.rules import Rule

Snapshot = dict[str, Any]
Getter = Callable[["SynchronizationContext", Snapshot], Any]
Setter = Callable[["SynchronizationContext", Snapshot, Any], None]


@dataclass(frozen=True)
class Property:
    """
    One mapped property.

    Attributes:
        name: Python-facing property name
        getter: Projects the value out of a snapshot
        setter: Writes a value into a snapshot; None for read-only properties
        keys: Snapshot keys the property reads and writes (used for dirty
            tracking and change notification)
        rules: Validation rules every field for this property starts with
    """

    name: str
    getter: Getter
    setter: Setter | None = None
    keys: tuple[str, ...] = ()
    rules: tuple[Rule, ...] = ()

    @property
    def read_only(self) -> bool:
        return self.setter is None

    @classmethod
    def value(
        cls,
        name: str,
        key: str,
        *,
        decode: Callable[[Any], Any] | None = None,
        encode: Callable[[Any], Any] | None = None,
        default: Any = None,
        read_only: bool = False,
        rules: Iterable[Rule] = (),
    ) -> Property:
        """Property stored under a single snapshot key, with optional conversion."""

        def getter(context: SynchronizationContext, data: Snapshot) -> Any:
            raw = data.get(key)
            if raw is None:
                return default
            return decode(raw) if decode is not None else raw

        def setter(context: SynchronizationContext, data: Snapshot, value: Any) -> None:
            data[key] = encode(value) if (encode is not None and value is not None) else value

        return cls(name, getter, None if read_only else setter, (key,), tuple(rules))

    @classmethod
    def reference(
        cls,
        name: str,
        key: str,
        kind: str,
        *,
        read_only: bool = False,
        rules: Iterable[Rule] = (),
    ) -> Property:
        """
        Property holding another entity, stored as its identifier.

        Reading resolves the identifier through the service's entity cache
        without fetching it; the referenced entity loads lazily on first
        access of its own properties.
        """

        def getter(context: SynchronizationContext, data: Snapshot) -> Any:
            identifier = data.get(key)
            if not identifier:
                return None
            return context.resolve(kind, identifier)

        def setter(context: SynchronizationContext, data: Snapshot, value: Any) -> None:
            data[key] = value.id if value is not None else None

        return cls(name, getter, None if read_only else setter, (key,), tuple(rules))

    @classmethod
    def listing(cls, name: str, key: str) -> Property:
        """Read-only list property; callers get a copy, never the snapshot's list."""

        def getter(context: SynchronizationContext, data: Snapshot) -> Any:
            return list(data.get(key) or [])

        return cls(name, getter, None, (key,))


class PropertyTable(Mapping[str, Property]):
    """
    Immutable, ordered mapping of property name to ``Property``.

    Raises:
        ValueError: On duplicate property names
    """

    def __init__(self, properties: Iterable[Property]) -> None:
        table: dict[str, Property] = {}
        for prop in properties:
            if prop.name in table:
                raise ValueError(f"Duplicate property '{prop.name}'")
            table[prop.name] = prop
        self._table = MappingProxyType(table)
        self._by_key: dict[str, list[str]] = {}
        for prop in table.values():
            for key in prop.keys:
                self._by_key.setdefault(key, []).append(prop.name)

    def __getitem__(self, name: str) -> Property:
        try:
            return self._table[name]
        except KeyError:
            raise KeyError(
                f"Unknown property '{name}'. Available: {', '.join(self._table)}"
            ) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def keys_for(self, names: Iterable[str]) -> set[str]:
        """Snapshot keys touched by the given properties."""
        keys: set[str] = set()
        for name in names:
            keys.update(self[name].keys)
        return keys

    def names_for_keys(self, keys: Iterable[str]) -> list[str]:
        """Property names affected by changes to the given snapshot keys, in table order."""
        affected: set[str] = set()
        for key in keys:
            affected.update(self._by_key.get(key, ()))
        return [name for name in self._table if name in affected]

    def writable(self) -> list[str]:
        return [name for name, prop in self._table.items() if not prop.read_only]
