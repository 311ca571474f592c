"""
Entity cache.

Keeps at most one live entity per remote object. Entries are weak
references: the cache never keeps an entity alive, and collected entities
drop out on the next structural access.

Lookups take a predicate rather than a key because entities can be found by
identifier or by alias (organization name, username, token value), and the
identifier of an entity constructed by alias changes after its first fetch.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")


class EntityCache(Generic[E]):
    """
    Weak, thread-safe registry of live entities.

    Example:
        >>> cache = EntityCache()
        >>> card = cache.find(lambda e: e.matches(Card, "abc"), lambda: Card("abc", service))
        >>> cache.find(lambda e: e.matches(Card, "abc")) is card
        True
    """

    def __init__(self) -> None:
        self._entries: list[weakref.ref[E]] = []
        self._lock = threading.Lock()

    def _live(self) -> list[E]:
        # Caller holds _lock; prunes collected entries
        live: list[E] = []
        kept: list[weakref.ref[E]] = []
        for ref in self._entries:
            entity = ref()
            if entity is not None:
                live.append(entity)
                kept.append(ref)
        self._entries = kept
        return live

    def _find_locked(self, predicate: Callable[[E], bool]) -> E | None:
        for entity in self._live():
            if predicate(entity):
                return entity
        return None

    def add(self, entity: E) -> None:
        """Register an entity; adding the same instance twice is a no-op."""
        with self._lock:
            if any(existing is entity for existing in self._live()):
                return
            self._entries.append(weakref.ref(entity))
        logger.debug("Cached %r", entity)

    def remove(self, entity: E) -> bool:
        """Drop an entity. Returns False if it was not cached."""
        with self._lock:
            for index, ref in enumerate(self._entries):
                if ref() is entity:
                    del self._entries[index]
                    logger.debug("Evicted %r", entity)
                    return True
        return False

    def find(
        self,
        predicate: Callable[[E], bool],
        factory: Callable[[], E | None] | None = None,
    ) -> E | None:
        """
        Return the cached entity matching ``predicate``, constructing one if needed.

        The factory runs outside the lock, so two threads may both construct a
        candidate. Registration is serialized: the first candidate registered
        wins and every caller receives it.

        Args:
            predicate: Selects the entity
            factory: Builds a new entity; may return None (nothing registered)

        Returns:
            The single live representative, or None
        """
        with self._lock:
            existing = self._find_locked(predicate)
        if existing is not None or factory is None:
            return existing

        candidate = factory()
        if candidate is None:
            return None

        with self._lock:
            winner = self._find_locked(predicate)
            if winner is not None and winner is not candidate:
                self._entries = [ref for ref in self._entries if ref() is not candidate]
                logger.debug("Discarded duplicate %r", candidate)
                return winner
            if winner is None:
                self._entries.append(weakref.ref(candidate))
                logger.debug("Cached %r", candidate)
        return candidate

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._live())

    def __iter__(self) -> Iterator[E]:
        with self._lock:
            snapshot = self._live()
        return iter(snapshot)

    def __repr__(self) -> str:
        return f"EntityCache({len(self)} entities)"
