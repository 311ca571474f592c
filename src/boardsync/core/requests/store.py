"""
File persistence for unsent requests.

Stores ``PersistedRequest`` models as a JSON array so held requests survive
a process restart. Writes are atomic (temp file + replace), and a file that
cannot be read is never overwritten.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from boardsync.core.exceptions import SerializationError
from boardsync.core.requests.models import PersistedRequest

logger = logging.getLogger(__name__)

_adapter = TypeAdapter(list[PersistedRequest])


class QueueStore:
    """
    JSON file holding persisted requests.

    Example:
        >>> store = QueueStore(Path(".boardsync/queue.json"))
        >>> store.append(service.get_unsent_requests())
        >>> service.restore_requests(store.load())
        >>> store.clear()
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> list[PersistedRequest]:
        """
        Load persisted requests; a missing file yields [].

        Raises:
            SerializationError: If the file cannot be read or parsed; it is
                left untouched
        """
        if not self.path.exists():
            return []
        try:
            return _adapter.validate_json(self.path.read_text())
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.debug("Failed to load persisted requests from %s: %s", self.path, e)
            raise SerializationError(
                f"Cannot read held requests from {self.path}",
                path=str(self.path),
                hint="Fix or move the file aside; it is left unchanged",
            ) from e

    def save(self, requests: list[PersistedRequest]) -> None:
        """Replace the stored requests atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        try:
            temp_path.write_bytes(_adapter.dump_json(requests, indent=2))
            temp_path.replace(self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def append(self, requests: list[PersistedRequest]) -> None:
        """
        Add requests after the ones already stored.

        Raises:
            SerializationError: If the existing file cannot be read
        """
        self.save(self.load() + list(requests))

    def clear(self) -> None:
        """Remove the store file."""
        if self.path.exists():
            self.path.unlink()
