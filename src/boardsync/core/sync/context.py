"""
Synchronization context.

One context per live entity. It owns the entity's snapshot (the last known
field values of the remote object), the TTL bookkeeping, the set of locally
dirty properties and the refresh/merge/submit protocol:

- ``synchronize()`` fetches the entity when the snapshot is absent or older
  than the TTL; dirty properties survive the refresh.
- ``merge()`` applies data obtained elsewhere (collections, actions,
  restored requests) without touching dirty state.
- ``set_value()`` stages a write, marks it dirty and schedules a submit;
  only one submit is in flight per context, later writes ride on a
  follow-up submit.
- ``delete()`` removes the remote object and turns the context inert.

Snapshots are copy-on-write: a published dict is never mutated, so readers
can project values without holding the lock.
"""

from __future__ import annotations

import copy
import itertools
import logging
import threading
from collections.abc import Callable
from concurrent.futures import CancelledError, Future
from typing import TYPE_CHECKING, Any, ClassVar

from boardsync.core.exceptions import BoardSyncError, NotFoundError
from boardsync.core.sync.properties import PropertyTable, Snapshot
from boardsync.core.transport.endpoints import EntityRequestType, build_endpoint

if TYPE_CHECKING:
    from boardsync.core.service import BoardService

logger = logging.getLogger(__name__)

Subscriber = Callable[[list[str]], None]


class SynchronizationContext:
    """
    Base class for per-kind synchronization contexts.

    Subclasses declare class-level metadata only: the entity kind, the
    property table, the request kinds for refresh/update/delete and the
    remote fields to download.

    Attributes:
        last_submit_error: Failure of the most recent submit, None after a
            successful one
    """

    kind: ClassVar[str] = ""
    properties: ClassVar[PropertyTable] = PropertyTable([])
    refresh_request: ClassVar[EntityRequestType | None] = None
    update_request: ClassVar[EntityRequestType | None] = None
    delete_request: ClassVar[EntityRequestType | None] = None
    download_fields: ClassVar[tuple[str, ...]] = ()
    identifier_param: ClassVar[str] = "_id"
    # Replace the identifier with the snapshot's "id" after a fetch
    tracks_remote_id: ClassVar[bool] = True

    def __init__(
        self,
        identifier: str,
        service: BoardService,
        data: Snapshot | None = None,
    ) -> None:
        """
        Initialize a context.

        Args:
            identifier: Remote identifier (or name/username where the API accepts it)
            service: Owning service
            data: Prefetched snapshot to start from
        """
        self._service = service
        self._identifier = identifier
        self._data: Snapshot = {}
        self._last_synchronized: float | None = None
        self._dirty: dict[str, int] = {}
        # Latest write version per property; submits never clear it
        self._last_written: dict[str, int] = {}
        self._versions = itertools.count(1)
        self._deleted = False
        self._missing = False
        self._subscribers: list[Subscriber] = []
        self._data_lock = threading.RLock()
        self._refresh_lock = threading.Lock()
        self._submit_lock = threading.RLock()
        self._pending_submit: Future[None] | None = None
        self._resubmit = False
        self.last_submit_error: BaseException | None = None

        if data:
            self.merge(data)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def display_id(self) -> str:
        """Identifier as it may appear in logs."""
        return self._identifier

    @property
    def service(self) -> BoardService:
        return self._service

    @property
    def ttl(self) -> float:
        return self._service.config.sync.item_duration

    @property
    def last_synchronized(self) -> float | None:
        """Clock reading of the last refresh or merge; None if never or expired."""
        return self._last_synchronized

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    @property
    def is_missing(self) -> bool:
        """True when the last refresh found no remote object."""
        return self._missing

    @property
    def is_dirty(self) -> bool:
        with self._data_lock:
            return bool(self._dirty)

    @property
    def dirty_properties(self) -> list[str]:
        with self._data_lock:
            return [name for name in self.properties if name in self._dirty]

    @property
    def is_expired(self) -> bool:
        if self._last_synchronized is None:
            return True
        return self._service.clock() - self._last_synchronized > self.ttl

    @property
    def data(self) -> Snapshot:
        """Deep copy of the current snapshot."""
        with self._data_lock:
            return copy.deepcopy(self._data)

    def peek(self, key: str) -> Any:
        """Raw snapshot value without synchronizing."""
        return self._data.get(key)

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback receiving the names of changed properties."""
        self._subscribers.append(callback)

    def resolve(self, kind: str, identifier: str) -> Any:
        """Entity of ``kind`` for ``identifier`` from the owning service's cache."""
        return self._service.resolve(kind, identifier)

    # ------------------------------------------------------------------
    # Refresh / merge
    # ------------------------------------------------------------------

    def synchronize(self, force: bool = False) -> bool:
        """
        Refresh the snapshot if it is absent or stale.

        Concurrent callers wait for the in-flight refresh and then see its
        result, so one TTL window costs at most one request.

        Args:
            force: Expire first, so a request is issued regardless of TTL

        Returns:
            True if a refresh request was issued

        Raises:
            TransportError: If the refresh fails; the snapshot is unchanged
        """
        if force:
            self.expire()
        if not self._needs_refresh():
            return False

        with self._refresh_lock:
            if not self._needs_refresh():
                return False
            self._refresh()
            return True

    def _needs_refresh(self) -> bool:
        if self._deleted or self.refresh_request is None:
            return False
        if self._last_synchronized is None:
            return True
        if not self._service.config.sync.auto_refresh:
            return False
        return self._service.clock() - self._last_synchronized > self.ttl

    def _refresh(self) -> None:
        if self.refresh_request is None:
            raise BoardSyncError(f"{self.kind} does not support refresh")
        endpoint = build_endpoint(self.refresh_request, self._request_params(with_fields=True))
        logger.debug("Refreshing %s %s", self.kind, self.display_id)
        with self._data_lock:
            started = next(self._versions)

        try:
            payload = self._service.execute(endpoint)
        except NotFoundError:
            logger.info("%s %s was not found", self.kind, self.display_id)
            with self._data_lock:
                self._missing = True
                self._last_synchronized = self._service.clock()
            return

        if not isinstance(payload, dict):
            raise BoardSyncError(
                f"Unexpected payload refreshing {self.kind} {self.display_id}",
                payload_type=type(payload).__name__,
            )
        self._apply(payload, replace=True, written_after=started)

    def merge(self, snapshot: Snapshot) -> list[str]:
        """
        Apply externally obtained data.

        Every non-dirty key present in ``snapshot`` is overwritten regardless
        of TTL; dirty state is untouched. The context counts as freshly
        synchronized afterwards.

        Returns:
            Names of the properties whose values changed
        """
        return self._apply(snapshot, replace=False)

    def expire(self) -> None:
        """Make the next ``synchronize()`` fetch regardless of TTL."""
        with self._data_lock:
            self._last_synchronized = None

    def _apply(
        self, payload: Snapshot, *, replace: bool, written_after: int | None = None
    ) -> list[str]:
        with self._data_lock:
            protected = self.properties.keys_for(self._dirty)
            if written_after is not None:
                # Writes made while the payload was in flight, even if already submitted
                protected |= self.properties.keys_for(
                    name for name, version in self._last_written.items() if version > written_after
                )
            old = self._data
            if replace:
                new = copy.deepcopy(payload)
                for key in protected:
                    if key in old:
                        new[key] = old[key]
                    else:
                        new.pop(key, None)
            else:
                new = dict(old)
                for key, value in payload.items():
                    if key not in protected:
                        new[key] = copy.deepcopy(value)

            changed = {key for key in old.keys() | new.keys() if old.get(key) != new.get(key)}
            self._data = new
            self._last_synchronized = self._service.clock()
            self._missing = False
            remote_id = new.get("id")
            if self.tracks_remote_id and isinstance(remote_id, str) and remote_id:
                self._identifier = remote_id

        names = self.properties.names_for_keys(changed)
        if names:
            self._notify(names)
        return names

    def _notify(self, names: list[str]) -> None:
        for callback in list(self._subscribers):
            callback(names)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def get_value(self, name: str) -> Any:
        """Project a property out of the current snapshot (no refresh)."""
        prop = self.properties[name]
        return prop.getter(self, self._data)

    def set_value(self, name: str, value: Any) -> None:
        """
        Stage a write: update the snapshot, mark the property dirty and,
        with ``auto_submit``, schedule a submit.

        Raises:
            AttributeError: If the property is read-only
            ReadOnlyAccessError: If the session has no user token
            BoardSyncError: If the entity was deleted
        """
        prop = self.properties[name]
        if prop.setter is None:
            raise AttributeError(f"{self.kind}.{name} is read-only")
        if self._deleted:
            raise BoardSyncError(f"Cannot modify deleted {self.kind} {self.display_id}")
        self._service.require_write_access()

        with self._data_lock:
            new = dict(self._data)
            prop.setter(self, new, value)
            changed = any(self._data.get(key) != new.get(key) for key in prop.keys)
            self._data = new
            version = next(self._versions)
            self._dirty[name] = version
            self._last_written[name] = version

        if changed:
            self._notify([name])
        if self._service.config.sync.auto_submit:
            self.schedule_submit()

    def schedule_submit(self) -> Future[None] | None:
        """
        Start submitting dirty properties without waiting.

        If a submit is already in flight, the new writes are sent by a
        follow-up submit once it completes.

        Returns:
            Future resolving when the submit completes, or None if clean
        """
        with self._submit_lock:
            pending = self._pending_submit
            if pending is not None and not pending.done():
                self._resubmit = True
                return pending
            return self._start_submit()

    def submit_data(self, timeout: float | None = None) -> None:
        """
        Submit dirty properties and wait until the context is clean.

        Raises:
            BoardSyncError: If the entity was deleted
            TransportError: If a submit fails; dirty flags stay set, so
                calling again resends the same properties
        """
        if self._deleted:
            raise BoardSyncError(f"Cannot submit deleted {self.kind} {self.display_id}")

        while True:
            with self._submit_lock:
                future = self._pending_submit
                if future is None or future.done():
                    future = self._start_submit()
                    if future is None:
                        return
            future.result(timeout)

    def _start_submit(self) -> Future[None] | None:
        # Caller holds _submit_lock
        with self._data_lock:
            if not self._dirty:
                return None
            versions = dict(self._dirty)
            keys = self.properties.keys_for(versions)
            body = {key: copy.deepcopy(self._data.get(key)) for key in sorted(keys)}

        if self.update_request is None:
            raise BoardSyncError(f"{self.kind} does not support updates")

        endpoint = build_endpoint(self.update_request, self._request_params())
        submission: Future[None] = Future()
        self._pending_submit = submission
        self._resubmit = False
        logger.debug(
            "Submitting %s %s: %s", self.kind, self.display_id, ", ".join(sorted(versions))
        )

        try:
            request = self._service.enqueue(endpoint, body, result_type=self.kind)
        except Exception as e:
            self.last_submit_error = e
            submission.set_exception(e)
            raise

        request.future.add_done_callback(
            lambda f: self._on_submitted(f, versions, submission)
        )
        return submission

    def _on_submitted(
        self, result: Future[Any], versions: dict[str, int], submission: Future[None]
    ) -> None:
        try:
            error = CancelledError("submit cancelled") if result.cancelled() else result.exception()
            if error is not None:
                self.last_submit_error = error
                logger.warning(
                    "Submitting %s %s failed: %s", self.kind, self.display_id, error
                )
                submission.set_exception(error)
                return

            with self._data_lock:
                for name, version in versions.items():
                    # A newer write keeps the property dirty
                    if self._dirty.get(name) == version:
                        del self._dirty[name]
            self.last_submit_error = None

            payload = result.result()
            if isinstance(payload, dict):
                self._apply(payload, replace=False)

            with self._submit_lock:
                if self._resubmit:
                    self._start_submit()
                    self._resubmit = False
            submission.set_result(None)
        except Exception as e:
            logger.warning(
                "Completing submit of %s %s failed: %s", self.kind, self.display_id, e
            )
            if not submission.done():
                submission.set_exception(e)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete(self) -> None:
        """
        Delete the remote object.

        Afterwards ``synchronize()`` is a no-op and writes are rejected.

        Raises:
            ReadOnlyAccessError: If the session has no user token
            TransportError: If the delete request fails
        """
        if self._deleted:
            return
        if self.delete_request is None:
            raise BoardSyncError(f"{self.kind} cannot be deleted")
        self._service.require_write_access()

        endpoint = build_endpoint(self.delete_request, self._request_params())
        self._service.execute(endpoint)

        with self._data_lock:
            self._deleted = True
            self._dirty.clear()
        logger.info("Deleted %s %s", self.kind, self.display_id)

    def _request_params(self, with_fields: bool = False) -> dict[str, Any]:
        params: dict[str, Any] = {self.identifier_param: self._identifier}
        if with_fields and self.download_fields:
            params["fields"] = ",".join(self.download_fields)
        return params

    def __repr__(self) -> str:
        state = "deleted" if self._deleted else ("dirty" if self._dirty else "clean")
        return f"{type(self).__name__}({self.display_id!r}, {state})"
