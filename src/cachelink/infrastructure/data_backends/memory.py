"""In-memory data backend implementation."""

import asyncio
import logging
import uuid
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from cachelink.core.entities.query import Query
from cachelink.core.entities.subscription import ChangeEvent, ChangeListener, ChangeType
from cachelink.core.exceptions import BackendError, SubscriptionTeardownError

logger = logging.getLogger(__name__)


class InMemoryChannel:
    """Channel delivering one resource's change events to a listener."""

    def __init__(
        self,
        backend: "InMemoryDataBackend",
        resource: str,
        listener: ChangeListener,
    ) -> None:
        self._backend = backend
        self.resource = resource
        self._listener = listener
        self.closed = False

    def deliver(self, event: ChangeEvent) -> None:
        """Pass an event to the listener while the channel is open."""
        if not self.closed:
            self._listener(event)

    def unsubscribe(self) -> None:
        """Close the channel.

        Raises:
            SubscriptionTeardownError: If the channel is already closed.
        """
        if self.closed:
            raise SubscriptionTeardownError(
                f"Channel for {self.resource!r} is already closed"
            )
        self.closed = True
        self._backend._detach(self)


class InMemoryDataBackend:
    """Process-local backend holding rows per resource.

    Implements the full IDataBackend contract: equality-filtered fetches,
    push-change channels, and bulk writes that emit INSERT/UPDATE/DELETE
    events. Every call is recorded in ``calls`` as ``(operation,
    resource)`` and each call yields to the event loop once, like a
    network round-trip would. ``fail_next`` injects errors.

    Rows are dictionaries keyed by ``"id"``; inserts without an id get a
    random hex one.
    """

    def __init__(
        self,
        tables: Mapping[str, Iterable[dict[str, Any]]] | None = None,
        latency: float = 0.0,
    ) -> None:
        """Initialize the backend.

        Args:
            tables: Optional initial rows per resource. Rows need an ``id``.
            latency: Seconds each backend call sleeps before answering.
        """
        self._latency = latency
        self._tables: dict[str, dict[Any, dict[str, Any]]] = defaultdict(dict)
        self._channels: dict[str, list[InMemoryChannel]] = defaultdict(list)
        self._failures: dict[str, list[Any]] = {}
        self.calls: list[tuple[str, str]] = []

        for resource, rows in (tables or {}).items():
            for row in rows:
                self._tables[resource][row["id"]] = dict(row)

    def fail_next(
        self,
        operation: str,
        error: BaseException | None = None,
        skip: int = 0,
    ) -> None:
        """Make a future call of ``operation`` raise.

        Args:
            operation: ``"fetch"``, ``"subscribe"``, ``"insert"``,
                ``"update"`` or ``"delete"``.
            error: Exception to raise. Defaults to a BackendError.
            skip: Number of calls of ``operation`` to let through first.
        """
        self._failures[operation] = [
            skip,
            error or BackendError(f"{operation} failed"),
        ]

    def call_count(self, operation: str, resource: str | None = None) -> int:
        """Count recorded calls of ``operation``, optionally per resource."""
        return sum(
            1
            for op, res in self.calls
            if op == operation and (resource is None or res == resource)
        )

    def rows(self, resource: str) -> list[dict[str, Any]]:
        """Return copies of the stored rows of ``resource``."""
        return [dict(row) for row in self._tables[resource].values()]

    def channel_count(self, resource: str | None = None) -> int:
        """Count open channels, optionally for one resource."""
        if resource is not None:
            return len(self._channels[resource])
        return sum(len(channels) for channels in self._channels.values())

    async def fetch(self, resource: str, query: Query) -> list[dict[str, Any]]:
        """Return rows of ``resource`` matching ``query``."""
        await self._round_trip("fetch", resource)
        return query.apply(self._tables[resource].values())

    def subscribe(self, resource: str, listener: ChangeListener) -> InMemoryChannel:
        """Open a channel for ``resource``."""
        self._record("subscribe", resource)
        channel = InMemoryChannel(self, resource, listener)
        self._channels[resource].append(channel)
        return channel

    async def insert(
        self,
        resource: str,
        rows: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Insert rows; the whole call fails if any id already exists."""
        await self._round_trip("insert", resource)
        table = self._tables[resource]

        prepared = []
        seen: set[Any] = set()
        for row in rows:
            stored = dict(row)
            stored.setdefault("id", uuid.uuid4().hex)
            if stored["id"] in table or stored["id"] in seen:
                raise BackendError(
                    f"Duplicate id {stored['id']!r} in {resource!r}"
                )
            seen.add(stored["id"])
            prepared.append(stored)

        for stored in prepared:
            table[stored["id"]] = stored
            self._emit(ChangeEvent(ChangeType.INSERT, resource, record=dict(stored)))

        return [dict(stored) for stored in prepared]

    async def update(
        self,
        resource: str,
        rows: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Merge rows into stored rows with the same id."""
        await self._round_trip("update", resource)
        table = self._tables[resource]

        for row in rows:
            if row.get("id") not in table:
                raise BackendError(f"No row with id {row.get('id')!r} in {resource!r}")

        updated = []
        for row in rows:
            old = table[row["id"]]
            new = {**old, **row}
            table[row["id"]] = new
            updated.append(dict(new))
            self._emit(
                ChangeEvent(ChangeType.UPDATE, resource, record=dict(new), old_record=old)
            )

        return updated

    async def delete(self, resource: str, ids: Sequence[Any]) -> list[dict[str, Any]]:
        """Delete rows by id; unknown ids are ignored."""
        await self._round_trip("delete", resource)
        table = self._tables[resource]

        deleted = []
        for row_id in ids:
            old = table.pop(row_id, None)
            if old is None:
                continue
            deleted.append(old)
            self._emit(ChangeEvent(ChangeType.DELETE, resource, old_record=old))

        return deleted

    def _detach(self, channel: InMemoryChannel) -> None:
        channels = self._channels[channel.resource]
        if channel in channels:
            channels.remove(channel)

    def _emit(self, event: ChangeEvent) -> None:
        for channel in list(self._channels[event.resource]):
            try:
                channel.deliver(event)
            except Exception:
                logger.exception("Listener for %s raised", event.resource)

    def _record(self, operation: str, resource: str) -> None:
        self.calls.append((operation, resource))
        failure = self._failures.get(operation)
        if failure is None:
            return
        if failure[0] > 0:
            failure[0] -= 1
            return
        del self._failures[operation]
        raise failure[1]

    async def _round_trip(self, operation: str, resource: str) -> None:
        await asyncio.sleep(self._latency)
        self._record(operation, resource)
