"""Data backend interface."""

from collections.abc import Sequence
from typing import Any, Protocol

from cachelink.core.entities.query import Query
from cachelink.core.entities.subscription import ChangeListener


class IChannel(Protocol):
    """A live push-change subscription for one resource."""

    def unsubscribe(self) -> None:
        """Tear the channel down.

        Raises:
            SubscriptionTeardownError: If the transport fails to close it.
        """
        ...


class IDataBackend(Protocol):
    """Contract for the managed backend the access layer reads and writes.

    The layer needs three capabilities: row fetches, push-change
    channels, and bulk writes. Wire formats and transports are up to
    the implementation. Errors should be raised as exceptions
    (preferably BackendError); the layer propagates them unchanged.
    """

    async def fetch(self, resource: str, query: Query) -> list[dict[str, Any]]:
        """Fetch the rows of ``resource`` selected by ``query``.

        Args:
            resource: The resource (table) name.
            query: Column selection and equality filters.

        Returns:
            The matching rows.
        """
        ...

    def subscribe(self, resource: str, listener: ChangeListener) -> IChannel:
        """Open a channel delivering change events of ``resource``.

        Args:
            resource: The resource (table) name.
            listener: Called with each ChangeEvent until the channel is
                torn down.

        Returns:
            The live channel.
        """
        ...

    async def insert(
        self,
        resource: str,
        rows: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]] | None:
        """Insert rows and return them as stored."""
        ...

    async def update(
        self,
        resource: str,
        rows: Sequence[dict[str, Any]],
    ) -> list[dict[str, Any]] | None:
        """Update rows identified by their ``id`` and return them."""
        ...

    async def delete(
        self,
        resource: str,
        ids: Sequence[Any],
    ) -> list[dict[str, Any]] | None:
        """Delete rows by id and return the deleted rows."""
        ...
