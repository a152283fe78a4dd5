"""Bulk operation runner - chunked writes with cache invalidation."""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from cachelink.core.entities.bulk import BulkOperation
from cachelink.core.entities.cache_key import validate_resource
from cachelink.core.exceptions import BackendError, BulkPartialFailure
from cachelink.core.interfaces.data_backend import IDataBackend
from cachelink.core.services.cache_store import CacheStore

logger = logging.getLogger(__name__)


class BulkOperationRunner:
    """Writes many rows to the backend.

    Inserts and updates are split into chunks of ``batch_size`` written
    one after the other. The first failing chunk stops the run; chunks
    already written stay written, since the backend offers no rollback.
    Deletes go out as a single call with every id, regardless of
    ``batch_size``.

    Whatever the outcome, the resource's cache entries are invalidated
    once the run settles.
    """

    def __init__(
        self,
        backend: IDataBackend,
        cache: CacheStore,
        default_batch_size: int = 100,
    ) -> None:
        self._backend = backend
        self._cache = cache
        self._default_batch_size = default_batch_size

    async def bulk_operation(
        self,
        resource: str,
        operation: BulkOperation | str,
        items: Sequence[Any],
        batch_size: int | None = None,
    ) -> list[Any]:
        """Run a bulk insert, update or delete.

        Args:
            resource: The resource (table) name.
            operation: ``insert``, ``update`` or ``delete``.
            items: Rows to write. For deletes, rows with an ``id`` or
                bare id values.
            batch_size: Rows per insert/update chunk. Uses the default
                if not provided.

        Returns:
            Rows returned by the backend, in chunk order.

        Raises:
            BulkPartialFailure: If an insert/update chunk fails. Rows of
                earlier chunks remain applied.
            ValueError: If ``batch_size`` is less than 1.
            Exception: Whatever the backend raised for a delete.
        """
        validate_resource(resource)
        operation = BulkOperation.coerce(operation)
        size = batch_size if batch_size is not None else self._default_batch_size
        if size < 1:
            raise ValueError("batch_size must be at least 1")

        try:
            if operation is BulkOperation.DELETE:
                return await self._delete(resource, items)
            return await self._write_chunks(resource, operation, items, size)
        finally:
            self._cache.invalidate_resource(resource)

    async def _delete(self, resource: str, items: Sequence[Any]) -> list[Any]:
        ids = [row_id for row_id in (_item_id(item) for item in items) if row_id is not None]
        if not ids:
            return []

        result = await self._backend.delete(resource, ids)
        logger.debug("Deleted %d ids from %s", len(ids), resource)
        return list(result or [])

    async def _write_chunks(
        self,
        resource: str,
        operation: BulkOperation,
        items: Sequence[Any],
        size: int,
    ) -> list[Any]:
        write = (
            self._backend.insert
            if operation is BulkOperation.INSERT
            else self._backend.update
        )
        results: list[Any] = []

        for index, start in enumerate(range(0, len(items), size)):
            chunk = list(items[start:start + size])
            try:
                result = await write(resource, chunk)
                if result is None:
                    raise BackendError(
                        f"Backend returned no rows for {operation.value} on {resource}"
                    )
            except Exception as exc:
                logger.warning(
                    "Bulk %s on %s failed at chunk %d (%d rows already applied)",
                    operation.value,
                    resource,
                    index,
                    len(results),
                )
                raise BulkPartialFailure(
                    resource=resource,
                    operation=operation.value,
                    chunk_index=index,
                    applied=results,
                    error=exc,
                ) from exc

            if isinstance(result, list):
                results.extend(result)
            else:
                results.append(result)

        return results


def _item_id(item: Any) -> Any:
    if isinstance(item, Mapping):
        return item.get("id")
    return item
