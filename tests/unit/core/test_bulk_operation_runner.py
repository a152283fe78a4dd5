"""Tests for BulkOperationRunner."""

from datetime import timedelta

import pytest

from cachelink import (
    BackendError,
    BulkOperation,
    BulkOperationRunner,
    BulkPartialFailure,
    CacheStore,
    InMemoryCacheBackend,
    InMemoryDataBackend,
    InvalidResourceError,
    ManualClock,
)


@pytest.fixture
def cache(clock: ManualClock) -> CacheStore:
    """Create a cache store."""
    return CacheStore(InMemoryCacheBackend(), clock, timedelta(minutes=5))


@pytest.fixture
def runner(backend: InMemoryDataBackend, cache: CacheStore) -> BulkOperationRunner:
    """Create a bulk runner with the default chunk size."""
    return BulkOperationRunner(backend, cache, default_batch_size=100)


def new_tasks(count: int) -> list[dict]:
    return [{"id": f"n{i}", "project_id": "p2", "title": f"Task {i}"} for i in range(count)]


class TestChunkedWrites:
    """Tests for chunked inserts and updates."""

    @pytest.mark.asyncio
    async def test_insert_in_chunks(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """250 rows are written as chunks of 100, 100 and 50."""
        chunk_sizes: list[int] = []
        insert = backend.insert

        async def recording_insert(resource: str, rows: list[dict]) -> list[dict]:
            chunk_sizes.append(len(rows))
            return await insert(resource, rows)

        backend.insert = recording_insert

        result = await runner.bulk_operation("tasks", "insert", new_tasks(250))

        assert chunk_sizes == [100, 100, 50]
        assert len(result) == 250
        assert backend.call_count("insert", "tasks") == 3
        assert len(backend.rows("tasks")) == 252

    @pytest.mark.asyncio
    async def test_results_in_chunk_order(self, runner: BulkOperationRunner) -> None:
        """Returned rows follow the input order across chunks."""
        result = await runner.bulk_operation("tasks", "insert", new_tasks(5), batch_size=2)

        assert [row["id"] for row in result] == ["n0", "n1", "n2", "n3", "n4"]

    @pytest.mark.asyncio
    async def test_custom_batch_size(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """An explicit batch size overrides the default."""
        await runner.bulk_operation("tasks", BulkOperation.INSERT, new_tasks(10), batch_size=3)

        assert backend.call_count("insert") == 4

    @pytest.mark.asyncio
    async def test_update_merges_rows(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """Updates are chunked like inserts and merged into stored rows."""
        result = await runner.bulk_operation(
            "projects",
            "update",
            [{"id": "p1", "status": "done"}, {"id": "p3", "status": "done"}],
            batch_size=1,
        )

        assert [row["name"] for row in result] == ["Apollo", "Mercury"]
        assert backend.call_count("update") == 2
        assert all(row["status"] == "done" for row in backend.rows("projects"))

    @pytest.mark.asyncio
    async def test_empty_items(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """No items means no backend call."""
        assert await runner.bulk_operation("tasks", "insert", []) == []
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_invalid_batch_size(self, runner: BulkOperationRunner) -> None:
        """Batch sizes below 1 are rejected."""
        with pytest.raises(ValueError):
            await runner.bulk_operation("tasks", "insert", new_tasks(1), batch_size=0)

    @pytest.mark.asyncio
    async def test_invalid_resource(self, runner: BulkOperationRunner) -> None:
        """Invalid resource names are rejected."""
        with pytest.raises(InvalidResourceError):
            await runner.bulk_operation("", "insert", new_tasks(1))


class TestPartialFailure:
    """Tests for the non-transactional failure policy."""

    @pytest.mark.asyncio
    async def test_failure_keeps_applied_chunks(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """A failing second chunk leaves the first chunk applied."""
        backend.fail_next("insert", BackendError("quota exceeded"), skip=1)

        with pytest.raises(BulkPartialFailure) as exc_info:
            await runner.bulk_operation("tasks", "insert", new_tasks(250))

        failure = exc_info.value
        assert failure.resource == "tasks"
        assert failure.operation == "insert"
        assert failure.chunk_index == 1
        assert len(failure.applied) == 100
        assert isinstance(failure.error, BackendError)
        assert isinstance(failure.__cause__, BackendError)

        assert backend.call_count("insert") == 2
        assert len(backend.rows("tasks")) == 102

    @pytest.mark.asyncio
    async def test_failure_on_first_chunk(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """A failing first chunk applies nothing."""
        backend.fail_next("update")

        with pytest.raises(BulkPartialFailure) as exc_info:
            await runner.bulk_operation("projects", "update", [{"id": "p1", "name": "X"}])

        assert exc_info.value.applied == []
        assert backend.rows("projects")[0]["name"] == "Apollo"

    @pytest.mark.asyncio
    async def test_cache_invalidated_on_failure(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend, cache: CacheStore
    ) -> None:
        """The resource's cache is invalidated even when the run fails."""
        cache.set("tasks:abc", [])
        backend.fail_next("insert")

        with pytest.raises(BulkPartialFailure):
            await runner.bulk_operation("tasks", "insert", new_tasks(1))

        assert cache.get_stale("tasks:abc") is None


class TestDelete:
    """Tests for bulk deletes."""

    @pytest.mark.asyncio
    async def test_delete_single_call(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """Deletes ignore batch size and issue one call."""
        await runner.bulk_operation("tasks", "insert", new_tasks(250))

        await runner.bulk_operation("tasks", "delete", new_tasks(250), batch_size=10)

        assert backend.call_count("delete") == 1
        assert [row["id"] for row in backend.rows("tasks")] == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_delete_accepts_bare_ids(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """Items may be rows or plain id values."""
        deleted = await runner.bulk_operation("projects", "delete", ["p1", {"id": "p2"}])

        assert [row["id"] for row in deleted] == ["p1", "p2"]
        assert [row["id"] for row in backend.rows("projects")] == ["p3"]

    @pytest.mark.asyncio
    async def test_delete_without_ids(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend
    ) -> None:
        """Rows without ids are skipped; nothing to delete means no call."""
        assert await runner.bulk_operation("tasks", "delete", [{"title": "x"}]) == []
        assert backend.call_count("delete") == 0

    @pytest.mark.asyncio
    async def test_delete_failure_propagates(
        self, runner: BulkOperationRunner, backend: InMemoryDataBackend, cache: CacheStore
    ) -> None:
        """A failing delete raises the backend error unchanged."""
        cache.set("tasks:abc", [])
        backend.fail_next("delete")

        with pytest.raises(BackendError):
            await runner.bulk_operation("tasks", "delete", ["t1"])

        assert cache.get_stale("tasks:abc") is None


class TestInvalidation:
    """Tests for cache invalidation after writes."""

    @pytest.mark.asyncio
    async def test_only_target_resource_invalidated(
        self, runner: BulkOperationRunner, cache: CacheStore
    ) -> None:
        """Writes invalidate their resource and nothing else."""
        cache.set("tasks:abc", [])
        cache.set("projects:abc", [])

        await runner.bulk_operation("tasks", "insert", new_tasks(1))

        assert cache.get("tasks:abc") is None
        assert cache.get("projects:abc") == []
