"""Tests for core entities."""

from datetime import timedelta

import pytest

from cachelink.core.entities import (
    AccessConfig,
    AccessMetrics,
    BulkOperation,
    CacheEntry,
    CacheKey,
    ChangeEvent,
    ChangeType,
    Query,
    QueryOptions,
    SubscriptionHandle,
)
from cachelink.core.exceptions import InvalidResourceError


class TestCacheEntry:
    """Tests for CacheEntry entity."""

    def test_create_cache_entry(self) -> None:
        """Test creating a cache entry with factory method."""
        entry = CacheEntry.create(
            key="projects:abc",
            value=[{"id": 1}],
            now=100.0,
            ttl=timedelta(minutes=5),
        )

        assert entry.key == "projects:abc"
        assert entry.value == [{"id": 1}]
        assert entry.created_at == 100.0
        assert entry.ttl == timedelta(minutes=5)

    def test_cache_entry_expires_at(self) -> None:
        """Test expires_at calculation."""
        entry = CacheEntry.create("k:1", "v", now=100.0, ttl=timedelta(seconds=60))

        assert entry.expires_at == 160.0

    def test_valid_strictly_before_ttl(self) -> None:
        """Entry is valid for reads before the TTL and invalid from the TTL on."""
        entry = CacheEntry.create("k:1", "v", now=100.0, ttl=timedelta(seconds=60))

        assert entry.is_valid(100.0)
        assert entry.is_valid(159.999)
        assert not entry.is_valid(160.0)
        assert not entry.is_valid(500.0)

    def test_zero_ttl_never_valid(self) -> None:
        """A zero TTL entry is never a valid hit."""
        entry = CacheEntry.create("k:1", "v", now=100.0, ttl=timedelta(0))

        assert not entry.is_valid(100.0)

    def test_cache_entry_immutable(self) -> None:
        """Test that cache entry is immutable."""
        entry = CacheEntry.create("k:1", "v", now=0.0, ttl=timedelta(seconds=1))

        with pytest.raises(AttributeError):
            entry.value = "other"  # type: ignore


class TestCacheKey:
    """Tests for CacheKey value object."""

    def test_cache_key_str(self) -> None:
        """Test string representation of cache key."""
        key = CacheKey(resource="projects", signature="abc123")
        assert str(key) == "projects:abc123"

    def test_parse_round_trip(self) -> None:
        """Test parsing a key string back into components."""
        key = CacheKey.parse("tasks:ff00")

        assert key.resource == "tasks"
        assert key.signature == "ff00"

    def test_parse_rejects_bare_resource(self) -> None:
        """A string without separator is not a key."""
        with pytest.raises(InvalidResourceError):
            CacheKey.parse("projects")

    def test_from_components_deterministic(self) -> None:
        """Equal query descriptions produce equal keys."""
        key1 = CacheKey.from_components("projects", {"match": {"a": 1, "b": 2}})
        key2 = CacheKey.from_components("projects", {"match": {"b": 2, "a": 1}})

        assert key1 == key2
        assert len(key1.signature) == 16

    @pytest.mark.parametrize("resource", ["", "projects:archive"])
    def test_invalid_resource(self, resource: str) -> None:
        """Empty names and names containing the separator are rejected."""
        with pytest.raises(InvalidResourceError):
            CacheKey(resource=resource, signature="x")

    def test_invalid_resource_is_value_error(self) -> None:
        """InvalidResourceError can be caught as ValueError."""
        with pytest.raises(ValueError):
            CacheKey(resource="", signature="x")


class TestAccessConfig:
    """Tests for AccessConfig entity."""

    def test_default_config(self) -> None:
        """Test default configuration values."""
        config = AccessConfig()

        assert config.default_ttl == timedelta(minutes=5)
        assert config.rate_limit_interval == timedelta(seconds=1)
        assert config.batch_window == timedelta(milliseconds=50)
        assert config.subscription_reuse_window == timedelta(seconds=120)
        assert config.subscription_sweep_interval == timedelta(minutes=10)
        assert config.subscription_stale_threshold == timedelta(minutes=60)
        assert config.default_batch_size == 100
        assert config.coalesce_reads is True

    def test_custom_config(self) -> None:
        """Test custom configuration values."""
        config = AccessConfig(
            default_ttl=timedelta(seconds=30),
            default_batch_size=10,
            coalesce_reads=False,
        )

        assert config.default_ttl == timedelta(seconds=30)
        assert config.default_batch_size == 10
        assert config.coalesce_reads is False

    @pytest.mark.parametrize(
        "field_name",
        ["default_ttl", "rate_limit_interval", "batch_window", "subscription_reuse_window"],
    )
    def test_non_positive_interval_rejected(self, field_name: str) -> None:
        """Intervals must be positive."""
        with pytest.raises(ValueError, match=field_name):
            AccessConfig(**{field_name: timedelta(0)})

    def test_zero_backoff_allowed(self) -> None:
        """A zero error backoff disables backoff."""
        config = AccessConfig(subscription_error_backoff=timedelta(0))
        assert config.subscription_error_backoff == timedelta(0)

    def test_invalid_sizes_rejected(self) -> None:
        """Batch and cache sizes must be at least 1."""
        with pytest.raises(ValueError):
            AccessConfig(default_batch_size=0)
        with pytest.raises(ValueError):
            AccessConfig(max_cache_size=0)


class TestQueryOptions:
    """Tests for QueryOptions entity."""

    def test_defaults(self) -> None:
        """Test default options."""
        options = QueryOptions()

        assert options.cache is True
        assert options.ttl is None
        assert options.realtime is False
        assert options.batch is False

    def test_resolve_ttl(self) -> None:
        """TTL falls back to the configured default."""
        default = timedelta(minutes=5)

        assert QueryOptions().resolve_ttl(default) == default
        assert QueryOptions(ttl=timedelta(seconds=5)).resolve_ttl(default) == timedelta(
            seconds=5
        )

    def test_negative_ttl_rejected(self) -> None:
        """Negative TTLs are rejected."""
        with pytest.raises(ValueError):
            QueryOptions(ttl=timedelta(seconds=-1))


class TestQuery:
    """Tests for Query entity."""

    def test_coerce(self) -> None:
        """Test building queries from None, mappings and queries."""
        assert Query.coerce(None) == Query()
        assert Query.coerce({"match": {"id": 1}}) == Query(match={"id": 1})
        assert Query.coerce({"select": "id"}) == Query(select="id")

        query = Query(select="name")
        assert Query.coerce(query) is query

    def test_coerce_rejects_unknown_fields(self) -> None:
        """Unknown mapping fields are an error."""
        with pytest.raises(TypeError):
            Query.coerce({"where": {"id": 1}})

    def test_coerce_rejects_other_types(self) -> None:
        """Only None, Query and mappings are accepted."""
        with pytest.raises(TypeError):
            Query.coerce("select *")  # type: ignore[arg-type]

    def test_signature_normalizes_select(self) -> None:
        """Whitespace in the selection does not change the signature."""
        assert (
            Query(select="id,  name").to_signature_data()
            == Query(select="id,name").to_signature_data()
        )

    def test_apply_filters_and_projects(self) -> None:
        """Test applying match and select to rows."""
        rows = [
            {"id": 1, "owner": "a", "name": "x"},
            {"id": 2, "owner": "b", "name": "y"},
            {"id": 3, "owner": "a", "name": "z"},
        ]

        result = Query(select="id, name", match={"owner": "a"}).apply(rows)

        assert result == [{"id": 1, "name": "x"}, {"id": 3, "name": "z"}]

    def test_apply_star_copies_rows(self) -> None:
        """Selecting every column returns copies."""
        rows = [{"id": 1}]
        result = Query().apply(rows)

        assert result == rows
        assert result[0] is not rows[0]

    def test_is_locally_applicable(self) -> None:
        """Plain column lists are applicable; embedded selections are not."""
        assert Query().is_locally_applicable
        assert Query(select="id, name").is_locally_applicable
        assert not Query(select="id, tasks:tasks(id, title)").is_locally_applicable


class TestBulkOperation:
    """Tests for BulkOperation enum."""

    def test_coerce(self) -> None:
        """Strings map to operations case-insensitively."""
        assert BulkOperation.coerce("insert") is BulkOperation.INSERT
        assert BulkOperation.coerce("DELETE") is BulkOperation.DELETE
        assert BulkOperation.coerce(BulkOperation.UPDATE) is BulkOperation.UPDATE

    def test_coerce_unknown(self) -> None:
        """Unknown operations are rejected."""
        with pytest.raises(ValueError):
            BulkOperation.coerce("upsert")


class TestSubscriptionHandle:
    """Tests for SubscriptionHandle entity."""

    def test_listener_registration(self) -> None:
        """Listeners register once and can be removed."""
        handle = SubscriptionHandle(key="tasks:", channel=object(), created_at=0.0, last_touched=0.0)

        def listener(event: ChangeEvent) -> None:
            pass

        handle.add_listener(listener)
        handle.add_listener(listener)
        assert handle.listeners == [listener]

        assert handle.remove_listener(listener) is True
        assert handle.remove_listener(listener) is False

    def test_age_and_idle(self) -> None:
        """Age counts from creation, idleness from the last touch."""
        handle = SubscriptionHandle(key="tasks:", channel=None, created_at=10.0, last_touched=40.0)

        assert handle.age(100.0) == 90.0
        assert handle.idle_for(100.0) == 60.0


class TestChangeEvent:
    """Tests for ChangeEvent entity."""

    def test_defaults(self) -> None:
        """Records default to None."""
        event = ChangeEvent(ChangeType.DELETE, "tasks")

        assert event.record is None
        assert event.old_record is None


class TestAccessMetrics:
    """Tests for AccessMetrics entity."""

    def test_to_dict(self) -> None:
        """Test converting the snapshot to a dictionary."""
        metrics = AccessMetrics(
            cache_size=2,
            active_subscriptions=1,
            batch_queue_size=0,
            last_query_times={"projects:abc": 12.5},
        )

        assert metrics.to_dict() == {
            "cache_size": 2,
            "active_subscriptions": 1,
            "batch_queue_size": 0,
            "last_query_times": {"projects:abc": 12.5},
        }
