"""Tests for DefaultKeyBuilder."""

import pytest

from cachelink.core.entities import Query
from cachelink.core.exceptions import InvalidResourceError
from cachelink.infrastructure.key_builders.default import DefaultKeyBuilder
from cachelink.utils.hashing import hash_value


class TestDefaultKeyBuilder:
    """Tests for DefaultKeyBuilder."""

    @pytest.fixture
    def key_builder(self) -> DefaultKeyBuilder:
        """Create a key builder for testing."""
        return DefaultKeyBuilder()

    def test_build_basic_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test the key is the resource plus a 16 char signature."""
        key = key_builder.build("projects", Query())

        resource, _, signature = key.partition(":")
        assert resource == "projects"
        assert signature == hash_value({"select": "*", "match": {}})
        assert len(signature) == 16

    def test_same_query_same_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test that equal queries produce the same key."""
        key1 = key_builder.build("projects", Query(select="id", match={"a": 1, "b": 2}))
        key2 = key_builder.build("projects", Query(select="id", match={"b": 2, "a": 1}))

        assert key1 == key2

    def test_select_whitespace_ignored(self, key_builder: DefaultKeyBuilder) -> None:
        """Test that formatting of the column list does not matter."""
        key1 = key_builder.build("projects", Query(select="id, name"))
        key2 = key_builder.build("projects", Query(select=" id ,name "))

        assert key1 == key2

    def test_different_match_different_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test that different filters produce different keys."""
        key1 = key_builder.build("projects", Query(match={"owner_id": "u1"}))
        key2 = key_builder.build("projects", Query(match={"owner_id": "u2"}))

        assert key1 != key2

    def test_different_resource_different_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test that the same query on two resources gives two keys."""
        assert key_builder.build("projects", Query()) != key_builder.build("tasks", Query())

    def test_invalid_resource(self, key_builder: DefaultKeyBuilder) -> None:
        """Test that resource names containing the separator are rejected."""
        with pytest.raises(InvalidResourceError):
            key_builder.build("projects:x", Query())

    def test_subscription_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test subscription keys join resource and filter key."""
        assert key_builder.subscription_key("tasks", "board-1") == "tasks:board-1"
        assert key_builder.subscription_key("tasks") == "tasks:"

    def test_resource_of(self, key_builder: DefaultKeyBuilder) -> None:
        """Test extracting the resource from built keys."""
        key = key_builder.build("tasks", Query(match={"project_id": "p1"}))

        assert key_builder.resource_of(key) == "tasks"
        assert key_builder.resource_of("tasks:board-1") == "tasks"
