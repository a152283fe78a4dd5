"""Pytest configuration for cachelink tests."""

from collections.abc import Iterator

import pytest

from cachelink import (
    AccessConfig,
    DataAccessLayer,
    InMemoryDataBackend,
    ManualClock,
)


@pytest.fixture
def clock() -> ManualClock:
    """Create a manually advanced clock."""
    return ManualClock(start=1000.0)


@pytest.fixture
def backend() -> InMemoryDataBackend:
    """Create a data backend seeded with a few rows."""
    return InMemoryDataBackend(
        tables={
            "projects": [
                {"id": "p1", "name": "Apollo", "owner_id": "u1", "status": "active"},
                {"id": "p2", "name": "Gemini", "owner_id": "u1", "status": "done"},
                {"id": "p3", "name": "Mercury", "owner_id": "u2", "status": "active"},
            ],
            "tasks": [
                {"id": "t1", "project_id": "p1", "title": "Design"},
                {"id": "t2", "project_id": "p1", "title": "Build"},
            ],
        }
    )


@pytest.fixture
def layer(
    backend: InMemoryDataBackend, clock: ManualClock
) -> Iterator[DataAccessLayer]:
    """Create an access layer on the manual clock."""
    access_layer = DataAccessLayer(backend, config=AccessConfig(), clock=clock)
    yield access_layer
    access_layer.shutdown()
