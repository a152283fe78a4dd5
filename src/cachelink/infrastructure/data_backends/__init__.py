"""Data backend implementations."""

from cachelink.infrastructure.data_backends.memory import (
    InMemoryChannel,
    InMemoryDataBackend,
)

__all__ = ["InMemoryChannel", "InMemoryDataBackend"]
