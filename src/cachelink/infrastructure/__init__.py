"""Infrastructure layer implementations for cachelink."""

from cachelink.infrastructure.backends import InMemoryCacheBackend
from cachelink.infrastructure.clocks import ManualClock, ManualTimer, SystemClock
from cachelink.infrastructure.data_backends import (
    InMemoryChannel,
    InMemoryDataBackend,
)
from cachelink.infrastructure.key_builders import DefaultKeyBuilder

__all__ = [
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "InMemoryDataBackend",
    "InMemoryChannel",
    "SystemClock",
    "ManualClock",
    "ManualTimer",
]
