"""Core interfaces (Protocol classes) for cachelink."""

from cachelink.core.interfaces.cache_backend import ICacheBackend
from cachelink.core.interfaces.clock import IClock, ITimer
from cachelink.core.interfaces.data_backend import IChannel, IDataBackend
from cachelink.core.interfaces.key_builder import IKeyBuilder

__all__ = [
    "ICacheBackend",
    "IKeyBuilder",
    "IDataBackend",
    "IChannel",
    "IClock",
    "ITimer",
]
