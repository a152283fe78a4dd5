"""Cache backend implementations."""

from cachelink.infrastructure.backends.memory import InMemoryCacheBackend

__all__ = ["InMemoryCacheBackend"]
