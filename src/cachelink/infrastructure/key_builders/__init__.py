"""Key builder implementations."""

from cachelink.infrastructure.key_builders.default import DefaultKeyBuilder

__all__ = ["DefaultKeyBuilder"]
