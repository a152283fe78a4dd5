"""Hashing utilities for cache key generation."""

import hashlib
import json
from typing import Any


def hash_value(value: Any) -> str:
    """Create a deterministic hash of a value.

    Args:
        value: Any JSON-serializable value.

    Returns:
        A hexadecimal hash string (first 16 chars of SHA-256).
    """
    if value is None:
        return "none"

    # Normalize to JSON with sorted keys for determinism
    normalized = json.dumps(value, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


def normalize_select(select: str) -> str:
    """Normalize a column selection string for consistent hashing.

    Collapses whitespace so that ``"id,name"`` and ``"id, name"`` and
    multi-line selections produce the same signature.

    Args:
        select: The selection string (``"*"`` or a column list).

    Returns:
        The normalized selection string.
    """
    collapsed = " ".join(select.split())
    return collapsed.replace(" ,", ",").replace(", ", ",") or "*"
