"""Read query entity."""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from cachelink.utils.hashing import normalize_select

_PLAIN_COLUMN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Query:
    """Row selection for a resource read.

    ``select`` is a column list in backend syntax (``"*"`` for every
    column). ``match`` holds column/value pairs that must all be equal.
    """

    select: str = "*"
    match: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, value: "Query | Mapping[str, Any] | None") -> "Query":
        """Build a Query from None, a Query, or a ``{select, match}`` mapping.

        Raises:
            TypeError: If ``value`` has another type.
        """
        if value is None:
            return cls()
        if isinstance(value, Query):
            return value
        if isinstance(value, Mapping):
            unknown = set(value) - {"select", "match"}
            if unknown:
                raise TypeError(f"Unknown query fields: {sorted(unknown)}")
            return cls(
                select=value.get("select") or "*",
                match=dict(value.get("match") or {}),
            )
        raise TypeError(f"Cannot build a Query from {type(value).__name__}")

    def to_signature_data(self) -> dict[str, Any]:
        """Return the normalized description used to sign cache keys."""
        return {"select": normalize_select(self.select), "match": self.match}

    @property
    def columns(self) -> list[str] | None:
        """Selected column names, or None when every column is selected."""
        normalized = normalize_select(self.select)
        if normalized == "*":
            return None
        return [column.strip() for column in normalized.split(",")]

    @property
    def is_locally_applicable(self) -> bool:
        """Whether ``apply`` can reproduce this query on fetched rows.

        True for ``"*"`` and plain column lists. Embedded resources,
        aliases or casts need the backend.
        """
        columns = self.columns
        if columns is None:
            return True
        return all(_PLAIN_COLUMN.match(column) for column in columns)

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Check a row against every ``match`` pair."""
        return all(row.get(column) == value for column, value in self.match.items())

    def apply(self, rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Filter and project rows the way the backend would.

        Args:
            rows: Full rows of the resource.

        Returns:
            Matching rows restricted to the selected columns.
        """
        columns = self.columns
        result: list[dict[str, Any]] = []
        for row in rows:
            if not self.matches(row):
                continue
            if columns is None:
                result.append(dict(row))
            else:
                result.append({column: row.get(column) for column in columns})
        return result
