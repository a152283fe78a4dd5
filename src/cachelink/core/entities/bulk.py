"""Bulk write entities."""

from enum import Enum


class BulkOperation(Enum):
    """Bulk write kinds supported by the access layer."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def coerce(cls, value: "BulkOperation | str") -> "BulkOperation":
        """Accept a BulkOperation or its string value.

        Raises:
            ValueError: If the string names no known operation.
        """
        if isinstance(value, BulkOperation):
            return value
        return cls(str(value).lower())
