"""
Identifier coercion.

Dependencies: uuid (stdlib)
System role: Accept UUIDs or their string form at the engine boundary
"""

import uuid
from typing import Any, Iterable

from segment_index.core.exceptions import InvalidInputError


def coerce_uuid(value: Any, field: str = "id") -> uuid.UUID:
    """
    Convert a UUID or UUID string.

    Raises:
        InvalidInputError: If the value is not a valid UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidInputError(f"Invalid UUID: {value!r}", field=field) from e


def coerce_uuids(values: Iterable[Any], field: str = "ids") -> list[uuid.UUID]:
    """Convert every element, preserving order."""
    if isinstance(values, (str, bytes)):
        raise InvalidInputError("Expected a list of ids, got a single string", field=field)
    return [coerce_uuid(value, field) for value in values]
