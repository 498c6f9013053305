"""Reference identifier checks shared by every foreign-key-shaped input."""

from __future__ import annotations

import uuid
from typing import Any


def is_valid_reference_id(value: Any) -> bool:
    """Return True if value is a UUID or a string that parses as one."""
    if isinstance(value, uuid.UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def to_reference_id(value: Any) -> uuid.UUID:
    """Coerce a valid reference identifier to uuid.UUID.

    Raises:
        ValueError: If value is not a valid reference identifier.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not is_valid_reference_id(value):
        raise ValueError(f"Invalid reference identifier: {value!r}")
    return uuid.UUID(value)
