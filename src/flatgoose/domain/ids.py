"""Document identifier generation."""

from __future__ import annotations

import uuid
from typing import Any

ID_FIELD = "_id"


def generate_object_id() -> str:
    """Return a new globally-unique identifier string (UUID4)."""
    return str(uuid.uuid4())


def is_valid_id(value: Any) -> bool:
    """Identifier-based lookups accept strings only."""
    return isinstance(value, str)
