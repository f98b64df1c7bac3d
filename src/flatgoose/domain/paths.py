"""Dotted-path access and strict equality for document values."""

from __future__ import annotations

from typing import Any, Final

from flatgoose.domain.types import type_name
from flatgoose.errors import InvalidArgumentError


class _Missing:
    """Sentinel for a value that is absent from a document."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self


MISSING: Final = _Missing()


def split_path(path: str) -> list[str]:
    """Split a dotted path into its segments.

    Raises:
        InvalidArgumentError: If *path* is not a string.
    """
    if not isinstance(path, str):
        msg = f"Field path must be a string, got {type_name(path)}: {path!r}"
        raise InvalidArgumentError(msg)
    return path.split(".")


def get_path(document: Any, path: str) -> Any:
    """Read the value at dotted *path*, or :data:`MISSING` if any level is absent."""
    current = document
    for part in split_path(path):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def set_path(document: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* at dotted *path*, creating intermediate dicts as needed.

    Raises:
        InvalidArgumentError: If an existing intermediate value is not a dict.
    """
    parts = split_path(path)
    current = document
    for depth, part in enumerate(parts[:-1]):
        if part not in current or current[part] is None:
            current[part] = {}
        elif not isinstance(current[part], dict):
            prefix = ".".join(parts[: depth + 1])
            msg = f"Cannot set {path!r}: {prefix!r} is not an object"
            raise InvalidArgumentError(msg)
        current = current[part]
    current[parts[-1]] = value


def deep_equal(a: Any, b: Any) -> bool:
    """Strict structural equality.

    Booleans never equal numbers, and dicts/lists compare element-wise under
    the same rule. ``1`` and ``1.0`` are equal (both are Numbers).
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, dict) or isinstance(b, dict):
        if not (isinstance(a, dict) and isinstance(b, dict)) or a.keys() != b.keys():
            return False
        return all(deep_equal(a[key], b[key]) for key in a)
    if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
        if not (isinstance(a, (list, tuple)) and isinstance(b, (list, tuple))):
            return False
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b, strict=True))
    if a is MISSING or b is MISSING:
        return a is b
    return bool(a == b)
