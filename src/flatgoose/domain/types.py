"""Field type tags and their runtime checks.

The five tags form a closed set. Each tag knows how to recognize a runtime
value of its kind, so schema walking never compares against Python type
objects directly.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class FieldType(StrEnum):
    """Recognized schema type tags."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"

    def check(self, value: Any) -> bool:
        """Return True if *value* is a runtime value of this type."""
        return _CHECKS[self](value)


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a Number here.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


_CHECKS = {
    FieldType.STRING: lambda v: isinstance(v, str),
    FieldType.NUMBER: _is_number,
    FieldType.BOOLEAN: lambda v: isinstance(v, bool),
    FieldType.OBJECT: lambda v: isinstance(v, dict),
    FieldType.ARRAY: lambda v: isinstance(v, list),
}

# Builtins accepted as shorthand for a tag in schema definitions.
_BUILTIN_TAGS: dict[type, FieldType] = {
    str: FieldType.STRING,
    int: FieldType.NUMBER,
    float: FieldType.NUMBER,
    bool: FieldType.BOOLEAN,
    dict: FieldType.OBJECT,
    list: FieldType.ARRAY,
}


def resolve_type_tag(tag: Any) -> FieldType | None:
    """Resolve a definition-level type tag to a :class:`FieldType`.

    Accepts enum members, their string values (case-insensitive), and the
    builtins ``str``, ``int``, ``float``, ``bool``, ``dict`` and ``list``.
    Returns None for anything else.
    """
    if isinstance(tag, FieldType):
        return tag
    if isinstance(tag, str):
        try:
            return FieldType(tag.lower())
        except ValueError:
            return None
    if isinstance(tag, type):
        return _BUILTIN_TAGS.get(tag)
    return None


def type_name(value: Any) -> str:
    """Describe the runtime kind of *value* using tag vocabulary.

    Values outside the five tags report their Python class name
    (``None`` reports ``"null"``).
    """
    if value is None:
        return "null"
    for tag in (FieldType.BOOLEAN, FieldType.NUMBER, FieldType.STRING, FieldType.ARRAY):
        if tag.check(value):
            return tag.value
    if FieldType.OBJECT.check(value):
        return FieldType.OBJECT.value
    return type(value).__name__
