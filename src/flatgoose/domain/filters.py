"""Filter Matcher — evaluate a query filter against one document.

A filter maps field paths (dot notation reaches into embedded objects) to
either a literal, an operator mapping, or a nested filter:

- literal           -> strict equality (``None`` also matches an absent field)
- ``{"$op": arg}``  -> every operator must hold
- ``{"sub": ...}``  -> nested filter matched against the embedded object,
                       or against ``{}`` when the field is absent

All clauses are ANDed. Unknown operators raise
:class:`~flatgoose.errors.UnsupportedOperatorError` instead of being
ignored, so a typo can never return unfiltered data.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

from flatgoose.domain.paths import MISSING, deep_equal, get_path
from flatgoose.domain.types import type_name
from flatgoose.errors import InvalidArgumentError, UnsupportedOperatorError

OPERATOR_SIGIL = "$"


def match(document: Mapping[str, Any], query: Mapping[str, Any] | None) -> bool:
    """Return True if *document* satisfies every clause of *query*."""
    if query is None:
        return True
    if not isinstance(query, Mapping):
        msg = f"Filter must be a mapping, got {type_name(query)}"
        raise InvalidArgumentError(msg)

    for key, condition in query.items():
        value = get_path(document, key)
        if is_operator_mapping(condition):
            if not _match_operators(value, condition):
                return False
        elif isinstance(condition, Mapping):
            target = value if isinstance(value, Mapping) else {}
            if not match(target, condition):
                return False
        elif not values_equal(value, condition):
            return False
    return True


def is_operator_mapping(condition: Any) -> bool:
    """A mapping is an operator mapping if any of its keys starts with ``$``."""
    return isinstance(condition, Mapping) and any(
        isinstance(key, str) and key.startswith(OPERATOR_SIGIL) for key in condition
    )


def values_equal(value: Any, expected: Any) -> bool:
    """Strict equality where a ``None`` expectation also matches absence."""
    if expected is None:
        return value is MISSING or value is None
    return deep_equal(value, expected)


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------


def _match_operators(value: Any, condition: Mapping[str, Any]) -> bool:
    for op, arg in condition.items():
        evaluate = _OPERATORS.get(op)
        if evaluate is None:
            raise UnsupportedOperatorError(str(op), context="filter")
        if not evaluate(value, arg):
            return False
    return True


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    """Wrap an ordering comparison so mismatched or unorderable kinds never match."""

    def evaluate(value: Any, arg: Any) -> bool:
        if value is MISSING or value is None or arg is None:
            return False
        if type_name(value) != type_name(arg):
            return False
        try:
            return bool(compare(value, arg))
        except TypeError:
            return False

    return evaluate


def _sequence_arg(op: str, arg: Any) -> list[Any]:
    if not isinstance(arg, (list, tuple, set, frozenset)):
        msg = f"{op} requires an array, got {type_name(arg)}"
        raise InvalidArgumentError(msg)
    return list(arg)


def _in(value: Any, arg: Any) -> bool:
    return any(values_equal(value, option) for option in _sequence_arg("$in", arg))


def _nin(value: Any, arg: Any) -> bool:
    return not any(values_equal(value, option) for option in _sequence_arg("$nin", arg))


_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$eq": values_equal,
    "$ne": lambda value, arg: not values_equal(value, arg),
    "$gt": _ordered(operator.gt),
    "$gte": _ordered(operator.ge),
    "$lt": _ordered(operator.lt),
    "$lte": _ordered(operator.le),
    "$in": _in,
    "$nin": _nin,
}

FILTER_OPERATORS: frozenset[str] = frozenset(_OPERATORS)
