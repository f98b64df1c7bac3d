"""Update Applier — apply an update expression to a document copy.

Supported operators: ``$set``, ``$max``, ``$min``, ``$push``, ``$pull``.
An expression with no ``$``-prefixed top-level key is an implicit
``$set`` of the whole mapping. Payload keys use dot notation.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any

from flatgoose.domain.filters import OPERATOR_SIGIL
from flatgoose.domain.paths import MISSING, deep_equal, get_path, set_path
from flatgoose.domain.types import type_name
from flatgoose.errors import InvalidArgumentError, UnsupportedOperatorError


def apply_update(document: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new document with *update* applied. *document* is never mutated."""
    if not isinstance(update, Mapping):
        msg = f"Update must be a mapping, got {type_name(update)}"
        raise InvalidArgumentError(msg)

    if not any(str(key).startswith(OPERATOR_SIGIL) for key in update):
        update = {"$set": update}

    result = copy.deepcopy(dict(document))
    for op, payload in update.items():
        handler = _HANDLERS.get(op)
        if handler is None:
            raise UnsupportedOperatorError(str(op), context="update")
        if not isinstance(payload, Mapping):
            msg = f"{op} expects a mapping of paths to values, got {type_name(payload)}"
            raise InvalidArgumentError(msg)
        for path, value in payload.items():
            handler(result, str(path), value)
    return result


# ---------------------------------------------------------------------------
# Operator handlers
# ---------------------------------------------------------------------------


def _set(doc: dict[str, Any], path: str, value: Any) -> None:
    set_path(doc, path, copy.deepcopy(value))


def _bounded(replace_when: Callable[[Any, Any], bool]) -> Callable[[dict[str, Any], str, Any], None]:
    def handler(doc: dict[str, Any], path: str, value: Any) -> None:
        current = get_path(doc, path)
        if current is MISSING or current is None:
            set_path(doc, path, copy.deepcopy(value))
            return
        if type_name(current) != type_name(value):
            return
        try:
            replace = replace_when(current, value)
        except TypeError:
            return
        if replace:
            set_path(doc, path, copy.deepcopy(value))

    return handler


def _push(doc: dict[str, Any], path: str, value: Any) -> None:
    current = get_path(doc, path)
    items = list(current) if isinstance(current, list) else []
    items.append(copy.deepcopy(value))
    set_path(doc, path, items)


def _pull(doc: dict[str, Any], path: str, value: Any) -> None:
    current = get_path(doc, path)
    if not isinstance(current, list):
        return
    if callable(value):
        kept = [item for item in current if not value(item)]
    else:
        kept = [item for item in current if not deep_equal(item, value)]
    set_path(doc, path, kept)


_HANDLERS: dict[str, Callable[[dict[str, Any], str, Any], None]] = {
    "$set": _set,
    "$max": _bounded(lambda current, value: current < value),
    "$min": _bounded(lambda current, value: current > value),
    "$push": _push,
    "$pull": _pull,
}

UPDATE_OPERATORS: frozenset[str] = frozenset(_HANDLERS)
