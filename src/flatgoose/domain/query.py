"""Find options — sort, skip, and limit over matched documents."""

from __future__ import annotations

import functools
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from flatgoose.domain.filters import match
from flatgoose.domain.paths import MISSING, get_path
from flatgoose.domain.types import type_name
from flatgoose.errors import InvalidArgumentError

ASCENDING = 1
DESCENDING = -1

_DIRECTION_ALIASES: dict[Any, int] = {
    1: ASCENDING,
    -1: DESCENDING,
    "asc": ASCENDING,
    "ascending": ASCENDING,
    "desc": DESCENDING,
    "descending": DESCENDING,
}


class FindOptions(BaseModel):
    """Options accepted by ``find``/``find_one``.

    Attributes:
        sort: Ordered ``field -> direction``; earlier keys take precedence.
        skip: Number of sorted matches to drop.
        limit: Maximum number of results after skipping (None = unlimited).
    """

    model_config = {"frozen": True, "extra": "forbid"}

    sort: dict[str, int] = Field(default_factory=dict)
    skip: int = Field(default=0, ge=0)
    limit: int | None = Field(default=None, ge=0)

    @field_validator("sort", mode="before")
    @classmethod
    def _normalize_directions(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        normalized: dict[str, int] = {}
        for key, direction in value.items():
            lookup = direction.lower() if isinstance(direction, str) else direction
            if isinstance(lookup, bool) or lookup not in _DIRECTION_ALIASES:
                msg = f"invalid sort direction for {key!r}: {direction!r}"
                raise ValueError(msg)
            normalized[key] = _DIRECTION_ALIASES[lookup]
        return normalized


def parse_options(options: FindOptions | Mapping[str, Any] | None) -> FindOptions:
    """Coerce caller-supplied options into :class:`FindOptions`."""
    if options is None:
        return FindOptions()
    if isinstance(options, FindOptions):
        return options
    if not isinstance(options, Mapping):
        msg = f"Find options must be a mapping, got {type_name(options)}"
        raise InvalidArgumentError(msg)
    try:
        return FindOptions.model_validate(dict(options))
    except PydanticValidationError as exc:
        msg = f"Invalid find options: {exc}"
        raise InvalidArgumentError(msg) from exc


def run_query(
    documents: Iterable[dict[str, Any]],
    query: Mapping[str, Any] | None,
    options: FindOptions | None = None,
) -> list[dict[str, Any]]:
    """Filter, sort, skip, and limit *documents*."""
    options = options or FindOptions()
    results = [doc for doc in documents if match(doc, query)]
    if options.sort:
        results = sort_documents(results, options.sort)
    if options.skip:
        results = results[options.skip :]
    if options.limit is not None:
        results = results[: options.limit]
    return results


def sort_documents(documents: list[dict[str, Any]], sort: Mapping[str, int]) -> list[dict[str, Any]]:
    """Stable multi-key sort. Absent values order before present ones."""

    def compare(a: dict[str, Any], b: dict[str, Any]) -> int:
        for path, direction in sort.items():
            result = compare_values(get_path(a, path), get_path(b, path))
            if result:
                return result * direction
        return 0

    return sorted(documents, key=functools.cmp_to_key(compare))


def compare_values(a: Any, b: Any) -> int:
    """Three-way comparison using native ordering.

    Absent/None values sort first; values of different kinds order by kind
    name; unorderable values of the same kind compare equal.
    """
    a_absent = a is MISSING or a is None
    b_absent = b is MISSING or b is None
    if a_absent or b_absent:
        return (not a_absent) - (not b_absent)

    a_kind, b_kind = type_name(a), type_name(b)
    if a_kind != b_kind:
        return (a_kind > b_kind) - (a_kind < b_kind)
    try:
        return (a > b) - (a < b)
    except TypeError:
        return 0
