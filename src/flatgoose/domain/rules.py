"""Field rules — the compiled form of a schema definition.

A definition is a nested mapping literal whose values take one of four
shapes. Each shape is discriminated exactly once, here, into a tagged
variant:

- bare type tag                      -> :class:`LeafRule`
- mapping with a ``type`` key        -> :class:`LeafRule` with constraints
- mapping without ``type``           -> :class:`NestedRule` (sub-schema)
- one-element list/tuple             -> :class:`ArrayRule` (array of item rule)

Validation, default application, and uniqueness checks all dispatch on these
variants instead of re-inspecting the raw definition.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flatgoose.domain.paths import MISSING
from flatgoose.domain.types import FieldType, resolve_type_tag, type_name

# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LeafRule:
    """A typed field with optional constraints."""

    type: FieldType
    required: bool = False
    default: Any = MISSING
    enum: tuple[Any, ...] | None = None
    min: float | None = None
    max: float | None = None
    minlength: int | None = None
    maxlength: int | None = None
    unique: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def resolve_default(self) -> Any:
        """Produce a fresh default value (calling a default provider if set)."""
        if callable(self.default):
            return self.default()
        return copy.deepcopy(self.default)


@dataclass(frozen=True)
class NestedRule:
    """A sub-schema for an embedded object."""

    fields: dict[str, Rule] = field(default_factory=dict)


@dataclass(frozen=True)
class ArrayRule:
    """An array whose every element follows *item*."""

    item: Rule


Rule = LeafRule | NestedRule | ArrayRule


@dataclass(frozen=True)
class FieldIssue:
    """One field-level problem, addressed by its path."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def join_path(parent: str, key: str) -> str:
    """Dot-join *key* onto *parent* (top-level keys have no prefix)."""
    return f"{parent}.{key}" if parent else key


def index_path(parent: str, index: int) -> str:
    return f"{parent}[{index}]"


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

_NUMERIC_KEYS = ("min", "max")
_LENGTH_KEYS = ("minlength", "maxlength")


def compile_definition(definition: Any) -> tuple[dict[str, Rule], list[FieldIssue]]:
    """Compile a raw definition into rules, collecting every definition error.

    Returns ``(rules, issues)``. When *issues* is non-empty the rules are
    incomplete and must not be used.
    """
    if not isinstance(definition, Mapping):
        return {}, [FieldIssue("<root>", "definition must be a mapping")]

    issues: list[FieldIssue] = []
    rules: dict[str, Rule] = {}
    for key, raw in definition.items():
        rule = _compile_rule(raw, str(key), issues)
        if rule is not None:
            rules[str(key)] = rule
    return rules, issues


def _compile_rule(raw: Any, path: str, issues: list[FieldIssue]) -> Rule | None:
    if isinstance(raw, Mapping):
        if "type" in raw:
            return _compile_leaf(raw, path, issues)
        fields: dict[str, Rule] = {}
        for key, sub in raw.items():
            rule = _compile_rule(sub, join_path(path, str(key)), issues)
            if rule is not None:
                fields[str(key)] = rule
        return NestedRule(fields)

    if isinstance(raw, (list, tuple)):
        if len(raw) != 1:
            issues.append(FieldIssue(path, "array rule must contain exactly one item rule"))
            return None
        item = _compile_rule(raw[0], index_path(path, 0), issues)
        return ArrayRule(item) if item is not None else None

    tag = resolve_type_tag(raw)
    if tag is not None:
        return LeafRule(tag)
    if isinstance(raw, (str, type)) or callable(raw):
        issues.append(FieldIssue(path, "invalid type definition"))
    else:
        issues.append(FieldIssue(path, "invalid schema definition"))
    return None


def _compile_leaf(raw: Mapping[str, Any], path: str, issues: list[FieldIssue]) -> LeafRule | None:
    tag = resolve_type_tag(raw["type"])
    if tag is None:
        issues.append(FieldIssue(path, "invalid type definition"))
        return None

    start = len(issues)

    default = raw.get("default", MISSING)
    if default is None:
        default = MISSING
    if default is not MISSING and not callable(default) and not tag.check(default):
        issues.append(
            FieldIssue(
                path,
                f"default value type mismatch, expected {tag}, got {type_name(default)}",
            )
        )

    enum = raw.get("enum")
    if enum is not None:
        if not isinstance(enum, (list, tuple)):
            issues.append(FieldIssue(path, "enum must be an array"))
        else:
            for idx, value in enumerate(enum):
                if not tag.check(value):
                    issues.append(
                        FieldIssue(
                            path,
                            f"enum[{idx}] type mismatch, expected {tag}, got {type_name(value)}",
                        )
                    )

    bound_keys = {FieldType.NUMBER: _NUMERIC_KEYS, FieldType.STRING: _LENGTH_KEYS}.get(tag, ())
    for key in bound_keys:
        value = raw.get(key)
        if value is not None and not FieldType.NUMBER.check(value):
            issues.append(FieldIssue(path, f"{key} must be a number"))

    if len(issues) > start:
        return None

    return LeafRule(
        type=tag,
        required=bool(raw.get("required", False)),
        default=default,
        enum=tuple(enum) if enum is not None else None,
        min=raw.get("min") if tag is FieldType.NUMBER else None,
        max=raw.get("max") if tag is FieldType.NUMBER else None,
        minlength=raw.get("minlength") if tag is FieldType.STRING else None,
        maxlength=raw.get("maxlength") if tag is FieldType.STRING else None,
        unique=bool(raw.get("unique", False)),
    )
