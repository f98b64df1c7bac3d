"""Schema Validator — definition checks and document checks.

Two independent entry points:

- :func:`validate_schema` checks a raw definition for internal consistency.
- :func:`validate_data` checks a document against a definition (raw or
  compiled) and reports every field-level problem at once.

Errors never short-circuit across fields: all problems are collected, and a
document is valid iff none were produced. Within one field, the first
structural failure (required, wrong container, wrong type) stops further
checks on that field.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from flatgoose.domain.paths import MISSING, deep_equal
from flatgoose.domain.rules import (
    ArrayRule,
    FieldIssue,
    LeafRule,
    NestedRule,
    Rule,
    compile_definition,
    index_path,
    join_path,
)
from flatgoose.domain.types import FieldType, type_name
from flatgoose.errors import SchemaDefinitionError

# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationResult:
    """Result of a definition or document validation check."""

    valid: bool
    issues: list[FieldIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        """Path-prefixed error strings (``"address.city: is required"``)."""
        return [str(issue) for issue in self.issues]

    def as_mapping(self) -> dict[str, str]:
        """Collapse issues into ``path -> message`` (messages on one path are joined)."""
        merged: dict[str, str] = {}
        for issue in self.issues:
            if issue.path in merged:
                merged[issue.path] = f"{merged[issue.path]}; {issue.message}"
            else:
                merged[issue.path] = issue.message
        return merged


def _result(issues: list[FieldIssue]) -> ValidationResult:
    return ValidationResult(valid=not issues, issues=issues)


# ---------------------------------------------------------------------------
# Definition validation
# ---------------------------------------------------------------------------


def validate_schema(definition: Any) -> ValidationResult:
    """Check a raw schema definition for internal consistency.

    Deterministic and side-effect-free.
    """
    _rules, issues = compile_definition(definition)
    return _result(issues)


# ---------------------------------------------------------------------------
# Document validation
# ---------------------------------------------------------------------------


def validate_data(
    document: Any,
    definition: Mapping[str, Any],
    *,
    ignore_keys: frozenset[str] = frozenset(),
) -> ValidationResult:
    """Validate *document* against *definition*.

    *definition* may be a raw definition or an already-compiled mapping of
    field name to :data:`Rule`. Top-level keys listed in *ignore_keys* are
    exempt from the undeclared-key check (used for store-managed fields).
    """
    rules = _ensure_compiled(definition)
    issues: list[FieldIssue] = []

    if not isinstance(document, Mapping):
        issues.append(FieldIssue("<root>", "data must be a non-null object"))
        return _result(issues)

    for key in document:
        if key not in rules and key not in ignore_keys:
            issues.append(FieldIssue(str(key), "is not defined in schema"))

    for key, rule in rules.items():
        _validate_field(document.get(key, MISSING), rule, key, issues)

    return _result(issues)


def _ensure_compiled(definition: Mapping[str, Any]) -> dict[str, Rule]:
    if all(isinstance(rule, (LeafRule, NestedRule, ArrayRule)) for rule in definition.values()):
        return dict(definition)
    rules, issues = compile_definition(definition)
    if issues:
        raise SchemaDefinitionError(str(issue) for issue in issues)
    return rules


def _is_absent(value: Any) -> bool:
    return value is MISSING or value is None


def _validate_field(value: Any, rule: Rule, path: str, issues: list[FieldIssue]) -> None:
    if isinstance(rule, NestedRule):
        if _is_absent(value):
            return
        if not isinstance(value, Mapping):
            issues.append(FieldIssue(path, f"expected object, got {type_name(value)}"))
            return
        for key in value:
            if key not in rule.fields:
                issues.append(FieldIssue(join_path(path, str(key)), "is not defined in schema"))
        for key, sub_rule in rule.fields.items():
            _validate_field(value.get(key, MISSING), sub_rule, join_path(path, key), issues)
        return

    if isinstance(rule, ArrayRule):
        if _is_absent(value):
            return
        if not isinstance(value, list):
            issues.append(FieldIssue(path, f"expected array, got {type_name(value)}"))
            return
        for idx, item in enumerate(value):
            _validate_field(item, rule.item, index_path(path, idx), issues)
        return

    _validate_leaf(value, rule, path, issues)


def _validate_leaf(value: Any, rule: LeafRule, path: str, issues: list[FieldIssue]) -> None:
    if _is_absent(value) and rule.has_default:
        # Default providers are only called when a value is stored.
        if callable(rule.default):
            return
        value = rule.resolve_default()

    if rule.required and (_is_absent(value) or value == ""):
        issues.append(FieldIssue(path, "is required"))
        return

    if _is_absent(value):
        return

    if not rule.type.check(value):
        issues.append(FieldIssue(path, f"expected {rule.type}, got {type_name(value)}"))
        return

    if rule.enum is not None and not any(deep_equal(value, option) for option in rule.enum):
        issues.append(FieldIssue(path, f"value {value!r} not in enum {list(rule.enum)!r}"))

    if rule.type is FieldType.NUMBER:
        if rule.min is not None and value < rule.min:
            issues.append(FieldIssue(path, f"should be >= {rule.min}"))
        if rule.max is not None and value > rule.max:
            issues.append(FieldIssue(path, f"should be <= {rule.max}"))

    if rule.type is FieldType.STRING:
        if rule.minlength is not None and len(value) < rule.minlength:
            issues.append(FieldIssue(path, f"length should be >= {rule.minlength}"))
        if rule.maxlength is not None and len(value) > rule.maxlength:
            issues.append(FieldIssue(path, f"length should be <= {rule.maxlength}"))


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def apply_defaults(document: Mapping[str, Any], rules: Mapping[str, Rule]) -> dict[str, Any]:
    """Return a copy of *document* with declared defaults filled in.

    Recurses into nested sub-schemas and into the items of arrays. A missing
    embedded object is created only when at least one of its fields receives
    a default. Each default provider is called once per value it fills.
    """
    result = dict(document)
    for key, rule in rules.items():
        filled = _fill(result.get(key, MISSING), rule)
        if filled is not MISSING:
            result[key] = filled
    return result


def _fill(value: Any, rule: Rule) -> Any:
    if isinstance(rule, LeafRule):
        if _is_absent(value) and rule.has_default:
            return rule.resolve_default()
        return value
    if isinstance(rule, NestedRule):
        if _is_absent(value):
            filled = apply_defaults({}, rule.fields)
            return filled if filled else value
        if isinstance(value, Mapping):
            return apply_defaults(value, rule.fields)
        return value
    if isinstance(value, list):
        return [_fill(item, rule.item) for item in value]
    return value


# ---------------------------------------------------------------------------
# Model names
# ---------------------------------------------------------------------------

_NAME_START = re.compile(r"^[A-Za-z]")
_NAME_CHARS = re.compile(r"^[A-Za-z0-9_]+$")


def validate_model_name(name: Any, *, max_length: int = 50) -> ValidationResult:
    """Check that *name* can name a model (and its collection file)."""
    issues: list[FieldIssue] = []
    if not isinstance(name, str):
        issues.append(FieldIssue("name", "model name must be a string"))
        return _result(issues)
    if not name:
        issues.append(FieldIssue("name", "model name cannot be empty"))
        return _result(issues)
    if not _NAME_START.match(name):
        issues.append(FieldIssue("name", "model name must start with a letter"))
    if not _NAME_CHARS.match(name):
        issues.append(
            FieldIssue("name", "model name can only contain letters, numbers, and underscores")
        )
    if len(name) > max_length:
        issues.append(FieldIssue("name", f"model name cannot exceed {max_length} characters"))
    return _result(issues)


# ---------------------------------------------------------------------------
# Uniqueness
# ---------------------------------------------------------------------------


def find_unique_conflicts(
    document: Mapping[str, Any],
    others: list[Mapping[str, Any]],
    rules: Mapping[str, Rule],
    *,
    prefix: str = "",
) -> list[str]:
    """Return paths of ``unique`` fields whose value already appears in *others*.

    Recurses into nested sub-schemas. Absent values never collide.
    """
    conflicts: list[str] = []
    for key, rule in rules.items():
        value = document.get(key, MISSING)
        path = join_path(prefix, key)
        if isinstance(rule, LeafRule):
            if rule.unique and not _is_absent(value):
                if any(deep_equal(other.get(key, MISSING), value) for other in others):
                    conflicts.append(path)
        elif isinstance(rule, NestedRule) and isinstance(value, Mapping):
            nested = [
                other[key] if isinstance(other.get(key), Mapping) else {} for other in others
            ]
            conflicts.extend(find_unique_conflicts(value, nested, rule.fields, prefix=path))
    return conflicts
