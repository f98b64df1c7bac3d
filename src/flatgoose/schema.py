"""Schema — a compiled definition plus its options, hooks, and statics.

Usage::

    user_schema = Schema(
        {
            "name": {"type": str, "required": True, "unique": True},
            "age": {"type": FieldType.NUMBER, "min": 0, "default": 0},
            "address": {"city": str, "zip": str},
            "tags": [str],
        },
        timestamps=True,
    )

    @user_schema.pre("create")
    def normalize(ctx: HookContext) -> None:
        ctx.args["doc"]["name"] = ctx.args["doc"]["name"].strip()

A malformed definition raises :class:`~flatgoose.errors.SchemaDefinitionError`
immediately, never on first use.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from flatgoose.domain.rules import Rule, compile_definition
from flatgoose.domain.validation import ValidationResult, validate_data
from flatgoose.errors import InvalidArgumentError, SchemaDefinitionError
from flatgoose.hooks import Hook, HookChain, Operation, Phase


class SchemaOptions(BaseModel):
    """Per-schema behaviour switches.

    Attributes:
        timestamps: Maintain ``created_at``/``updated_at`` on every document.
        collection: Override the collection file stem (defaults to the
            lower-cased model name).
    """

    model_config = {"frozen": True, "extra": "forbid"}

    timestamps: bool = False
    collection: str | None = None


class Schema:
    """A model schema. Hooks and statics may be added until a model is built."""

    def __init__(
        self,
        definition: Mapping[str, Any],
        options: SchemaOptions | Mapping[str, Any] | None = None,
        **option_kwargs: Any,
    ) -> None:
        rules, issues = compile_definition(definition)
        if issues:
            raise SchemaDefinitionError(str(issue) for issue in issues)

        self.definition: dict[str, Any] = dict(definition)
        self.rules: dict[str, Rule] = rules
        self.options = _parse_options(options, option_kwargs)
        self.hooks = HookChain()
        self.statics: dict[str, Callable[..., Any]] = {}

    def validate(
        self, document: Any, *, ignore_keys: frozenset[str] = frozenset()
    ) -> ValidationResult:
        """Validate *document* against this schema's rules."""
        return validate_data(document, self.rules, ignore_keys=ignore_keys)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def add_hook(self, phase: Phase | str, operation: Operation | str, fn: Hook) -> Hook:
        """Register *fn* to run in *phase* (``"pre"``/``"post"``) of *operation*."""
        return self.hooks.register(phase, operation, fn)

    def pre(self, operation: Operation | str, fn: Hook | None = None) -> Any:
        """Register a pre hook; usable directly or as a decorator."""
        return self._hook_or_decorator(Phase.PRE, operation, fn)

    def post(self, operation: Operation | str, fn: Hook | None = None) -> Any:
        """Register a post hook; usable directly or as a decorator."""
        return self._hook_or_decorator(Phase.POST, operation, fn)

    def _hook_or_decorator(self, phase: Phase, operation: Operation | str, fn: Hook | None) -> Any:
        if fn is not None:
            return self.add_hook(phase, operation, fn)

        def decorator(func: Hook) -> Hook:
            return self.add_hook(phase, operation, func)

        return decorator

    # ------------------------------------------------------------------
    # Statics
    # ------------------------------------------------------------------

    def add_static(self, name: str, fn: Callable[..., Any]) -> Callable[..., Any]:
        """Expose ``fn(model, *args, **kwargs)`` as ``model.<name>(*args, **kwargs)``."""
        if self.hooks.frozen:
            msg = "Statics cannot be added after a model has been built from the schema"
            raise InvalidArgumentError(msg)
        if not name.isidentifier() or name.startswith("_"):
            msg = f"Invalid static name: {name!r}"
            raise InvalidArgumentError(msg)
        self.statics[name] = fn
        return fn

    def __repr__(self) -> str:
        return f"Schema(fields={list(self.rules)!r}, options={self.options!r})"


def _parse_options(
    options: SchemaOptions | Mapping[str, Any] | None,
    overrides: Mapping[str, Any],
) -> SchemaOptions:
    if isinstance(options, SchemaOptions):
        base: dict[str, Any] = options.model_dump()
    else:
        base = dict(options or {})
    base.update(overrides)
    try:
        return SchemaOptions.model_validate(base)
    except PydanticValidationError as exc:
        msg = f"Invalid schema options: {exc}"
        raise InvalidArgumentError(msg) from exc
