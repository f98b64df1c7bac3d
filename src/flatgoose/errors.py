"""Exception hierarchy for flatgoose.

Field-level failures are collected in full before one exception is raised,
so every error type that describes document content carries the complete
``path -> message`` mapping.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping


class FlatgooseError(Exception):
    """Base class for all flatgoose errors."""


class SchemaDefinitionError(FlatgooseError):
    """The schema definition itself is malformed."""

    def __init__(self, errors: Iterable[str]) -> None:
        self.errors: list[str] = list(errors)
        super().__init__("Invalid schema definition: " + "; ".join(self.errors))


class ValidationError(FlatgooseError):
    """A document failed field-level checks.

    Attributes:
        errors: Mapping of field path to message.
    """

    label = "Validation failed"

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors: dict[str, str] = dict(errors)
        details = ", ".join(f"{path}: {message}" for path, message in self.errors.items())
        super().__init__(f"{self.label}: {details}")


class UniquenessError(ValidationError):
    """A ``unique`` field collides with an existing document's value."""

    label = "Uniqueness violated"


class InvalidArgumentError(FlatgooseError):
    """A caller passed an argument of the wrong shape or type."""


class UnsupportedOperatorError(FlatgooseError):
    """A filter or update expression uses an unrecognized operator."""

    def __init__(self, operator: str, *, context: str) -> None:
        self.operator = operator
        self.context = context
        super().__init__(f"Unsupported {context} operator: {operator!r}")
