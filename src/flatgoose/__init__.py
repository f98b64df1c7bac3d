"""flatgoose — an embedded, schema-validated document store on flat YAML files."""

from __future__ import annotations

from flatgoose.domain.filters import match
from flatgoose.domain.query import FindOptions
from flatgoose.domain.types import FieldType
from flatgoose.domain.updates import apply_update
from flatgoose.domain.validation import ValidationResult, validate_data, validate_schema
from flatgoose.errors import (
    FlatgooseError,
    InvalidArgumentError,
    SchemaDefinitionError,
    UniquenessError,
    UnsupportedOperatorError,
    ValidationError,
)
from flatgoose.hooks import HookContext, Operation
from flatgoose.infrastructure.store import Store, connect
from flatgoose.schema import Schema, SchemaOptions
from flatgoose.services.model import Model
from flatgoose.services.results import DeleteResult, InsertManyResult, UpdateResult

__version__ = "0.1.0"

__all__ = [
    "DeleteResult",
    "FieldType",
    "FindOptions",
    "FlatgooseError",
    "HookContext",
    "InsertManyResult",
    "InvalidArgumentError",
    "Model",
    "Operation",
    "Schema",
    "SchemaDefinitionError",
    "SchemaOptions",
    "Store",
    "UniquenessError",
    "UnsupportedOperatorError",
    "UpdateResult",
    "ValidationError",
    "ValidationResult",
    "__version__",
    "apply_update",
    "connect",
    "match",
    "validate_data",
    "validate_schema",
]
