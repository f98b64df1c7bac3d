"""DocumentStore — read-validate-mutate-write cycles over one collection.

Pipeline per operation: LOCK -> READ -> MUTATE -> WRITE -> NOTIFY.
Read-only operations (find, count, exists) skip WRITE and NOTIFY.

INVARIANT: No snapshot outlives an operation. Every call re-reads the
full collection file inside the collection's lock, so two writers in the
same process can never lose each other's changes.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from flatgoose.domain.filters import match
from flatgoose.domain.ids import ID_FIELD
from flatgoose.domain.paths import deep_equal
from flatgoose.domain.query import FindOptions, parse_options, run_query
from flatgoose.domain.types import type_name
from flatgoose.domain.updates import apply_update
from flatgoose.domain.validation import apply_defaults, find_unique_conflicts, validate_schema
from flatgoose.errors import (
    InvalidArgumentError,
    SchemaDefinitionError,
    UniquenessError,
    ValidationError,
)
from flatgoose.infrastructure.filesystem import read_collection, write_collection
from flatgoose.services._helpers import now_iso
from flatgoose.services.results import DeleteResult, InsertError, InsertManyResult, UpdateResult

if TYPE_CHECKING:
    from pathlib import Path

    from flatgoose.infrastructure.store import Store
    from flatgoose.schema import Schema

logger = logging.getLogger(__name__)

CREATED_AT = "created_at"
UPDATED_AT = "updated_at"


class DocumentStore:
    """Owns the document list of one collection for the duration of each call.

    Parameters:
        store: The store context providing the storage root, locks, identifier
            factory, and plugin dispatch.
        name: Model name (the collection file is named after it).
        schema: Schema whose rules govern validation, defaults, and uniqueness.
    """

    def __init__(self, store: Store, name: str, schema: Schema) -> None:
        result = validate_schema(schema.definition)
        if not result.valid:
            raise SchemaDefinitionError(result.errors)

        self._store = store
        self._schema = schema
        self.name = name
        self.path: Path = store.collection_path(schema.options.collection or name)

    @property
    def _managed_keys(self) -> frozenset[str]:
        if self._schema.options.timestamps:
            return frozenset({ID_FIELD, CREATED_AT, UPDATED_AT})
        return frozenset({ID_FIELD})

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------

    def insert(self, document: Mapping[str, Any]) -> dict[str, Any]:
        """Validate, default, identify, and append *document*. Returns the stored copy."""
        with self._store.lock(self.path):
            existing = read_collection(self.path)
            prepared = self._prepare(document, existing)
            existing.append(prepared)
            write_collection(self.path, existing)

        logger.debug("Inserted %s into %s", prepared[ID_FIELD], self.name)
        self._notify("post_insert", {"model": self.name, "documents": [copy.deepcopy(prepared)]})
        return copy.deepcopy(prepared)

    def insert_many(self, documents: list[Mapping[str, Any]]) -> InsertManyResult:
        """Insert each document independently; failures are reported, not raised.

        Every accepted document is committed in a single write.
        """
        if not isinstance(documents, (list, tuple)):
            msg = f"insert_many expects a list of documents, got {type_name(documents)}"
            raise InvalidArgumentError(msg)

        inserted: list[dict[str, Any]] = []
        errors: list[InsertError] = []
        with self._store.lock(self.path):
            existing = read_collection(self.path)
            for index, document in enumerate(documents):
                try:
                    prepared = self._prepare(document, existing)
                except ValidationError as exc:
                    errors.append(InsertError(index=index, errors=exc.errors))
                    continue
                existing.append(prepared)
                inserted.append(prepared)
            if inserted:
                write_collection(self.path, existing)

        logger.debug(
            "Batch insert into %s: %d inserted, %d rejected", self.name, len(inserted), len(errors)
        )
        if inserted:
            self._notify("post_insert", {"model": self.name, "documents": copy.deepcopy(inserted)})
        return InsertManyResult(inserted=copy.deepcopy(inserted), errors=errors)

    def _validated(
        self, document: Any, *, ignore_keys: frozenset[str] = frozenset()
    ) -> dict[str, Any]:
        """Fill defaults into a copy of *document* (minus *ignore_keys*), then validate it.

        The stored value of a default is the value that was validated.
        """
        candidate = document
        if isinstance(document, Mapping):
            body = {k: v for k, v in document.items() if k not in ignore_keys}
            candidate = apply_defaults(copy.deepcopy(body), self._schema.rules)
        validation = self._schema.validate(candidate, ignore_keys=ignore_keys)
        if not validation.valid:
            raise ValidationError(validation.as_mapping())
        return candidate

    def _prepare(self, document: Any, existing: list[dict[str, Any]]) -> dict[str, Any]:
        body = self._validated(document)
        prepared = {ID_FIELD: self._store.id_factory(), **body}
        if self._schema.options.timestamps:
            stamp = now_iso()
            prepared[CREATED_AT] = stamp
            prepared[UPDATED_AT] = stamp

        self._check_unique(prepared, existing)
        return prepared

    def _check_unique(self, document: dict[str, Any], others: list[dict[str, Any]]) -> None:
        conflicts = find_unique_conflicts(document, others, self._schema.rules)
        if conflicts:
            raise UniquenessError({path: "must be unique" for path in conflicts})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(
        self,
        query: Mapping[str, Any] | None = None,
        options: FindOptions | Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Every matching document, sorted/skipped/limited per *options*."""
        _check_mapping("Filter", query)
        parsed = parse_options(options)
        return run_query(self._read(), query, parsed)

    def find_one(
        self,
        query: Mapping[str, Any] | None = None,
        options: FindOptions | Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """First match (in stored order unless *options* sorts), or None."""
        results = self.find(query, options)
        return results[0] if results else None

    def count(self, query: Mapping[str, Any] | None = None) -> int:
        _check_mapping("Filter", query)
        return sum(1 for doc in self._read() if match(doc, query))

    def exists(self, query: Mapping[str, Any] | None = None) -> bool:
        _check_mapping("Filter", query)
        return any(match(doc, query) for doc in self._read())

    def _read(self) -> list[dict[str, Any]]:
        with self._store.lock(self.path):
            return read_collection(self.path)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update(
        self,
        query: Mapping[str, Any] | None,
        update: Mapping[str, Any],
        *,
        multiple: bool = False,
    ) -> UpdateResult:
        """Apply *update* to the first (or every) matching document."""
        result, _documents = self.update_returning(query, update, multiple=multiple)
        return result

    def update_returning(
        self,
        query: Mapping[str, Any] | None,
        update: Mapping[str, Any],
        *,
        multiple: bool = False,
    ) -> tuple[UpdateResult, list[dict[str, Any]]]:
        """Like :meth:`update`, also returning the updated documents."""
        _check_mapping("Filter", query)
        if not isinstance(update, Mapping):
            msg = f"Update must be a mapping, got {type_name(update)}"
            raise InvalidArgumentError(msg)

        matched = 0
        modified = 0
        updated: list[dict[str, Any]] = []
        with self._store.lock(self.path):
            existing = read_collection(self.path)
            for index, document in enumerate(existing):
                if not match(document, query):
                    continue
                matched += 1
                new_document = apply_update(document, update)
                if not deep_equal(new_document.get(ID_FIELD), document.get(ID_FIELD)):
                    msg = f"{ID_FIELD} cannot be modified by an update"
                    raise InvalidArgumentError(msg)
                if not deep_equal(new_document, document):
                    modified += 1
                    if self._schema.options.timestamps:
                        new_document[UPDATED_AT] = now_iso()
                existing[index] = new_document
                updated.append(new_document)
                if not multiple:
                    break
            if matched:
                write_collection(self.path, existing)

        result = UpdateResult(matched_count=matched, modified_count=modified)
        if matched:
            self._notify(
                "post_update",
                {"model": self.name, "matched_count": matched, "modified_count": modified},
            )
        return result, copy.deepcopy(updated)

    def replace(
        self,
        query: Mapping[str, Any] | None,
        document: Mapping[str, Any],
    ) -> UpdateResult:
        """Replace the first match with *document*, keeping its identifier."""
        result, _replaced = self.replace_returning(query, document)
        return result

    def replace_returning(
        self,
        query: Mapping[str, Any] | None,
        document: Mapping[str, Any],
    ) -> tuple[UpdateResult, dict[str, Any] | None]:
        """Like :meth:`replace`, also returning the stored replacement (or None)."""
        _check_mapping("Filter", query)
        body = self._validated(document, ignore_keys=self._managed_keys)

        with self._store.lock(self.path):
            existing = read_collection(self.path)
            index = next((i for i, doc in enumerate(existing) if match(doc, query)), None)
            if index is None:
                return UpdateResult(), None

            current = existing[index]
            supplied_id = document.get(ID_FIELD)
            if supplied_id is not None and supplied_id != current.get(ID_FIELD):
                msg = f"{ID_FIELD} cannot be modified by a replacement"
                raise InvalidArgumentError(msg)

            replacement = {ID_FIELD: current.get(ID_FIELD), **body}
            if self._schema.options.timestamps:
                for key in (CREATED_AT, UPDATED_AT):
                    if key in current:
                        replacement[key] = current[key]
            others = existing[:index] + existing[index + 1 :]
            self._check_unique(replacement, others)

            changed = not deep_equal(replacement, current)
            if changed and self._schema.options.timestamps:
                replacement[UPDATED_AT] = now_iso()
            existing[index] = replacement
            write_collection(self.path, existing)

        result = UpdateResult(matched_count=1, modified_count=int(changed))
        self._notify(
            "post_update",
            {"model": self.name, "matched_count": 1, "modified_count": int(changed)},
        )
        return result, copy.deepcopy(replacement)

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete(self, query: Mapping[str, Any] | None, *, multiple: bool = False) -> DeleteResult:
        """Remove the first (or every) matching document."""
        result, _removed = self.delete_returning(query, multiple=multiple)
        return result

    def delete_returning(
        self,
        query: Mapping[str, Any] | None,
        *,
        multiple: bool = False,
    ) -> tuple[DeleteResult, list[dict[str, Any]]]:
        """Like :meth:`delete`, also returning the removed documents."""
        _check_mapping("Filter", query)
        removed: list[dict[str, Any]] = []
        with self._store.lock(self.path):
            existing = read_collection(self.path)
            kept: list[dict[str, Any]] = []
            for document in existing:
                if (multiple or not removed) and match(document, query):
                    removed.append(document)
                else:
                    kept.append(document)
            if removed:
                write_collection(self.path, kept)

        result = DeleteResult(deleted_count=len(removed))
        if removed:
            logger.debug("Deleted %d documents from %s", len(removed), self.name)
            self._notify("post_delete", {"model": self.name, "deleted_count": len(removed)})
        return result, removed

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _notify(self, hook_name: str, payload: dict[str, Any]) -> None:
        self._store.dispatch(hook_name, payload)


def _check_mapping(label: str, value: Any) -> None:
    if value is not None and not isinstance(value, Mapping):
        msg = f"{label} must be a mapping, got {type_name(value)}"
        raise InvalidArgumentError(msg)
