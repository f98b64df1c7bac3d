"""Model — the operation surface callers use against one collection.

Every public method goes through the schema's hook chain
(:meth:`flatgoose.hooks.HookChain.run`) and then delegates to the
:class:`~flatgoose.services.documents.DocumentStore`. Hook handlers see the
call's arguments in ``ctx.args`` under these keys:

==========================  ===========================
operation                   ``ctx.args`` keys
==========================  ===========================
create, save                ``doc``
insert_many                 ``docs``
find, find_one              ``filter``, ``options``
find_by_id                  ``id``
find_by_id_and_delete       ``id``
find_by_id_and_update       ``id``, ``update``
find_one_and_delete         ``filter``
find_one_and_update         ``filter``, ``update``
update_one, update_many     ``filter``, ``update``
delete_one, delete_many     ``filter``
replace_one                 ``filter``, ``doc``
count_documents, exists     ``filter``
==========================  ===========================
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from flatgoose.domain.ids import ID_FIELD, is_valid_id
from flatgoose.domain.query import FindOptions
from flatgoose.domain.types import type_name
from flatgoose.errors import InvalidArgumentError
from flatgoose.hooks import HookContext, Operation
from flatgoose.services.documents import DocumentStore
from flatgoose.services.results import DeleteResult, InsertManyResult, UpdateResult

if TYPE_CHECKING:
    from pathlib import Path

    from flatgoose.infrastructure.store import Store
    from flatgoose.schema import Schema

_T = TypeVar("_T")

Filter = Mapping[str, Any] | None
Options = FindOptions | Mapping[str, Any] | None


class Model:
    """A named collection governed by a schema.

    Built through :meth:`flatgoose.infrastructure.store.Store.model`; statics
    registered on the schema become bound methods of the model.
    """

    def __init__(self, store: Store, name: str, schema: Schema) -> None:
        self.name = name
        self.schema = schema
        self.store = store
        self._documents = DocumentStore(store, name, schema)

        for static_name, fn in schema.statics.items():
            if hasattr(self, static_name):
                msg = f"Static {static_name!r} would shadow a model attribute"
                raise InvalidArgumentError(msg)
            setattr(self, static_name, functools.partial(fn, self))

    @property
    def path(self) -> Path:
        """The collection file backing this model."""
        return self._documents.path

    def _run(self, operation: Operation, core: Callable[[HookContext], _T], **args: Any) -> _T:
        context = HookContext(operation=operation, model=self.name, args=args)
        return self.schema.hooks.run(context, core)

    # ------------------------------------------------------------------
    # Inserts
    # ------------------------------------------------------------------

    def create(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        """Insert *doc* and return the stored document (with ``_id`` and defaults)."""
        return self._run(Operation.CREATE, lambda ctx: self._documents.insert(ctx.args["doc"]), doc=doc)

    def save(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        """Insert *doc*, or replace the stored document when *doc* carries an ``_id``."""
        return self._run(Operation.SAVE, self._save, doc=doc)

    def _save(self, ctx: HookContext) -> dict[str, Any]:
        doc = ctx.args["doc"]
        if not isinstance(doc, Mapping) or ID_FIELD not in doc:
            return self._documents.insert(doc)

        doc_id = doc[ID_FIELD]
        if not is_valid_id(doc_id):
            msg = f"Invalid {ID_FIELD}: expected a string, got {type_name(doc_id)}"
            raise InvalidArgumentError(msg)
        _result, replaced = self._documents.replace_returning({ID_FIELD: doc_id}, doc)
        if replaced is None:
            msg = f"No document with {ID_FIELD} {doc_id!r} in {self.name}"
            raise InvalidArgumentError(msg)
        return replaced

    def insert_many(self, docs: list[Mapping[str, Any]]) -> InsertManyResult:
        """Insert each document independently; see :class:`InsertManyResult`."""
        return self._run(
            Operation.INSERT_MANY, lambda ctx: self._documents.insert_many(ctx.args["docs"]), docs=docs
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find(self, filter: Filter = None, options: Options = None) -> list[dict[str, Any]]:
        """Every document matching *filter*; *options* may sort, skip, and limit."""
        return self._run(
            Operation.FIND,
            lambda ctx: self._documents.find(ctx.args["filter"], ctx.args["options"]),
            filter=filter,
            options=options,
        )

    def find_one(self, filter: Filter = None, options: Options = None) -> dict[str, Any] | None:
        """First matching document, or None."""
        return self._run(
            Operation.FIND_ONE,
            lambda ctx: self._documents.find_one(ctx.args["filter"], ctx.args["options"]),
            filter=filter,
            options=options,
        )

    def find_by_id(self, id: str) -> dict[str, Any] | None:
        """The document whose ``_id`` is *id*, or None."""
        _require_id(id)
        return self._run(
            Operation.FIND_BY_ID,
            lambda ctx: self._documents.find_one({ID_FIELD: ctx.args["id"]}),
            id=id,
        )

    def count_documents(self, filter: Filter = None) -> int:
        return self._run(
            Operation.COUNT_DOCUMENTS,
            lambda ctx: self._documents.count(ctx.args["filter"]),
            filter=filter,
        )

    def exists(self, filter: Filter = None) -> bool:
        return self._run(
            Operation.EXISTS,
            lambda ctx: self._documents.exists(ctx.args["filter"]),
            filter=filter,
        )

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def update_one(self, filter: Filter, update: Mapping[str, Any]) -> UpdateResult:
        return self._run(
            Operation.UPDATE_ONE,
            lambda ctx: self._documents.update(ctx.args["filter"], ctx.args["update"]),
            filter=filter,
            update=update,
        )

    def update_many(self, filter: Filter, update: Mapping[str, Any]) -> UpdateResult:
        return self._run(
            Operation.UPDATE_MANY,
            lambda ctx: self._documents.update(ctx.args["filter"], ctx.args["update"], multiple=True),
            filter=filter,
            update=update,
        )

    def replace_one(self, filter: Filter, doc: Mapping[str, Any]) -> UpdateResult:
        """Replace the first match with *doc* (validated like an insert, ``_id`` kept)."""
        return self._run(
            Operation.REPLACE_ONE,
            lambda ctx: self._documents.replace(ctx.args["filter"], ctx.args["doc"]),
            filter=filter,
            doc=doc,
        )

    def find_one_and_update(
        self,
        filter: Filter,
        update: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        """Update the first match and return it as updated, or None."""
        return self._run(
            Operation.FIND_ONE_AND_UPDATE,
            lambda ctx: self._update_first(ctx.args["filter"], ctx.args["update"]),
            filter=filter,
            update=update,
        )

    def find_by_id_and_update(self, id: str, update: Mapping[str, Any]) -> dict[str, Any] | None:
        _require_id(id)
        return self._run(
            Operation.FIND_BY_ID_AND_UPDATE,
            lambda ctx: self._update_first({ID_FIELD: ctx.args["id"]}, ctx.args["update"]),
            id=id,
            update=update,
        )

    def _update_first(self, query: Filter, update: Mapping[str, Any]) -> dict[str, Any] | None:
        _result, documents = self._documents.update_returning(query, update)
        return documents[0] if documents else None

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def delete_one(self, filter: Filter) -> DeleteResult:
        return self._run(
            Operation.DELETE_ONE,
            lambda ctx: self._documents.delete(ctx.args["filter"]),
            filter=filter,
        )

    def delete_many(self, filter: Filter) -> DeleteResult:
        return self._run(
            Operation.DELETE_MANY,
            lambda ctx: self._documents.delete(ctx.args["filter"], multiple=True),
            filter=filter,
        )

    def find_one_and_delete(self, filter: Filter) -> dict[str, Any] | None:
        """Delete the first match and return it, or None."""
        return self._run(
            Operation.FIND_ONE_AND_DELETE,
            lambda ctx: self._delete_first(ctx.args["filter"]),
            filter=filter,
        )

    def find_by_id_and_delete(self, id: str) -> dict[str, Any] | None:
        _require_id(id)
        return self._run(
            Operation.FIND_BY_ID_AND_DELETE,
            lambda ctx: self._delete_first({ID_FIELD: ctx.args["id"]}),
            id=id,
        )

    def _delete_first(self, query: Filter) -> dict[str, Any] | None:
        _result, removed = self._documents.delete_returning(query)
        return removed[0] if removed else None

    def __repr__(self) -> str:
        return f"Model(name={self.name!r}, path={str(self.path)!r})"


def _require_id(value: Any) -> None:
    if not is_valid_id(value):
        msg = f"Invalid identifier: expected a string, got {type_name(value)}"
        raise InvalidArgumentError(msg)
