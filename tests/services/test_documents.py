"""Tests for DocumentStore — the read-validate-mutate-write cycles."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

import pytest

from flatgoose import FieldType, Schema
from flatgoose.errors import (
    InvalidArgumentError,
    SchemaDefinitionError,
    UniquenessError,
    ValidationError,
)
from flatgoose.infrastructure.filesystem import read_collection
from flatgoose.infrastructure.store import Store
from flatgoose.plugins import hookimpl
from flatgoose.services.documents import CREATED_AT, UPDATED_AT, DocumentStore
from tests.conftest import make_user_schema


@pytest.fixture
def docs(store: Store) -> DocumentStore:
    return DocumentStore(store, "User", make_user_schema())


def _hash(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


class _Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_insert(self, model: str, documents: list[dict[str, Any]]) -> None:
        self.events.append(("insert", {"model": model, "documents": documents}))

    @hookimpl
    def post_update(self, model: str, matched_count: int, modified_count: int) -> None:
        self.events.append(("update", {"matched": matched_count, "modified": modified_count}))

    @hookimpl
    def post_delete(self, model: str, deleted_count: int) -> None:
        self.events.append(("delete", {"deleted": deleted_count}))


class TestConstruction:
    def test_path_from_model_name(self, store: Store) -> None:
        assert DocumentStore(store, "User", make_user_schema()).path == store.root / "user.yaml"

    def test_definition_revalidated(self, store: Store) -> None:
        schema = make_user_schema()
        schema.definition["bad"] = "nope"
        with pytest.raises(SchemaDefinitionError):
            DocumentStore(store, "User", schema)


class TestInsert:
    def test_assigns_id_and_defaults(self, docs: DocumentStore) -> None:
        stored = docs.insert({"name": "Ann"})
        assert stored == {"_id": "id-1", "name": "Ann", "age": 0}
        assert read_collection(docs.path) == [stored]

    def test_returns_copy(self, docs: DocumentStore) -> None:
        stored = docs.insert({"name": "Ann"})
        stored["age"] = 99
        assert docs.find_one({"name": "Ann"})["age"] == 0  # type: ignore[index]

    def test_input_not_mutated(self, docs: DocumentStore) -> None:
        doc = {"name": "Ann"}
        docs.insert(doc)
        assert doc == {"name": "Ann"}

    def test_validation_error_collects_all(self, docs: DocumentStore) -> None:
        with pytest.raises(ValidationError) as exc_info:
            docs.insert({"age": -1, "status": "gone"})
        assert exc_info.value.errors == {
            "name": "is required",
            "age": "should be >= 0",
            "status": "value 'gone' not in enum ['active', 'inactive']",
        }
        assert not docs.path.exists()

    def test_uniqueness(self, docs: DocumentStore) -> None:
        docs.insert({"name": "Ann"})
        with pytest.raises(UniquenessError) as exc_info:
            docs.insert({"name": "Ann"})
        assert exc_info.value.errors == {"name": "must be unique"}
        assert str(exc_info.value) == "Uniqueness violated: name: must be unique"
        assert len(read_collection(docs.path)) == 1

    def test_distinct_unique_values(self, docs: DocumentStore) -> None:
        docs.insert({"name": "Ann"})
        docs.insert({"name": "Bob"})
        assert docs.count() == 2

    def test_default_provider_called_once_per_insert(self, store: Store) -> None:
        calls: list[int] = []

        def next_seq() -> int:
            calls.append(len(calls) + 1)
            return len(calls)

        schema = Schema({"seq": {"type": FieldType.NUMBER, "default": next_seq}})
        docs = DocumentStore(store, "Ticket", schema)
        first = docs.insert({})
        second = docs.insert({})
        assert calls == [1, 2]
        assert (first["seq"], second["seq"]) == (1, 2)
        assert [doc["seq"] for doc in read_collection(docs.path)] == [1, 2]

    def test_array_item_defaults_stored(self, store: Store) -> None:
        schema = Schema({"items": [{"qty": {"type": int, "required": True, "default": 1}}]})
        docs = DocumentStore(store, "Order", schema)
        stored = docs.insert({"items": [{}, {"qty": 4}]})
        assert stored["items"] == [{"qty": 1}, {"qty": 4}]
        assert read_collection(docs.path)[0]["items"] == [{"qty": 1}, {"qty": 4}]

    def test_uniqueness_covers_defaulted_values(self, store: Store) -> None:
        schema = Schema({"slot": {"type": str, "unique": True, "default": "main"}})
        docs = DocumentStore(store, "Slot", schema)
        docs.insert({})
        with pytest.raises(UniquenessError) as exc_info:
            docs.insert({})
        assert exc_info.value.errors == {"slot": "must be unique"}
        assert len(read_collection(docs.path)) == 1

    def test_timestamps(self, store: Store) -> None:
        docs = DocumentStore(store, "User", make_user_schema(timestamps=True))
        stored = docs.insert({"name": "Ann"})
        assert stored[CREATED_AT] == stored[UPDATED_AT]

    def test_notifies_plugins(self, store: Store, docs: DocumentStore) -> None:
        recorder = _Recorder()
        store.plugins.register_plugin(recorder)
        docs.insert({"name": "Ann"})
        assert recorder.events == [
            ("insert", {"model": "User", "documents": [{"_id": "id-1", "name": "Ann", "age": 0}]})
        ]


class TestInsertMany:
    def test_partial_success(self, docs: DocumentStore) -> None:
        result = docs.insert_many([{"name": "Ann"}, {"age": 3}, {"name": "Ann"}, {"name": "Bob"}])
        assert result.inserted_ids == ["id-1", "id-3"]
        assert [(e.index, e.errors) for e in result.errors] == [
            (1, {"name": "is required"}),
            (2, {"name": "must be unique"}),
        ]
        assert [d["name"] for d in read_collection(docs.path)] == ["Ann", "Bob"]

    def test_nothing_valid_writes_nothing(self, docs: DocumentStore) -> None:
        result = docs.insert_many([{}, {"name": 5}])
        assert result.inserted == []
        assert not docs.path.exists()

    def test_requires_list(self, docs: DocumentStore) -> None:
        with pytest.raises(InvalidArgumentError, match="expects a list"):
            docs.insert_many({"name": "Ann"})  # type: ignore[arg-type]


class TestReads:
    @pytest.fixture(autouse=True)
    def _seed(self, docs: DocumentStore) -> None:
        docs.insert_many(
            [
                {"name": "Ann", "age": 30, "status": "active"},
                {"name": "Bob", "age": 25, "status": "inactive"},
                {"name": "Cid", "age": 41, "status": "active"},
            ]
        )

    def test_find_all(self, docs: DocumentStore) -> None:
        assert [d["name"] for d in docs.find()] == ["Ann", "Bob", "Cid"]

    def test_find_with_options(self, docs: DocumentStore) -> None:
        results = docs.find({"status": "active"}, {"sort": {"age": -1}, "limit": 1})
        assert [d["name"] for d in results] == ["Cid"]

    def test_find_one_none(self, docs: DocumentStore) -> None:
        assert docs.find_one({"name": "Zed"}) is None

    def test_count_and_exists(self, docs: DocumentStore) -> None:
        assert docs.count({"age": {"$gte": 30}}) == 2
        assert docs.exists({"name": "Bob"}) is True
        assert docs.exists({"name": "Zed"}) is False

    def test_reads_never_write(self, docs: DocumentStore) -> None:
        before = _hash(docs.path)
        docs.find({"age": {"$gt": 1}})
        docs.find_one()
        docs.count()
        docs.exists({"name": "Ann"})
        assert _hash(docs.path) == before

    def test_filter_must_be_mapping(self, docs: DocumentStore) -> None:
        with pytest.raises(InvalidArgumentError, match="Filter must be a mapping"):
            docs.find("Ann")  # type: ignore[arg-type]

    def test_reads_reflect_file_changes(self, docs: DocumentStore) -> None:
        docs.path.write_text("- {_id: x, name: Zed}\n", encoding="utf-8")
        assert [d["name"] for d in docs.find()] == ["Zed"]


class TestUpdate:
    @pytest.fixture(autouse=True)
    def _seed(self, docs: DocumentStore) -> None:
        docs.insert_many([{"name": "Ann", "age": 30}, {"name": "Bob", "age": 30}])

    def test_update_first(self, docs: DocumentStore) -> None:
        result = docs.update({"age": 30}, {"$set": {"age": 31}})
        assert (result.matched_count, result.modified_count) == (1, 1)
        assert [d["age"] for d in docs.find()] == [31, 30]

    def test_update_multiple(self, docs: DocumentStore) -> None:
        result = docs.update({"age": 30}, {"$set": {"status": "active"}}, multiple=True)
        assert result.matched_count == 2
        assert docs.count({"status": "active"}) == 2

    def test_unchanged_not_counted(self, docs: DocumentStore) -> None:
        result = docs.update({"name": "Ann"}, {"$set": {"age": 30}})
        assert (result.matched_count, result.modified_count) == (1, 0)

    def test_no_match_skips_write(self, docs: DocumentStore) -> None:
        before = _hash(docs.path)
        result = docs.update({"name": "Zed"}, {"$set": {"age": 1}})
        assert result.matched_count == 0
        assert _hash(docs.path) == before

    def test_id_is_immutable(self, docs: DocumentStore) -> None:
        with pytest.raises(InvalidArgumentError, match="cannot be modified"):
            docs.update({"name": "Ann"}, {"$set": {"_id": "other"}})

    def test_update_returning(self, docs: DocumentStore) -> None:
        _result, updated = docs.update_returning({"name": "Bob"}, {"$push": {"tags": "x"}})
        assert updated == [{"_id": "id-2", "name": "Bob", "age": 30, "tags": ["x"]}]

    def test_notifies_plugins(self, store: Store, docs: DocumentStore) -> None:
        recorder = _Recorder()
        store.plugins.register_plugin(recorder)
        docs.update({"age": 30}, {"$max": {"age": 40}}, multiple=True)
        docs.update({"name": "Zed"}, {"$set": {"age": 1}})
        assert recorder.events == [("update", {"matched": 2, "modified": 2})]

    def test_timestamps_refreshed_on_change(self, store: Store) -> None:
        docs = DocumentStore(store, "Audit", Schema({"n": int}, timestamps=True))
        created = docs.insert({"n": 1})
        docs.path.write_text(
            docs.path.read_text().replace(created[UPDATED_AT], "2000-01-01T00:00:00+00:00")
        )
        docs.update({}, {"$set": {"n": 1}})
        assert docs.find_one()[UPDATED_AT] == "2000-01-01T00:00:00+00:00"  # type: ignore[index]
        docs.update({}, {"$set": {"n": 2}})
        assert docs.find_one()[UPDATED_AT] != "2000-01-01T00:00:00+00:00"  # type: ignore[index]


class TestReplace:
    @pytest.fixture(autouse=True)
    def _seed(self, docs: DocumentStore) -> None:
        docs.insert_many([{"name": "Ann", "age": 30, "tags": ["a"]}, {"name": "Bob"}])

    def test_replaces_body_keeps_id(self, docs: DocumentStore) -> None:
        result, stored = docs.replace_returning({"name": "Ann"}, {"name": "Ann", "status": "active"})
        assert (result.matched_count, result.modified_count) == (1, 1)
        assert stored == {"_id": "id-1", "name": "Ann", "status": "active", "age": 0}

    def test_validates(self, docs: DocumentStore) -> None:
        with pytest.raises(ValidationError):
            docs.replace({"name": "Ann"}, {"age": 5})

    def test_uniqueness_against_others(self, docs: DocumentStore) -> None:
        with pytest.raises(UniquenessError):
            docs.replace({"name": "Ann"}, {"name": "Bob"})

    def test_same_unique_value_allowed(self, docs: DocumentStore) -> None:
        assert docs.replace({"name": "Ann"}, {"name": "Ann", "age": 1}).modified_count == 1

    def test_no_match(self, docs: DocumentStore) -> None:
        result, stored = docs.replace_returning({"name": "Zed"}, {"name": "Zed"})
        assert result.matched_count == 0
        assert stored is None

    def test_mismatched_id(self, docs: DocumentStore) -> None:
        with pytest.raises(InvalidArgumentError, match="cannot be modified"):
            docs.replace({"name": "Ann"}, {"_id": "id-2", "name": "Ann"})

    def test_keeps_created_at(self, store: Store) -> None:
        docs = DocumentStore(store, "Audit", Schema({"n": int}, timestamps=True))
        created = docs.insert({"n": 1})
        _result, stored = docs.replace_returning({}, {"n": 2, CREATED_AT: "forged"})
        assert stored is not None
        assert stored[CREATED_AT] == created[CREATED_AT]

    def test_default_provider_called_once(self, store: Store) -> None:
        calls: list[str] = []

        def stamp() -> str:
            calls.append("call")
            return f"v{len(calls)}"

        schema = Schema({"n": int, "tag": {"type": str, "default": stamp}})
        docs = DocumentStore(store, "Label", schema)
        docs.insert({"n": 1, "tag": "fixed"})
        _result, stored = docs.replace_returning({"n": 1}, {"n": 2})
        assert calls == ["call"]
        assert stored is not None
        assert stored["tag"] == "v1"


class TestDelete:
    @pytest.fixture(autouse=True)
    def _seed(self, docs: DocumentStore) -> None:
        docs.insert_many(
            [
                {"name": "A", "status": "active"},
                {"name": "B", "status": "inactive"},
                {"name": "C", "status": "active"},
                {"name": "D"},
            ]
        )

    def test_delete_many_keeps_order(self, docs: DocumentStore) -> None:
        result = docs.delete({"status": "active"}, multiple=True)
        assert result.deleted_count == 2
        assert [d["name"] for d in read_collection(docs.path)] == ["B", "D"]

    def test_delete_one_removes_first(self, docs: DocumentStore) -> None:
        result = docs.delete({"status": "active"})
        assert result.deleted_count == 1
        assert [d["name"] for d in read_collection(docs.path)] == ["B", "C", "D"]

    def test_delete_returning(self, docs: DocumentStore) -> None:
        _result, removed = docs.delete_returning({"name": "B"})
        assert removed == [{"_id": "id-2", "name": "B", "status": "inactive", "age": 0}]

    def test_no_match_skips_write(self, docs: DocumentStore) -> None:
        before = _hash(docs.path)
        assert docs.delete({"name": "Z"}, multiple=True).deleted_count == 0
        assert _hash(docs.path) == before

    def test_delete_all(self, docs: DocumentStore) -> None:
        assert docs.delete({}, multiple=True).deleted_count == 4
        assert read_collection(docs.path) == []

    def test_boolean_filter_is_strict(self, store: Store) -> None:
        docs = DocumentStore(store, "Flag", Schema({"on": FieldType.BOOLEAN}))
        docs.insert_many([{"on": True}, {"on": False}, {"on": True}])
        assert docs.delete({"on": 1}, multiple=True).deleted_count == 0
        assert docs.delete({"on": True}, multiple=True).deleted_count == 2
