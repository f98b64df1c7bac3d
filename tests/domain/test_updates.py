"""Tests for the update applier."""

from __future__ import annotations

import pytest

from flatgoose.domain.updates import UPDATE_OPERATORS, apply_update
from flatgoose.errors import InvalidArgumentError, UnsupportedOperatorError


class TestSet:
    def test_dotted_set_creates_path(self) -> None:
        assert apply_update({}, {"$set": {"a.b": 5}}) == {"a": {"b": 5}}

    def test_implicit_set(self) -> None:
        assert apply_update({"a": 1}, {"a": 2, "b.c": 3}) == {"a": 2, "b": {"c": 3}}

    def test_does_not_mutate_input(self) -> None:
        original = {"a": {"b": 1}}
        apply_update(original, {"$set": {"a.b": 2}})
        assert original == {"a": {"b": 1}}

    def test_value_is_copied(self) -> None:
        payload = {"items": [1]}
        result = apply_update({}, {"$set": {"list": payload}})
        payload["items"].append(2)
        assert result == {"list": {"items": [1]}}

    def test_scalar_intermediate(self) -> None:
        with pytest.raises(InvalidArgumentError):
            apply_update({"a": 1}, {"$set": {"a.b": 2}})


class TestBounds:
    def test_max_raises_value(self) -> None:
        assert apply_update({"score": 5}, {"$max": {"score": 10}}) == {"score": 10}

    def test_max_keeps_higher(self) -> None:
        assert apply_update({"score": 20}, {"$max": {"score": 10}}) == {"score": 20}

    def test_min(self) -> None:
        assert apply_update({"score": 5}, {"$min": {"score": 1}}) == {"score": 1}
        assert apply_update({"score": 5}, {"$min": {"score": 9}}) == {"score": 5}

    def test_absent_is_set(self) -> None:
        assert apply_update({}, {"$max": {"score": 3}}) == {"score": 3}
        assert apply_update({"score": None}, {"$min": {"score": 3}}) == {"score": 3}

    def test_mismatched_kinds_unchanged(self) -> None:
        assert apply_update({"score": "high"}, {"$max": {"score": 3}}) == {"score": "high"}


class TestArrays:
    def test_push_twice(self) -> None:
        doc = apply_update({}, {"$push": {"arr": 1}})
        assert apply_update(doc, {"$push": {"arr": 1}}) == {"arr": [1, 1]}

    def test_push_appends(self) -> None:
        assert apply_update({"tags": ["a"]}, {"$push": {"tags": "b"}}) == {"tags": ["a", "b"]}

    def test_push_replaces_non_array(self) -> None:
        assert apply_update({"tags": "a"}, {"$push": {"tags": "b"}}) == {"tags": ["b"]}

    def test_pull_removes_every_equal_element(self) -> None:
        doc = {"tags": ["a", "b", "a"]}
        assert apply_update(doc, {"$pull": {"tags": "a"}}) == {"tags": ["b"]}

    def test_pull_deep_equality(self) -> None:
        doc = {"items": [{"sku": 1}, {"sku": 2}, 1, True]}
        result = apply_update(doc, {"$pull": {"items": {"sku": 1}}})
        assert result == {"items": [{"sku": 2}, 1, True]}
        assert apply_update(doc, {"$pull": {"items": 1}})["items"] == [{"sku": 1}, {"sku": 2}, True]

    def test_pull_predicate(self) -> None:
        doc = {"scores": [1, 5, 10]}
        assert apply_update(doc, {"$pull": {"scores": lambda v: v > 4}}) == {"scores": [1]}

    def test_pull_on_absent_is_noop(self) -> None:
        assert apply_update({}, {"$pull": {"tags": "a"}}) == {}


class TestUpdateShape:
    def test_multiple_operators(self) -> None:
        result = apply_update({"age": 1}, {"$set": {"name": "Ann"}, "$push": {"tags": "x"}})
        assert result == {"age": 1, "name": "Ann", "tags": ["x"]}

    def test_unknown_operator(self) -> None:
        with pytest.raises(UnsupportedOperatorError, match=r"Unsupported update operator: '\$inc'"):
            apply_update({}, {"$inc": {"n": 1}})

    def test_plain_key_mixed_with_operators(self) -> None:
        with pytest.raises(UnsupportedOperatorError):
            apply_update({}, {"$set": {"a": 1}, "b": 2})

    def test_payload_must_be_mapping(self) -> None:
        with pytest.raises(InvalidArgumentError, match=r"\$set expects a mapping"):
            apply_update({}, {"$set": 5})

    def test_update_must_be_mapping(self) -> None:
        with pytest.raises(InvalidArgumentError):
            apply_update({}, [("a", 1)])  # type: ignore[arg-type]

    def test_operator_table(self) -> None:
        assert UPDATE_OPERATORS == {"$set", "$max", "$min", "$push", "$pull"}
