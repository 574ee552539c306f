"""Unit tests for merging jsonb values."""

from typing import Any

from jsonb_paths import json_merge
from jsonb_paths.operations.merge import merge_shape
from jsonb_paths.shape import ANY, NULL, SCALAR, array_of, object_of, tuple_of
from tests.conftest import jsonb, render, users


def test_both_sides_are_normalized() -> None:
    expr = json_merge(jsonb(["a", "b"], list[str]), jsonb(["c", "d"], list[str]))
    assert render(expr) == (
        "coalesce('[\"a\", \"b\"]'::jsonb, 'null'::jsonb) || coalesce('[\"c\", \"d\"]'::jsonb, 'null'::jsonb)"
    )


def test_python_values_are_built() -> None:
    expr = json_merge(users.c.data, {"name": "Jane"})
    assert render(expr) == (
        "coalesce(users.data, 'null'::jsonb) || coalesce(jsonb_build_object('name', '\"Jane\"'::jsonb), 'null'::jsonb)"
    )


def test_none_is_json_null() -> None:
    expr = json_merge(jsonb({"a": "a"}, dict[str, str]), None)
    assert render(expr).endswith("|| coalesce('null'::jsonb, 'null'::jsonb)")


def test_merge_is_grouped_inside_other_operators() -> None:
    expr = json_merge(users.c.data, users.c.settings) == users.c.settings
    assert render(expr).startswith("(coalesce(users.data, 'null'::jsonb) || coalesce(users.settings, 'null'::jsonb)) = ")


class TestMergeShape:
    """Tests for the result shape of ``||``."""

    def test_arrays_concatenate(self) -> None:
        assert merge_shape(array_of(SCALAR), array_of(SCALAR)) == array_of(SCALAR)
        assert merge_shape(tuple_of(SCALAR), tuple_of(NULL)) == tuple_of(SCALAR, NULL)

    def test_value_is_appended(self) -> None:
        assert merge_shape(tuple_of(SCALAR, SCALAR), NULL) == tuple_of(SCALAR, SCALAR, NULL)
        assert merge_shape(array_of(SCALAR), NULL).element.nullable is False
        assert merge_shape(array_of(SCALAR), NULL).element.options == (SCALAR, NULL)

    def test_value_is_prepended(self) -> None:
        assert merge_shape(NULL, tuple_of(SCALAR)) == tuple_of(NULL, SCALAR)

    def test_objects_union_right_wins(self) -> None:
        left = object_of({"a": SCALAR, "b": SCALAR})
        right = object_of({"b": array_of(SCALAR), "c": NULL})
        assert merge_shape(left, right).members == {"a": SCALAR, "b": array_of(SCALAR), "c": NULL}

    def test_everything_else_pairs(self) -> None:
        assert merge_shape(SCALAR, SCALAR) == tuple_of(SCALAR, SCALAR)
        assert merge_shape(object_of({}), NULL) == tuple_of(object_of({}), NULL)
        assert merge_shape(SCALAR, object_of({})) == tuple_of(SCALAR, object_of({}))

    def test_nullable_operand_adds_null_alternative(self) -> None:
        shape = merge_shape(object_of({"a": SCALAR}).with_nullable(True), object_of({"b": SCALAR}))
        assert shape.kind == "union"
        assert not shape.nullable
        assert tuple_of(NULL, object_of({"b": SCALAR})) in shape.options

    def test_any_stays_any(self) -> None:
        assert merge_shape(ANY, SCALAR).kind == "any"
        assert not merge_shape(ANY, SCALAR).nullable

    def test_typed_document_merge(self) -> None:
        shape = json_merge(users.c.data, {"nickname": "JJ"}).shape
        assert {"name", "address", "nickname"} <= set(shape.members)

    def test_result_is_never_nullable(self) -> None:
        expr = json_merge(jsonb(None, Any), jsonb(None, Any))
        assert not expr.shape.nullable
