"""Structural merge with the jsonb ``||`` operator.

Both operands are normalized first, so SQL ``NULL`` takes part as JSON ``null``
instead of nulling the whole result. The result follows the operator's rules:

* array || array concatenates,
* array || value appends and value || array prepends,
* object || object unions the keys, the right operand winning on collisions,
* anything else (JSON ``null`` included) becomes the pair ``[left, right]``.
"""

from typing import Any

from jsonb_paths.operations.build import json_build
from jsonb_paths.operations.common import normalize_nullish, shape_for
from jsonb_paths.shape import ANY, NULL, Shape, array_of, object_of, tuple_of, union_of
from jsonb_paths.sql.elements import JSONBConcat


def json_merge(left: Any, right: Any) -> JSONBConcat:
    left_value = normalize_nullish(json_build(left))
    right_value = normalize_nullish(json_build(right))
    shape = merge_shape(left_value.shape, right_value.shape)
    return JSONBConcat(left_value, right_value, shape=shape)


def merge_shape(left: Shape, right: Shape) -> Shape:
    """Shape of ``left || right``; unions are merged option by option."""
    merged = [_merge_pair(a, b) for a in _alternatives(left) for b in _alternatives(right)]
    return union_of(*merged).with_nullable(False)


def _alternatives(shape: Shape) -> list[Shape]:
    if shape.kind == "any":
        return [ANY]
    options = list(shape.options) if shape.kind == "union" else [shape.with_nullable(False)]
    if shape.nullable and NULL not in options:
        # normalized to JSON null
        options.append(NULL)
    return options


def _elements(shape: Shape) -> Shape:
    if shape.kind == "tuple":
        return union_of(*shape.items)
    return shape.element if shape.element is not None else ANY


def _merge_pair(left: Shape, right: Shape) -> Shape:
    if left.kind == "any" or right.kind == "any":
        return ANY
    if left.is_array_like and right.is_array_like:
        if left.kind == "tuple" and right.kind == "tuple":
            return tuple_of(*left.items, *right.items)
        return array_of(union_of(_elements(left), _elements(right)))
    if left.is_array_like:
        if left.kind == "tuple":
            return tuple_of(*left.items, right)
        return array_of(union_of(_elements(left), right))
    if right.is_array_like:
        if right.kind == "tuple":
            return tuple_of(left, *right.items)
        return array_of(union_of(left, _elements(right)))
    if left.kind == "object" and right.kind == "object":
        members = {**left.members, **right.members}
        if left.rest is not None and right.rest is not None:
            rest = union_of(left.rest, right.rest)
        else:
            rest = left.rest or right.rest
        return object_of(members, rest=rest)
    return tuple_of(left, right)
