"""Element edits on jsonb arrays.

Every operation first coalesces its target to ``'[]'::jsonb`` when it is SQL
``NULL`` or JSON ``null``. Out of range indices follow PostgreSQL: setting past
the end appends (no null padding) and deleting past the end is a no-op.
"""

from typing import Any

from jsonb_paths.errors import PathSegmentError
from jsonb_paths.operations.build import json_build, json_build_array
from jsonb_paths.operations.common import normalize_nullish_array, shape_for
from jsonb_paths.operations.merge import merge_shape
from jsonb_paths.shape import ANY, array_of, union_of
from jsonb_paths.sql.elements import JSONBConcat, JSONBDeleteIndex, JSONBSetIndex


def _array_index(index: Any) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise PathSegmentError(f"Array indices must be integers, got {type(index).__name__}")
    return index


def json_array_push(target: Any, *values: Any) -> JSONBConcat:
    """Append ``values`` to the end of ``target``."""
    array = normalize_nullish_array(json_build(target))
    pushed = json_build_array(values, separator=", ")
    return JSONBConcat(array, pushed, shape=merge_shape(array.shape, pushed.shape))


def json_array_set(target: Any, index: int, value: Any) -> JSONBSetIndex:
    """Replace the element at ``index``; negative indices count from the end."""
    array = normalize_nullish_array(json_build(target))
    element = json_build(value)
    shape = array.shape
    if shape.kind == "array":
        shape = array_of(union_of(shape.element or ANY, shape_for(element)))
    return JSONBSetIndex(array, _array_index(index), element, shape=shape)


def json_array_delete(target: Any, index: int) -> JSONBDeleteIndex:
    """Remove the element at ``index``; negative indices count from the end."""
    array = normalize_nullish_array(json_build(target))
    return JSONBDeleteIndex(array, _array_index(index), shape=array.shape)
