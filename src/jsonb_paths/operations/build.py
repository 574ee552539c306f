"""Compile Python values into SQL that constructs the same jsonb document.

Lists and mappings become ``jsonb_build_array`` / ``jsonb_build_object`` calls so
that SQL expressions can sit anywhere inside them::

    json_build({"name": "Ada", "tags": ["admin", users.c.role]})
    # jsonb_build_object('name', '"Ada"'::jsonb,'tags', jsonb_build_array('"admin"'::jsonb,users.role))

Everything else is sent as a single JSON parameter cast to ``jsonb``.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python
from sqlalchemy.sql.elements import ClauseElement

from jsonb_paths.operations.common import UNSET, shape_for
from jsonb_paths.shape import ANY, NULL, SCALAR, Shape, array_of, object_of, union_of
from jsonb_paths.sql.elements import JSONBBuildArray, JSONBBuildObject, JSONBLiteral
from jsonb_paths.sql.helpers import as_clause, is_clause


def json_build(value: Any) -> ClauseElement:
    """Build ``value`` natively, passing embedded SQL expressions through untouched.

    Mapping entries set to :data:`UNSET` are dropped; list items set to
    :data:`UNSET` become JSON ``null``.
    """
    if is_clause(value):
        return as_clause(value)
    if isinstance(value, BaseModel):
        return json_build(value.model_dump(mode="json"))
    if isinstance(value, Mapping):
        keys: list[str] = []
        values: list[ClauseElement] = []
        for key, item in value.items():
            if item is UNSET:
                continue
            if not isinstance(key, str):
                raise TypeError(f"JSON object keys must be strings, got {type(key).__name__}")
            keys.append(key)
            values.append(json_build(item))
        shape = object_of({key: shape_for(item) for key, item in zip(keys, values, strict=True)})
        return JSONBBuildObject(keys, values, shape=shape)
    if isinstance(value, (list, tuple)):
        return json_build_array(value)
    if value is UNSET:
        value = None
    return JSONBLiteral(dump_json(value), shape=_literal_shape(value))


def json_build_array(values: Sequence[Any], separator: str = ",") -> JSONBBuildArray:
    elements = [json_build(None if item is UNSET else item) for item in values]
    return JSONBBuildArray(elements, separator=separator, shape=_array_shape(elements))


def dump_json(value: Any) -> str:
    """Compact JSON text for ``value``; dates, UUIDs, decimals and enums go through pydantic."""
    return json.dumps(value, separators=(",", ":"), allow_nan=False, default=to_jsonable_python)


def _array_shape(elements: list[ClauseElement]) -> Shape:
    if not elements:
        return array_of(ANY)
    return array_of(union_of(*(shape_for(element) for element in elements)))


def _literal_shape(value: Any) -> Shape:
    if value is None:
        return NULL
    if isinstance(value, (set, frozenset)):
        return array_of(ANY)
    return SCALAR
