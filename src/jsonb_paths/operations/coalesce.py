from typing import Any

from sqlalchemy.sql.elements import ClauseElement

from jsonb_paths.operations.build import json_build
from jsonb_paths.operations.common import normalize_nullish, require_clause, shape_for
from jsonb_paths.shape import union_of
from jsonb_paths.sql.elements import (
    JSONBBuildArray,
    JSONBBuildObject,
    JSONBConcat,
    JSONBConstant,
    JSONBDeleteIndex,
    JSONBElement,
    JSONBExtractPath,
    JSONBLiteral,
    JSONBNullIfCoalesce,
    JSONBSet,
    JSONBSetIndex,
    JSONQueryDefault,
)

# json_query's DEFAULT must be a constant, function call or operator without column references
_CALLS_AND_OPERATORS = (
    JSONBBuildArray,
    JSONBBuildObject,
    JSONBConcat,
    JSONBDeleteIndex,
    JSONBExtractPath,
    JSONBSet,
    JSONBSetIndex,
)


def json_coalesce(source: Any, value: Any) -> JSONBElement:
    """First non-null of ``source`` and ``value``.

    SQL ``NULL`` and JSON ``null`` both count as null. ``value`` may be a SQL
    expression or any Python value accepted by :func:`json_build`.

    Compiles to ``json_query(... default <value> on empty)``. Scalar values are
    inlined there as constants. Defaults that reference columns, or are not a
    function call or operator, use ``coalesce(nullif(<source>, 'null'::jsonb), <value>)``
    instead.
    """
    clause = require_clause(source)
    default = json_build(value)
    shape = union_of(shape_for(clause).denullified(), shape_for(default))
    if isinstance(default, JSONBLiteral):
        default = JSONBConstant(default.json_text, shape=default.shape)
    if _valid_json_query_default(default):
        return JSONQueryDefault(normalize_nullish(clause), default, shape=shape)
    return JSONBNullIfCoalesce(clause, default, shape=shape)


def _valid_json_query_default(default: ClauseElement) -> bool:
    if isinstance(default, JSONBConstant):
        return True
    return isinstance(default, _CALLS_AND_OPERATORS) and not default._from_objects
