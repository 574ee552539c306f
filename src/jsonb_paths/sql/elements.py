"""SQL fragments for the PostgreSQL jsonb function surface.

Every construct here is a :class:`~sqlalchemy.sql.expression.ColumnElement`
whose text comes from a ``@compiles`` hook, so the rendered SQL matches what one
would write by hand against ``jsonb_*`` functions. Path segments, indices and
flags are rendered as inline literals because the functions expect literal
``text[]`` / ``int`` arguments; only JSON values travel as bound parameters.

Each construct declares ``_traverse_internals`` so that SQLAlchemy's statement
cache keys include the path and flags, and carries the :class:`Shape` of the
value it evaluates to.
"""

import itertools
from collections.abc import Sequence
from typing import Any

from sqlalchemy import String, Text, bindparam
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.compiler import SQLCompiler
from sqlalchemy.sql.elements import ClauseElement, ColumnElement, Grouping
from sqlalchemy.sql.selectable import FromClause
from sqlalchemy.sql.visitors import InternalTraversal

from jsonb_paths.shape import ANY, Shape
from jsonb_paths.sql.helpers import render_bool, render_path_array, render_segments, render_string

NOT_NULL_FILTER = "strict $ ? (@ != null)"


class JSONBElement(ColumnElement[Any]):
    """Base class for compiled jsonb fragments."""

    type = JSONB()
    shape: Shape = ANY

    @property
    def _from_objects(self) -> list[FromClause]:
        return list(itertools.chain(*[child._from_objects for child in self.get_children()]))


class _InfixMixin:
    def self_group(self, against: Any = None) -> ClauseElement:
        if against is None:
            return self  # type: ignore[return-value]
        return Grouping(self)  # type: ignore[arg-type]


class Shaped(JSONBElement):
    """Tags an arbitrary expression with a document shape; renders it unchanged."""

    _traverse_internals = [("element", InternalTraversal.dp_clauseelement)]

    def __init__(self, element: ClauseElement, shape: Shape) -> None:
        self.element = element
        self.shape = shape
        element_type = getattr(element, "type", None)
        if element_type is not None and not element_type._isnull:
            self.type = element_type


class JSONBConstant(JSONBElement):
    """A jsonb literal written inline, e.g. ``'[]'::jsonb``."""

    _traverse_internals = [("text", InternalTraversal.dp_string)]

    def __init__(self, text: str, shape: Shape = ANY) -> None:
        self.text = text
        self.shape = shape


class JSONBLiteral(JSONBElement):
    """A JSON document passed as a bound parameter and cast to jsonb."""

    _traverse_internals = [("value", InternalTraversal.dp_clauseelement)]

    def __init__(self, json_text: str, shape: Shape = ANY) -> None:
        self.json_text = json_text
        self.value = bindparam(None, json_text, type_=String())
        self.shape = shape


class JSONBExtractPath(JSONBElement):
    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("segments", InternalTraversal.dp_string_list),
    ]

    function_name = "jsonb_extract_path"

    def __init__(self, source: ClauseElement, segments: Sequence[str], shape: Shape = ANY) -> None:
        self.source = source
        self.segments = tuple(segments)
        self.shape = shape


class JSONBExtractPathText(JSONBElement):
    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("segments", InternalTraversal.dp_string_list),
    ]

    type = Text()
    function_name = "jsonb_extract_path_text"

    def __init__(self, source: ClauseElement, segments: Sequence[str], shape: Shape = ANY) -> None:
        self.source = source
        self.segments = tuple(segments)
        self.shape = shape


class JSONBSet(JSONBElement):
    """``jsonb_set`` with a ``text[]`` path and an explicit ``create_if_missing`` flag."""

    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("segments", InternalTraversal.dp_string_list),
        ("value", InternalTraversal.dp_clauseelement),
        ("create_missing", InternalTraversal.dp_boolean),
    ]

    def __init__(
        self,
        source: ClauseElement,
        segments: Sequence[str],
        value: ClauseElement,
        create_missing: bool = True,
        shape: Shape = ANY,
    ) -> None:
        self.source = source
        self.segments = tuple(segments)
        self.value = value
        self.create_missing = bool(create_missing)
        self.shape = shape


class JSONBSetIndex(JSONBElement):
    """``jsonb_set`` addressing a single array index through a path literal."""

    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("index", InternalTraversal.dp_plain_obj),
        ("value", InternalTraversal.dp_clauseelement),
    ]

    def __init__(self, source: ClauseElement, index: int, value: ClauseElement, shape: Shape = ANY) -> None:
        self.source = source
        self.index = index
        self.value = value
        self.shape = shape


class JSONBNullCoalesce(JSONBElement):
    """``coalesce(x, 'null'::jsonb)``: SQL NULL becomes JSON null."""

    _traverse_internals = [("element", InternalTraversal.dp_clauseelement)]

    def __init__(self, element: ClauseElement, shape: Shape = ANY) -> None:
        self.element = element
        self.shape = shape


class JSONQueryDefault(JSONBElement):
    """``json_query`` filtering out JSON null, with ``default`` used when nothing is left."""

    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("default", InternalTraversal.dp_clauseelement),
    ]

    def __init__(self, source: ClauseElement, default: ClauseElement, shape: Shape = ANY) -> None:
        self.source = source
        self.default = default
        self.shape = shape


class JSONBNullIfCoalesce(JSONBElement):
    """``coalesce(nullif(x, 'null'::jsonb), default)`` for defaults ``json_query`` rejects."""

    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("default", InternalTraversal.dp_clauseelement),
    ]

    def __init__(self, source: ClauseElement, default: ClauseElement, shape: Shape = ANY) -> None:
        self.source = source
        self.default = default
        self.shape = shape


class JSONBBuildArray(JSONBElement):
    _traverse_internals = [
        ("elements", InternalTraversal.dp_clauseelement_tuple),
        ("separator", InternalTraversal.dp_string),
    ]

    def __init__(self, elements: Sequence[ClauseElement], separator: str = ",", shape: Shape = ANY) -> None:
        self.elements = tuple(elements)
        self.separator = separator
        self.shape = shape


class JSONBBuildObject(JSONBElement):
    _traverse_internals = [
        ("keys", InternalTraversal.dp_string_list),
        ("values", InternalTraversal.dp_clauseelement_tuple),
    ]

    def __init__(self, keys: Sequence[str], values: Sequence[ClauseElement], shape: Shape = ANY) -> None:
        self.keys = tuple(keys)
        self.values = tuple(values)
        self.shape = shape


class JSONBConcat(_InfixMixin, JSONBElement):
    """The jsonb ``||`` operator."""

    _traverse_internals = [
        ("left", InternalTraversal.dp_clauseelement),
        ("right", InternalTraversal.dp_clauseelement),
    ]

    def __init__(self, left: ClauseElement, right: ClauseElement, shape: Shape = ANY) -> None:
        self.left = left
        self.right = right
        self.shape = shape


class JSONBDeleteIndex(_InfixMixin, JSONBElement):
    """The jsonb ``-`` operator with an integer right operand."""

    _traverse_internals = [
        ("source", InternalTraversal.dp_clauseelement),
        ("index", InternalTraversal.dp_plain_obj),
    ]

    def __init__(self, source: ClauseElement, index: int, shape: Shape = ANY) -> None:
        self.source = source
        self.index = index
        self.shape = shape


@compiles(Shaped)
def _compile_shaped(element: Shaped, compiler: SQLCompiler, **kw: Any) -> str:
    return compiler.process(element.element, **kw)


@compiles(JSONBConstant)
def _compile_constant(element: JSONBConstant, compiler: SQLCompiler, **kw: Any) -> str:
    return f"{render_string(compiler, element.text)}::jsonb"


@compiles(JSONBLiteral)
def _compile_literal(element: JSONBLiteral, compiler: SQLCompiler, **kw: Any) -> str:
    return f"{compiler.process(element.value, **kw)}::jsonb"


@compiles(JSONBExtractPath)
@compiles(JSONBExtractPathText)
def _compile_extract_path(
    element: JSONBExtractPath | JSONBExtractPathText, compiler: SQLCompiler, **kw: Any
) -> str:
    source = compiler.process(element.source, **kw)
    return f"{element.function_name}({source}, {render_segments(compiler, element.segments)})"


@compiles(JSONBSet)
def _compile_set(element: JSONBSet, compiler: SQLCompiler, **kw: Any) -> str:
    source = compiler.process(element.source, **kw)
    path = render_path_array(compiler, element.segments)
    value = compiler.process(element.value, **kw)
    return f"jsonb_set({source}, {path}, {value}, {render_bool(element.create_missing)})"


@compiles(JSONBSetIndex)
def _compile_set_index(element: JSONBSetIndex, compiler: SQLCompiler, **kw: Any) -> str:
    source = compiler.process(element.source, **kw)
    path = render_string(compiler, f"{{{int(element.index)}}}")
    return f"jsonb_set({source}, {path}, {compiler.process(element.value, **kw)})"


@compiles(JSONBNullCoalesce)
def _compile_null_coalesce(element: JSONBNullCoalesce, compiler: SQLCompiler, **kw: Any) -> str:
    return f"coalesce({compiler.process(element.element, **kw)}, 'null'::jsonb)"


@compiles(JSONQueryDefault)
def _compile_json_query_default(element: JSONQueryDefault, compiler: SQLCompiler, **kw: Any) -> str:
    source = compiler.process(element.source, **kw)
    default = compiler.process(element.default, **kw)
    return f"json_query({source}, {render_string(compiler, NOT_NULL_FILTER)} default {default} on empty)::jsonb"


@compiles(JSONBNullIfCoalesce)
def _compile_null_if_coalesce(element: JSONBNullIfCoalesce, compiler: SQLCompiler, **kw: Any) -> str:
    source = compiler.process(element.source, **kw)
    return f"coalesce(nullif({source}, 'null'::jsonb), {compiler.process(element.default, **kw)})"


@compiles(JSONBBuildArray)
def _compile_build_array(element: JSONBBuildArray, compiler: SQLCompiler, **kw: Any) -> str:
    elements = element.separator.join(compiler.process(item, **kw) for item in element.elements)
    return f"jsonb_build_array({elements})"


@compiles(JSONBBuildObject)
def _compile_build_object(element: JSONBBuildObject, compiler: SQLCompiler, **kw: Any) -> str:
    pairs = ",".join(
        f"{render_string(compiler, key)}, {compiler.process(value, **kw)}"
        for key, value in zip(element.keys, element.values, strict=True)
    )
    return f"jsonb_build_object({pairs})"


@compiles(JSONBConcat)
def _compile_concat(element: JSONBConcat, compiler: SQLCompiler, **kw: Any) -> str:
    return f"{compiler.process(element.left, **kw)} || {compiler.process(element.right, **kw)}"


@compiles(JSONBDeleteIndex)
def _compile_delete_index(element: JSONBDeleteIndex, compiler: SQLCompiler, **kw: Any) -> str:
    return f"{compiler.process(element.source, **kw)} - {int(element.index)}"
