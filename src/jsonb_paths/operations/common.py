"""Primitives shared by the path, merge and array operations."""

from typing import Any, Final

from sqlalchemy.sql.elements import ClauseElement

from jsonb_paths.errors import PathSegmentError
from jsonb_paths.shape import ANY, Shape, array_of, shape_of
from jsonb_paths.sql.elements import JSONBConstant, JSONBNullCoalesce, JSONQueryDefault, Shaped
from jsonb_paths.sql.helpers import as_clause, is_clause
from jsonb_paths.types import JSONDocument


class _Unset:
    """Marks a value that should be left out of a built document."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()


def require_clause(value: Any) -> ClauseElement:
    if not is_clause(value):
        raise TypeError(f"Expected a SQL expression or column, got {type(value).__name__}")
    return as_clause(value)


def path_segment(member: Any) -> str:
    """Normalize a navigation member to the text segment used in jsonb paths."""
    if isinstance(member, bool):
        raise PathSegmentError(f"Booleans are not valid JSON path members: {member!r}")
    if isinstance(member, int):
        return str(member)
    if isinstance(member, str):
        return member
    raise PathSegmentError(f"JSON path members must be str or int, got {type(member).__name__}")


def shape_for(expr: Any) -> Shape:
    """Shape of the document produced by ``expr``.

    Engine fragments carry their shape; columns typed with :class:`JSONDocument`
    take it from the column type, nullable unless the column is ``NOT NULL``.
    Everything else is ``any``.
    """
    if is_clause(expr):
        expr = as_clause(expr)
    shape = getattr(expr, "shape", None)
    if isinstance(shape, Shape):
        return shape
    column_type = getattr(expr, "type", None)
    if isinstance(column_type, JSONDocument):
        nullable = bool(getattr(expr, "nullable", True))
        return column_type.shape.with_nullable(column_type.shape.nullable or nullable)
    return ANY


def typed(expr: Any, shape: Any, nullable: bool | None = None) -> Shaped:
    """Attach a document shape to an arbitrary SQL expression.

    ``shape`` is a :class:`Shape` or any annotation accepted by :func:`shape_of`.
    The expression renders unchanged.
    """
    resolved = shape_of(shape)
    if nullable is not None:
        resolved = resolved.with_nullable(nullable)
    return Shaped(require_clause(expr), resolved)


def normalize_nullish(expr: Any) -> JSONBNullCoalesce:
    """Turn SQL ``NULL`` into JSON ``null`` so jsonb operators don't short-circuit."""
    clause = require_clause(expr)
    return JSONBNullCoalesce(clause, shape=shape_for(clause))


def normalize_nullish_array(expr: Any) -> JSONQueryDefault:
    """Coalesce a possibly null or absent array to ``'[]'::jsonb``."""
    clause = require_clause(expr)
    shape = shape_for(clause)
    empty = JSONBConstant("[]", shape=array_of(ANY).with_nullable(False))
    return JSONQueryDefault(JSONBNullCoalesce(clause, shape=shape), empty, shape=shape.denullified())
