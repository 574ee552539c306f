from collections.abc import Iterable
from typing import Any

from sqlalchemy import String
from sqlalchemy.sql.compiler import SQLCompiler
from sqlalchemy.sql.elements import ClauseElement

_STRING = String()


def is_clause(value: Any) -> bool:
    """True for SQL expressions and for objects that expose one (ORM attributes)."""
    return isinstance(value, ClauseElement) or hasattr(value, "__clause_element__")


def as_clause(value: Any) -> ClauseElement:
    if isinstance(value, ClauseElement):
        return value
    return value.__clause_element__()


def render_string(compiler: SQLCompiler, value: str) -> str:
    """Render ``value`` as a quoted literal using the dialect's escaping rules."""
    return compiler.render_literal_value(value, _STRING)


def render_bool(value: bool) -> str:
    return "true" if value else "false"


def render_segments(compiler: SQLCompiler, segments: Iterable[str]) -> str:
    return ",".join(render_string(compiler, segment) for segment in segments)


def render_path_array(compiler: SQLCompiler, segments: Iterable[str]) -> str:
    return f"array[{render_segments(compiler, segments)}]::text[]"
