"""Path setters: ``jsonb_set`` over an accumulated path.

``jsonb_set`` with ``create_if_missing`` only creates the *last* path segment.
When two or more consecutive segments are absent a plain ``replace`` silently
does nothing, so optional branches are first repaired with ``with_default``::

    json_set(users.c.data).profile.with_default({"avatar": "default.jpg"}).avatar.replace("new.jpg")

``with_default`` writes ``coalesce(<current>, <default>)`` back at its own path and
returns a setter rooted at that rewritten document, so every following step
wraps the previous one.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.sql.elements import ClauseElement

from jsonb_paths.errors import ShapeError
from jsonb_paths.operations.build import json_build
from jsonb_paths.operations.coalesce import json_coalesce
from jsonb_paths.operations.common import normalize_nullish, path_segment, require_clause, shape_for
from jsonb_paths.shape import ANY, Shape
from jsonb_paths.sql.elements import JSONBExtractPath, JSONBSet
from jsonb_paths.sql.helpers import is_clause

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class JSONSetter:
    """Write access to a jsonb document along a path.

    The root setter (no segments) exposes neither ``replace`` nor ``with_default``.
    """

    source: ClauseElement
    segments: tuple[str, ...] = ()
    shape: Shape = ANY

    def __getattr__(self, name: str) -> "JSONSetter":
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, member: str | int) -> "JSONSetter":
        segment = path_segment(member)
        return JSONSetter(self.source, (*self.segments, segment), self.shape.child(segment))

    def replace(self, value: Any, create_missing: bool = True) -> JSONBSet:
        """Replace the value at this path with ``value``.

        With ``create_missing`` a missing last segment is created; a missing
        parent is never created and leaves the document unchanged.
        """
        if not self.segments:
            raise ShapeError("Cannot replace the whole document through a setter, use the new value directly")
        return JSONBSet(self.source, self.segments, json_build(value), create_missing, shape=shape_for(self.source))

    def with_default(self, value: Any, create_missing: bool = True) -> "JSONSetter":
        """Write ``value`` at this path when it is absent or null, then keep navigating from here.

        Only available where the path may be null or absent.
        """
        if not self.segments:
            raise ShapeError("The document root cannot be defaulted, use json_coalesce instead")
        if not self.shape.nullable:
            raise ShapeError(f"{'.'.join(self.segments)!r} is never null or absent, with_default is not available")
        current = JSONBExtractPath(self.source, self.segments, shape=self.shape)
        repaired = JSONBSet(
            self.source,
            self.segments,
            json_coalesce(current, value),
            create_missing,
            shape=shape_for(self.source),
        )
        logger.debug("Defaulting JSON path %s", "/".join(self.segments))
        return JSONSetter(repaired, self.segments, self.shape.denullified())


def json_set(source: Any) -> JSONSetter:
    clause = require_clause(source)
    return JSONSetter(clause, (), shape_for(clause))


def json_set_pipe(source: Any, *steps: Callable[[JSONSetter], ClauseElement]) -> ClauseElement:
    """Apply independent edits one after another.

    Each step receives a fresh root setter over the result of the previous step::

        json_set_pipe(
            users.c.data,
            lambda s: s.name.replace("Jane"),
            lambda s: s.settings.theme.replace("dark"),
        )

    The source is seeded with ``coalesce(source, 'null'::jsonb)``, and PostgreSQL
    refuses ``jsonb_set`` on JSON ``null`` with "cannot set path in scalar". A
    source that may be SQL ``NULL`` or JSON ``null`` has to be given a document
    first, e.g. ``json_set_pipe(json_coalesce(users.c.settings, {}), ...)``.
    """
    result: ClauseElement = normalize_nullish(source)
    for number, step in enumerate(steps, start=1):
        result = step(json_set(result))
        if not is_clause(result):
            raise TypeError(f"Pipe step {number} must return a SQL expression, got {type(result).__name__}")
        logger.debug("Applied pipe step %d of %d", number, len(steps))
    return result
