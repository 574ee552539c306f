from dataclasses import dataclass
from typing import Any

from sqlalchemy.sql.elements import ClauseElement

from jsonb_paths.operations.common import path_segment, require_clause, shape_for
from jsonb_paths.shape import ANY, Shape
from jsonb_paths.sql.elements import JSONBExtractPath, JSONBExtractPathText


@dataclass(frozen=True, eq=False)
class JSONAccessor:
    """Read-only navigation into a jsonb document.

    Attribute and item access extend the path; ``path_value`` and ``text_value``
    compile the accumulated path into a single extraction over ``source``::

        json_access(users.c.data).tags[0].text_value
        # jsonb_extract_path_text(users.data, 'tags','0')
    """

    source: ClauseElement
    segments: tuple[str, ...] = ()
    shape: Shape = ANY

    def __getattr__(self, name: str) -> "JSONAccessor":
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, member: str | int) -> "JSONAccessor":
        segment = path_segment(member)
        return JSONAccessor(self.source, (*self.segments, segment), self.shape.child(segment))

    @property
    def path_value(self) -> ClauseElement:
        """The value at this path, still encoded as jsonb."""
        if not self.segments:
            return self.source
        return JSONBExtractPath(self.source, self.segments, shape=self.shape)

    @property
    def text_value(self) -> ClauseElement:
        """The value at this path as text; strings lose their JSON quoting."""
        if not self.segments:
            return self.source
        return JSONBExtractPathText(self.source, self.segments, shape=self.shape)


def json_access(source: Any) -> JSONAccessor:
    clause = require_clause(source)
    return JSONAccessor(clause, (), shape_for(clause))
