"""Structural shapes of jsonb documents.

A :class:`Shape` stands in for the static type of the value found at a path. The
path engine consults it to decide which terminal operations a node exposes: a
node may only be defaulted when its shape says the value can be absent or null,
and navigation is refused into scalars or unknown members of closed objects.

Shapes are usually derived from ordinary Python annotations with
:func:`shape_of`::

    class Profile(TypedDict):
        avatar: str
        theme: NotRequired[str]

    class User(BaseModel):
        name: str
        profile: Profile | None = None

    shape_of(User).child("profile").nullable  # True
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import logging
import re
import types
import typing
import uuid
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from decimal import Decimal
from functools import cached_property, lru_cache
from typing import Any, Literal

from pydantic import BaseModel

from jsonb_paths.errors import ShapeError

logger = logging.getLogger(__name__)

ShapeKind = Literal["any", "scalar", "null", "array", "tuple", "object", "union"]

_SCALAR_TYPES: tuple[type, ...] = (
    str,
    int,
    float,
    bool,
    Decimal,
    datetime.datetime,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    enum.Enum,
)

_INDEX_RE = re.compile(r"-?[0-9]+")

_FIELD_WRAPPERS = tuple(
    wrapper for wrapper in (getattr(typing, name, None) for name in ("Required", "NotRequired", "ReadOnly")) if wrapper
)


@dataclass(frozen=True)
class Shape:
    kind: ShapeKind
    nullable: bool = False
    element: Shape | None = None
    items: tuple[Shape, ...] = ()
    options: tuple[Shape, ...] = ()
    fields: tuple[tuple[str, Shape], ...] | None = None
    rest: Shape | None = None
    origin: Any = None

    @cached_property
    def members(self) -> dict[str, Shape]:
        """Declared members of an object shape, resolved on first use."""
        if self.fields is not None:
            return dict(self.fields)
        if self.origin is not None:
            return dict(_resolve_members(self.origin))
        return {}

    @property
    def is_array_like(self) -> bool:
        return self.kind in ("array", "tuple")

    def with_nullable(self, nullable: bool) -> Shape:
        if self.nullable == nullable:
            return self
        return dataclasses.replace(self, nullable=nullable)

    def denullified(self) -> Shape:
        if self.kind == "union":
            options = [option.denullified() for option in self.options if option.kind != "null"]
            if not options:
                return NULL
            return union_of(*options).with_nullable(False)
        return self.with_nullable(False)

    def child(self, segment: str) -> Shape:
        """Shape of ``segment`` below this node; nullability propagates downward."""
        shape = self._member(segment)
        if self.nullable:
            shape = shape.with_nullable(True)
        return shape

    def _member(self, segment: str) -> Shape:
        if self.kind == "any":
            return ANY
        if self.kind == "object":
            members = self.members
            if segment in members:
                return members[segment]
            if self.rest is not None:
                return self.rest
            raise ShapeError(f"Unknown member {segment!r}, expected one of: {', '.join(sorted(members))}")
        if self.is_array_like:
            if not _INDEX_RE.fullmatch(segment):
                raise ShapeError(f"Array members must be integer indices, got {segment!r}")
            if self.kind == "array":
                # an index may point past the end of the array
                element = self.element if self.element is not None else ANY
                return element.with_nullable(True)
            index = int(segment)
            if not -len(self.items) <= index < len(self.items):
                raise ShapeError(f"Index {index} is out of range for a tuple of {len(self.items)} items")
            return self.items[index]
        if self.kind == "union":
            found: list[Shape] = []
            rejected = False
            for option in self.options:
                if option.kind == "null":
                    continue
                try:
                    found.append(option._member(segment))
                except ShapeError:
                    rejected = True
            if not found:
                raise ShapeError(f"No alternative of this union has a member {segment!r}")
            shape = union_of(*found)
            return shape.with_nullable(True) if rejected else shape
        raise ShapeError(f"Cannot navigate into a {self.kind} value (member {segment!r})")


ANY = Shape("any", nullable=True)
NULL = Shape("null")
SCALAR = Shape("scalar")


def array_of(element: Shape) -> Shape:
    return Shape("array", element=element)


def tuple_of(*items: Shape) -> Shape:
    return Shape("tuple", items=tuple(items))


def object_of(members: Mapping[str, Shape], rest: Shape | None = None) -> Shape:
    return Shape("object", fields=tuple(members.items()), rest=rest)


def union_of(*shapes: Shape) -> Shape:
    """Join shapes into one, flattening nested unions and dropping duplicates."""
    flat: list[Shape] = []
    for shape in shapes:
        for option in shape.options if shape.kind == "union" else (shape,):
            if option.kind == "any":
                return ANY
            if option not in flat:
                flat.append(option)
    if not flat:
        return ANY
    if len(flat) == 1:
        return flat[0]
    nullable = any(option.nullable for option in flat)
    return Shape("union", nullable=nullable, options=tuple(option.with_nullable(False) for option in flat))


def shape_of(annotation: Any) -> Shape:
    """Derive a :class:`Shape` from a Python annotation.

    Unknown annotations fall back to :data:`ANY`, which allows every operation.
    """
    if isinstance(annotation, Shape):
        return annotation
    if annotation is Any or annotation is object:
        return ANY
    if annotation is None or annotation is type(None):
        return NULL

    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)

    if origin is typing.Annotated:
        return shape_of(args[0])
    if origin is not None and origin in _FIELD_WRAPPERS:
        return shape_of(args[0])
    if origin is typing.Union or origin is types.UnionType:
        return _union_shape(args)
    if origin is Literal:
        values = [value for value in args if value is not None]
        if not values:
            return NULL
        return SCALAR.with_nullable(len(values) < len(args))

    if isinstance(origin, type):
        if issubclass(origin, tuple):
            if len(args) == 2 and args[1] is Ellipsis:
                return array_of(shape_of(args[0]))
            if args == ((),):
                return tuple_of()
            return tuple_of(*(shape_of(arg) for arg in args))
        if issubclass(origin, Mapping):
            return Shape("object", fields=(), rest=shape_of(args[1]) if len(args) == 2 else ANY)
        if issubclass(origin, (Sequence, Set)) and not issubclass(origin, (str, bytes)):
            return array_of(shape_of(args[0]) if args else ANY)

    if origin is None and isinstance(annotation, type):
        if issubclass(annotation, _SCALAR_TYPES):
            return SCALAR
        if typing.is_typeddict(annotation) or dataclasses.is_dataclass(annotation) or issubclass(annotation, BaseModel):
            return Shape("object", origin=annotation)
        if issubclass(annotation, Mapping):
            return Shape("object", fields=(), rest=ANY)
        if issubclass(annotation, tuple):
            return array_of(ANY)
        if issubclass(annotation, (Sequence, Set)) and not issubclass(annotation, bytes):
            return array_of(ANY)

    logger.debug("No shape for annotation %r, treating it as any", annotation)
    return ANY


def _union_shape(args: tuple[Any, ...]) -> Shape:
    present = [arg for arg in args if arg is not None and arg is not type(None)]
    if not present:
        return NULL
    shape = union_of(*(shape_of(arg) for arg in present))
    if len(present) < len(args):
        return shape.with_nullable(True)
    return shape


@lru_cache(maxsize=256)
def _resolve_members(origin: type) -> tuple[tuple[str, Shape], ...]:
    if isinstance(origin, type) and issubclass(origin, BaseModel):
        members = []
        for name, field in origin.model_fields.items():
            shape = shape_of(field.annotation)
            if not field.is_required():
                shape = shape.with_nullable(True)
            members.append((name, shape))
        return tuple(members)

    hints = typing.get_type_hints(origin, include_extras=True)
    if typing.is_typeddict(origin):
        optional_keys = getattr(origin, "__optional_keys__", frozenset())
        return tuple(
            (name, shape_of(hint).with_nullable(True) if name in optional_keys else shape_of(hint))
            for name, hint in hints.items()
        )
    members = []
    for field in dataclasses.fields(origin):
        shape = shape_of(hints.get(field.name, Any))
        # like pydantic fields, a field with a default may be missing from stored documents
        if field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING:
            shape = shape.with_nullable(True)
        members.append((field.name, shape))
    return tuple(members)
