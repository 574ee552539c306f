from typing import Any

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator

from jsonb_paths.shape import ANY, Shape, shape_of


class JSONDocument(TypeDecorator[Any]):
    """A ``jsonb`` column whose documents have a known shape.

    The shape is only used to decide which path operations are allowed on the
    column; values are stored and loaded exactly like plain ``JSONB``::

        profile = Column(JSONDocument(Profile), nullable=True)
    """

    impl = JSONB
    cache_ok = True

    def __init__(self, shape: Any = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.shape: Shape = ANY if shape is None else shape_of(shape)
