class JSONPathError(Exception):
    """Base class for errors raised while compiling jsonb path expressions."""


class PathSegmentError(JSONPathError, TypeError):
    """A member used for navigation is neither a string nor an integer."""


class ShapeError(JSONPathError, TypeError):
    """An operation is not available for the shape of the node it was called on."""
