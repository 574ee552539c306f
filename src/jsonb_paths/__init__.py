from jsonb_paths.errors import JSONPathError, PathSegmentError, ShapeError
from jsonb_paths.operations.access import JSONAccessor, json_access
from jsonb_paths.operations.array import json_array_delete, json_array_push, json_array_set
from jsonb_paths.operations.build import json_build
from jsonb_paths.operations.coalesce import json_coalesce
from jsonb_paths.operations.common import UNSET, normalize_nullish, normalize_nullish_array, typed
from jsonb_paths.operations.merge import json_merge
from jsonb_paths.operations.set import JSONSetter, json_set, json_set_pipe
from jsonb_paths.shape import Shape, shape_of
from jsonb_paths.types import JSONDocument

__all__ = [
    "UNSET",
    "JSONAccessor",
    "JSONDocument",
    "JSONPathError",
    "JSONSetter",
    "PathSegmentError",
    "Shape",
    "ShapeError",
    "json_access",
    "json_array_delete",
    "json_array_push",
    "json_array_set",
    "json_build",
    "json_coalesce",
    "json_merge",
    "json_set",
    "json_set_pipe",
    "normalize_nullish",
    "normalize_nullish_array",
    "shape_of",
    "typed",
]
