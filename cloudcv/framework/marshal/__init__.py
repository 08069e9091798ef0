"""
Marshal layer: type-indexed converters between native and dynamic values.

Importing this package registers the primitive and geometric converters.
"""

from cloudcv.framework.marshal.registry import (
    TypedConverter,
    from_dynamic,
    get_converter,
    register_converter,
    to_dynamic,
)
from cloudcv.framework.marshal import primitives  # noqa: F401
from cloudcv.framework.marshal.geometry import Point2f, Size
from cloudcv.framework.marshal.object_builder import ObjectBuilder

__all__ = [
    "TypedConverter",
    "register_converter",
    "get_converter",
    "to_dynamic",
    "from_dynamic",
    "Size",
    "Point2f",
    "ObjectBuilder",
]
