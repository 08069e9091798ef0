"""
Geometric converters
--------------------

Size, 2D points and matrices. Dynamic forms:

- Size:    {"width": w, "height": h}  or  [w, h]
- Point2f: {"x": x, "y": y}           or  [x, y]
- matrix:  rectangular nested list of numbers (rows)
"""

import collections.abc
from typing import Any, NamedTuple, Sequence

import numpy as np

from cloudcv.framework.exceptions import MarshalError
from cloudcv.framework.marshal.primitives import require_number, to_float, wrap_int32
from cloudcv.framework.marshal.registry import register_converter


class Size(NamedTuple):
    """Width/height pair; passes straight into cv2 calls that expect (w, h)."""

    width: int
    height: int


class Point2f(NamedTuple):
    x: float
    y: float


def _fields_from_dynamic(value: Any, names: Sequence[str], kind: str, convert=require_number) -> list:
    """Read numeric fields from a mapping (by name) or a sequence (by position)."""
    if isinstance(value, collections.abc.Mapping):
        raw = []
        for name in names:
            if name not in value:
                raise MarshalError(f"{kind} is missing field '{name}'")
            raw.append((name, value[name]))
    elif isinstance(value, (list, tuple)):
        if len(value) != len(names):
            raise MarshalError(f"expected {kind} with {len(names)} elements, got {len(value)}")
        raw = list(enumerate(value))
    else:
        raise MarshalError(f"expected {kind}, got {type(value).__name__}")

    numbers = []
    for segment, item in raw:
        try:
            numbers.append(convert(item))
        except MarshalError as exc:
            raise exc.prefixed(segment) from None
    return numbers


def _size_from_dynamic(value: Any) -> Size:
    width, height = _fields_from_dynamic(value, ("width", "height"), "a size")
    return Size(wrap_int32(width), wrap_int32(height))


def _point2f_from_dynamic(value: Any) -> Point2f:
    x, y = _fields_from_dynamic(value, ("x", "y"), "a 2D point", convert=to_float)
    return Point2f(float(np.float32(x)), float(np.float32(y)))


def _matrix_from_dynamic(value: Any) -> np.ndarray:
    if not isinstance(value, (list, tuple)):
        raise MarshalError(f"expected a matrix (array of rows), got {type(value).__name__}")
    rows = []
    width = None
    for row_index, row in enumerate(value):
        if not isinstance(row, (list, tuple)):
            raise MarshalError(f"expected a row array, got {type(row).__name__}", (row_index,))
        if width is None:
            width = len(row)
        elif len(row) != width:
            raise MarshalError(f"expected a row of {width} elements, got {len(row)}", (row_index,))
        converted = []
        for column_index, item in enumerate(row):
            try:
                converted.append(to_float(item))
            except MarshalError as exc:
                raise exc.prefixed(column_index).prefixed(row_index) from None
        rows.append(converted)
    return np.array(rows, dtype=np.float64).reshape(len(rows), width or 0)


def _matrix_to_dynamic(value: np.ndarray) -> list:
    return value.tolist()


register_converter(Size, lambda size: {"width": int(size.width), "height": int(size.height)}, _size_from_dynamic)
register_converter(Point2f, lambda point: {"x": float(point.x), "y": float(point.y)}, _point2f_from_dynamic)
register_converter(np.ndarray, _matrix_to_dynamic, _matrix_from_dynamic)
