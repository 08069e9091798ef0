"""
Primitive converters
--------------------

Registers converters for booleans, 32-bit integers, single/double floats,
strings and byte buffers.

Integer policy: dynamic numbers are converted the way the runtime coerces
them (ECMAScript ToInt32/ToUint32). NaN and infinities become 0, fractions
truncate toward zero, and the result wraps modulo 2**32. There is no overflow
check. Float targets reject ints that do not fit a double.
"""

import math
import numbers

import numpy as np

from cloudcv.framework.exceptions import MarshalError
from cloudcv.framework.marshal.registry import register_converter

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def require_number(value) -> numbers.Real:
    """Return ``value`` if it is a real number, otherwise raise MarshalError."""
    if isinstance(value, (numbers.Real, np.number)) and not isinstance(value, np.complexfloating):
        return value
    raise MarshalError(f"expected a number, got {type(value).__name__}")


def to_float(value) -> float:
    """Convert a dynamic number to a Python float; ints beyond float range raise MarshalError."""
    number = require_number(value)
    try:
        return float(number)
    except OverflowError:
        raise MarshalError("number out of range") from None


def _truncate(value) -> int:
    number = require_number(value)
    if isinstance(number, (int, np.integer)):
        return int(number)
    number = float(number)
    if not math.isfinite(number):
        return 0
    return int(number)


def wrap_uint32(value) -> int:
    """ToUint32: truncate, then reduce modulo 2**32."""
    return _truncate(value) & _UINT32_MASK


def wrap_int32(value) -> int:
    """ToInt32: ToUint32, then reinterpret the top bit as the sign."""
    bits = wrap_uint32(value)
    if bits & _INT32_SIGN:
        return bits - (_UINT32_MASK + 1)
    return bits


def _bool_from_dynamic(value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    raise MarshalError(f"expected a boolean, got {type(value).__name__}")


def _str_from_dynamic(value) -> str:
    if isinstance(value, str):
        return str(value)
    raise MarshalError(f"expected a string, got {type(value).__name__}")


def _bytes_from_dynamic(value) -> bytes:
    # Always a private copy: the caller's buffer may change after submission.
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise MarshalError(f"expected a buffer, got {type(value).__name__}")


def _bytes_to_dynamic(value) -> bytes:
    return bytes(value)


register_converter(bool, bool, _bool_from_dynamic)
register_converter(np.bool_, bool, _bool_from_dynamic)

register_converter(np.int32, int, lambda value: np.int32(wrap_int32(value)))
register_converter(np.uint32, int, lambda value: np.uint32(wrap_uint32(value)))
register_converter(np.float32, float, lambda value: np.float32(to_float(value)))
register_converter(np.float64, float, lambda value: np.float64(to_float(value)))

# Values produced by numpy arithmetic (int64, float16, ...) still marshal out
register_converter(np.integer, int, lambda value: np.int64(_truncate(value)))
register_converter(np.floating, float, lambda value: np.float64(to_float(value)))

# Already-dynamic primitives pass through
register_converter(int, int, _truncate)
register_converter(float, float, to_float)
register_converter(str, str, _str_from_dynamic)

register_converter(bytes, _bytes_to_dynamic, _bytes_from_dynamic)
register_converter(bytearray, _bytes_to_dynamic, _bytes_from_dynamic)
register_converter(memoryview, _bytes_to_dynamic, _bytes_from_dynamic)
