"""
Marshal Registry
----------------

Maps native types to converter pairs (native -> dynamic, dynamic -> native).
Lists of any registered type are handled generically via ``List[T]``.
"""

import collections.abc
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, get_args, get_origin

from cloudcv.framework.exceptions import MarshalError


@dataclass(frozen=True)
class TypedConverter:
    """Converter pair registered for one native type."""

    native_type: Any
    to_dynamic: Callable[[Any], Any]
    from_dynamic: Callable[[Any], Any]


# Registry mapping native types to their converters
_converters: Dict[Any, TypedConverter] = {}


def register_converter(
    native_type: Any,
    to_dynamic: Callable[[Any], Any],
    from_dynamic: Callable[[Any], Any],
) -> TypedConverter:
    """
    Register the converter pair for a native type.

    Args:
        native_type: Native type key (e.g. ``np.int32``, ``Size``)
        to_dynamic: Converts a native value to a dynamic value
        from_dynamic: Converts a dynamic value to the native type, raising MarshalError

    Returns:
        The registered TypedConverter
    """
    converter = TypedConverter(native_type, to_dynamic, from_dynamic)
    _converters[native_type] = converter
    return converter


def get_converter(native_type: Any) -> Optional[TypedConverter]:
    """Get the converter registered for exactly ``native_type``."""
    return _converters.get(native_type)


def _find_converter_for_value(value: Any) -> Optional[TypedConverter]:
    for cls in type(value).__mro__:
        converter = _converters.get(cls)
        if converter is not None:
            return converter
    return None


def to_dynamic(value: Any) -> Any:
    """
    Convert a native value to its dynamic representation.

    Registered types are matched along the value's MRO. Sequences and
    mappings without a converter are converted element by element.
    """
    if value is None:
        return None
    converter = _find_converter_for_value(value)
    if converter is not None:
        return converter.to_dynamic(value)
    if isinstance(value, collections.abc.Mapping):
        return {str(key): to_dynamic(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dynamic(item) for item in value]
    raise MarshalError(f"no converter registered for {type(value).__name__}")


def from_dynamic(value: Any, native_type: Any) -> Any:
    """
    Convert a dynamic value to ``native_type``.

    Raises:
        MarshalError: if the value (or any element of a composite) cannot be converted
    """
    if get_origin(native_type) is list:
        (element_type,) = get_args(native_type)
        return _list_from_dynamic(value, element_type)

    converter = get_converter(native_type)
    if converter is None:
        raise MarshalError(f"no converter registered for {getattr(native_type, '__name__', native_type)}")
    return converter.from_dynamic(value)


def _list_from_dynamic(value: Any, element_type: Any) -> list:
    if not isinstance(value, (list, tuple)):
        raise MarshalError(f"expected an array, got {type(value).__name__}")
    items = []
    for index, item in enumerate(value):
        try:
            items.append(from_dynamic(item, element_type))
        except MarshalError as exc:
            raise exc.prefixed(index) from None
    return items
