"""
Argument Binder
---------------

Validates a dynamic argument list against one or more declared call forms
(BindingSpec) and converts each argument to its native type.

A call site declares its accepted forms once:

    DETECT = BindingSpec("detect", (
        Argument("image", is_buffer, native_type=bytes),
        Argument("pattern_size", native_type=Size),
        Argument("pattern", options=PATTERN_TYPE_OPTIONS),
        Argument("callback", is_function),
    ))
    binder = ArgumentBinder(DETECT)

and binds each call with ``binder.bind(args)``. Checks per form run
left to right and stop at the first violation. Forms are tried in
declaration order; the first that binds completely wins. When none does,
the error of the last form tried is raised.
"""

import collections.abc
import logging
import math
import numbers
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from cloudcv.framework.exceptions import BindingError, MarshalError
from cloudcv.framework.marshal import from_dynamic

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Predicates
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Predicate:
    """Named type check on a dynamic value. ``description`` completes "must be ..."."""

    description: str
    check: Callable[[Any], bool]

    def __call__(self, value: Any) -> bool:
        return bool(self.check(value))


def _is_finite_number(value: Any) -> bool:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints too large for a double
        return False


def _is_number_pair(value: Any) -> bool:
    if isinstance(value, collections.abc.Mapping):
        numeric = [item for item in value.values() if _is_finite_number(item)]
        return len(value) >= 2 and len(numeric) >= 2
    if isinstance(value, (list, tuple)):
        return len(value) == 2 and all(_is_finite_number(item) for item in value)
    return False


is_buffer = Predicate("a buffer", lambda value: isinstance(value, (bytes, bytearray, memoryview)))
is_function = Predicate("a function", callable)
is_array = Predicate("an array", lambda value: isinstance(value, (list, tuple)))
is_string = Predicate("a string", lambda value: isinstance(value, str))
is_object = Predicate("an object", lambda value: isinstance(value, collections.abc.Mapping))
is_number = Predicate("a finite number", _is_finite_number)
is_number_pair = Predicate("a pair of finite numbers", _is_number_pair)


def string_enum(options: Mapping[str, Any]) -> Mapping[str, Any]:
    """Freeze a label -> enum constant mapping for use in an Argument."""
    return MappingProxyType(dict(options))


# -----------------------------------------------------------------------------
# Specs
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Argument:
    """
    Constraint on one positional argument.

    Args:
        name: Key under which the bound value is stored
        predicate: Optional type check, applied first
        native_type: Optional marshal target; without it the value is bound as-is
        options: Optional case-sensitive label -> constant mapping
    """

    name: str
    predicate: Optional[Predicate] = None
    native_type: Any = None
    options: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class BindingSpec:
    """One accepted call form. ``name`` tags which form matched."""

    name: str
    arguments: Tuple[Argument, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))

    @property
    def count(self) -> int:
        return len(self.arguments)


class BoundArguments(collections.abc.Mapping):
    """Native values produced by a successful bind, keyed by argument name."""

    def __init__(self, form: str, values: Dict[str, Any]):
        self.form = form
        self._values = values

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"BoundArguments(form={self.form!r}, names={list(self._values)!r})"


# -----------------------------------------------------------------------------
# Binder
# -----------------------------------------------------------------------------


class ArgumentBinder:
    """Binds dynamic argument lists against an ordered set of call forms."""

    def __init__(self, *specs: BindingSpec):
        if not specs:
            raise ValueError("ArgumentBinder needs at least one BindingSpec")
        self.specs: Tuple[BindingSpec, ...] = specs

    def bind(self, args: Sequence[Any]) -> BoundArguments:
        """
        Bind ``args`` to the first matching form.

        Raises:
            BindingError: describing the first violation of the last form tried
        """
        last_error: Optional[BindingError] = None
        for spec in self.specs:
            try:
                bound = self._bind_spec(spec, args)
            except BindingError as exc:
                logger.debug("Call form '%s' rejected: %s", spec.name, exc)
                last_error = exc
                continue
            logger.debug("Bound call form '%s'", spec.name)
            return bound
        raise last_error

    def _bind_spec(self, spec: BindingSpec, args: Sequence[Any]) -> BoundArguments:
        if len(args) != spec.count:
            raise BindingError(
                f"unexpected argument count: expected {spec.count}, got {len(args)}"
            )

        values: Dict[str, Any] = {}
        for index, (argument, value) in enumerate(zip(spec.arguments, args)):
            values[argument.name] = self._bind_argument(index, argument, value)
        return BoundArguments(spec.name, values)

    @staticmethod
    def _bind_argument(index: int, argument: Argument, value: Any) -> Any:
        label = f"Argument {index} ({argument.name})"

        if argument.predicate is not None and not argument.predicate(value):
            raise BindingError(
                f"{label} must be {argument.predicate.description}, got {type(value).__name__}",
                argument=index,
            )

        if argument.options is not None:
            if not isinstance(value, str):
                raise BindingError(f"{label} must be a string, got {type(value).__name__}", argument=index)
            if value not in argument.options:
                expected = ", ".join(argument.options)
                raise BindingError(
                    f"{label}: unrecognized option '{value}' (expected one of {expected})",
                    argument=index,
                )
            return argument.options[value]

        if argument.native_type is not None:
            try:
                return from_dynamic(value, argument.native_type)
            except MarshalError as exc:
                raise BindingError(f"{label}: {exc}", argument=index) from exc

        return value


def bind_arguments(args: Sequence[Any], *specs: BindingSpec) -> BoundArguments:
    """One-shot form of ``ArgumentBinder(*specs).bind(args)``."""
    return ArgumentBinder(*specs).bind(args)
