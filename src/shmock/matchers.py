"""Argument matching: decides whether a call satisfies declared constraints.

Literal constraints use loose equality: numeric strings equal the numbers
they spell, ints equal floats, and containers compare structurally with the
same rules applied per element. Anything exposing a callable ``test(value)``
is treated as a predicate whose answer is final.
"""

from __future__ import annotations

import numbers
import re
from collections.abc import Mapping, Sequence
from typing import Any, Callable, Protocol, runtime_checkable

_NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")


@runtime_checkable
class Predicate(Protocol):
    def test(self, value: Any) -> bool: ...


class _Anything:
    """Unconstrained argument slot."""

    def test(self, value: Any) -> bool:
        return True

    def __repr__(self) -> str:
        return "ANY"


ANY = _Anything()


def is_predicate(constraint: Any) -> bool:
    # Classes carry unbound ``test`` functions; only instances are predicates.
    return not isinstance(constraint, type) and isinstance(constraint, Predicate)


def _as_number(value: Any) -> float | int | None:
    if isinstance(value, numbers.Real):
        return value
    if isinstance(value, str) and _NUMERIC_STRING.match(value):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    return None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(
        value, (str, bytes, bytearray)
    )


def loose_equals(expected: Any, actual: Any) -> bool:
    if expected is None or actual is None:
        return expected is actual

    if isinstance(expected, Mapping) and isinstance(actual, Mapping):
        if set(expected.keys()) != set(actual.keys()):
            return False
        return all(loose_equals(expected[k], actual[k]) for k in expected)

    if _is_sequence(expected) and _is_sequence(actual):
        if len(expected) != len(actual):
            return False
        return all(loose_equals(e, a) for e, a in zip(expected, actual))

    left, right = _as_number(expected), _as_number(actual)
    if left is not None and right is not None:
        # Two plain strings only compare numerically when both look numeric.
        return left == right

    return bool(expected == actual)


def constraint_matches(constraint: Any, actual: Any) -> bool:
    if is_predicate(constraint):
        return bool(constraint.test(actual))
    return loose_equals(constraint, actual)


def matches(
    constraints: Sequence[Any],
    actual_args: Sequence[Any],
    kw_constraints: Mapping[str, Any] | None = None,
    actual_kwargs: Mapping[str, Any] | None = None,
    allow_extra_arguments: bool = True,
) -> bool:
    """Return True if the actual call satisfies every declared constraint.

    Args:
        constraints:           Positional constraints, one per argument slot.
        actual_args:           The positional arguments of the call.
        kw_constraints:        Keyword constraints, matched by name.
        actual_kwargs:         The keyword arguments of the call.
        allow_extra_arguments: If False, trailing positional arguments beyond
                               the declared constraints fail the match.
    """
    if len(constraints) > len(actual_args):
        return False
    if not allow_extra_arguments and len(actual_args) > len(constraints):
        return False

    for constraint, actual in zip(constraints, actual_args):
        if not constraint_matches(constraint, actual):
            return False

    actual_kwargs = actual_kwargs or {}
    for name, constraint in (kw_constraints or {}).items():
        if name not in actual_kwargs:
            return False
        if not constraint_matches(constraint, actual_kwargs[name]):
            return False

    return True


# ------------------------------------------------------------------ #
# Bundled predicates                                                  #
# ------------------------------------------------------------------ #


class Constraint:
    """Base for the bundled predicates; subclasses implement ``test``."""

    description = "constraint"

    def test(self, value: Any) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return self.description


_TYPE_NAMES: dict[str, tuple[type, ...]] = {
    "integer": (int,),
    "int": (int,),
    "float": (float,),
    "double": (float,),
    "numeric": (numbers.Real,),
    "string": (str,),
    "array": (list, tuple, dict),
    "bool": (bool,),
    "boolean": (bool,),
    "object": (object,),
}


class IsType(Constraint):
    def __init__(self, kind: type | str) -> None:
        self.kind = kind
        self.description = f"is_type({kind if isinstance(kind, str) else kind.__name__})"

    def test(self, value: Any) -> bool:
        if isinstance(self.kind, type):
            return isinstance(value, self.kind)
        if self.kind == "null":
            return value is None
        if self.kind == "callable":
            return callable(value)
        try:
            types = _TYPE_NAMES[self.kind]
        except KeyError:
            raise ValueError(f"Unknown type name: {self.kind!r}") from None
        if types == (int,) and isinstance(value, bool):
            return False
        return isinstance(value, types)


class _Compare(Constraint):
    def __init__(self, bound: Any, op: Callable[[Any, Any], bool], name: str) -> None:
        self.bound = bound
        self._op = op
        self.description = f"{name}({bound!r})"

    def test(self, value: Any) -> bool:
        try:
            return bool(self._op(value, self.bound))
        except TypeError:
            return False


class Satisfies(Constraint):
    def __init__(self, fn: Callable[[Any], bool], description: str = "") -> None:
        self._fn = fn
        self.description = description or f"satisfies({getattr(fn, '__name__', fn)!r})"

    def test(self, value: Any) -> bool:
        return bool(self._fn(value))


def anything() -> _Anything:
    return ANY


def is_type(kind: type | str) -> IsType:
    return IsType(kind)


def greater_than(bound: Any) -> Constraint:
    return _Compare(bound, lambda v, b: v > b, "greater_than")


def less_than(bound: Any) -> Constraint:
    return _Compare(bound, lambda v, b: v < b, "less_than")


def equal_to(expected: Any) -> Constraint:
    """Strict ``==`` with no numeric-string coercion."""
    return _Compare(expected, lambda v, b: type(v) is type(b) and v == b, "equal_to")


def identical_to(expected: Any) -> Constraint:
    return _Compare(expected, lambda v, b: v is b, "identical_to")


def contains(item: Any) -> Constraint:
    return _Compare(item, lambda v, b: b in v, "contains")


def satisfies(fn: Callable[[Any], bool], description: str = "") -> Satisfies:
    return Satisfies(fn, description)
