from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from shmock.errors import MockUsageError, format_arguments
from shmock.matchers import matches
from shmock.responses import (
    Compute,
    DelegateToNestedMock,
    Fallthrough,
    ResponseStrategy,
    Return,
    ReturnSelf,
    Throw,
    ValueMap,
    ValueSequence,
)

if TYPE_CHECKING:
    from shmock.controller import MockController
    from shmock.joinpoint import JoinPoint


@dataclass(frozen=True)
class Frequency:
    """Inclusive range of allowed calls. ``maximum=None`` means unbounded."""

    minimum: int = 1
    maximum: int | None = 1

    def __post_init__(self) -> None:
        if self.minimum < 0:
            raise MockUsageError(f"Minimum call count cannot be negative: {self.minimum}")
        if self.maximum is not None and self.maximum < self.minimum:
            raise MockUsageError(
                f"Maximum call count {self.maximum} is below minimum {self.minimum}"
            )

    @classmethod
    def exactly(cls, n: int) -> Frequency:
        return cls(n, n)

    @classmethod
    def any(cls) -> Frequency:
        return cls(0, None)

    @classmethod
    def never(cls) -> Frequency:
        return cls(0, 0)

    @classmethod
    def at_least(cls, n: int) -> Frequency:
        return cls(n, None)

    @classmethod
    def at_most(cls, n: int) -> Frequency:
        return cls(0, n)

    def __str__(self) -> str:
        if self.maximum is None:
            return "any number of times" if self.minimum == 0 else f"at least {self.minimum}x"
        if self.minimum == self.maximum:
            return "never" if self.maximum == 0 else f"exactly {self.maximum}x"
        return f"between {self.minimum}x and {self.maximum}x"


class ExpectationState(enum.Enum):
    PENDING = "pending"
    PARTIALLY_SATISFIED = "partially_satisfied"
    SATISFIED = "satisfied"
    EXHAUSTED = "exhausted"


@dataclass
class CallExpectation:
    """One declared expectation and its live call counter."""

    method_name: str
    constraints: tuple[Any, ...] = ()
    kw_constraints: dict[str, Any] = field(default_factory=dict)
    frequency: Frequency = field(default_factory=Frequency)
    response: ResponseStrategy = field(default_factory=Return)
    position: int | None = None
    allow_extra_arguments: bool = True
    count: int = 0

    def matches(
        self, arguments: list[Any], kwargs: dict[str, Any], check_response: bool = True
    ) -> bool:
        if not matches(
            self.constraints,
            arguments,
            self.kw_constraints,
            kwargs,
            allow_extra_arguments=self.allow_extra_arguments,
        ):
            return False
        return not check_response or self.response.accepts(arguments, kwargs)

    @property
    def state(self) -> ExpectationState:
        maximum = self.frequency.maximum
        if maximum is not None and self.count >= maximum:
            return ExpectationState.EXHAUSTED
        if self.count >= self.frequency.minimum:
            return ExpectationState.SATISFIED
        if self.count == 0:
            return ExpectationState.PENDING
        return ExpectationState.PARTIALLY_SATISFIED

    @property
    def exhausted(self) -> bool:
        return self.state is ExpectationState.EXHAUSTED

    @property
    def satisfied(self) -> bool:
        return self.count >= self.frequency.minimum

    def record_call(self) -> bool:
        """Count one call. Returns False, leaving the count alone, if already full."""
        if self.exhausted:
            return False
        self.count += 1
        return True

    def describe(self) -> str:
        order = f" #{self.position}" if self.position is not None else ""
        return (
            f"{self.method_name}{format_arguments(list(self.constraints), self.kw_constraints)}"
            f"{order} {self.frequency}, {self.response.describe()} "
            f"(called {self.count}x)"
        )


class CallExpectationBuilder:
    """Chainable configuration for one expectation.

    Usage:

        controller.multiply(2, 2).times(2).return_value(4)
        controller.expect("fetch", ANY, timeout=5).will(lambda jp: jp.arguments[0])
    """

    def __init__(self, expectation: CallExpectation, controller: MockController) -> None:
        self._expectation = expectation
        self._controller = controller

    @property
    def expectation(self) -> CallExpectation:
        return self._expectation

    def _set_frequency(self, frequency: Frequency) -> CallExpectationBuilder:
        self._controller._ensure_recording()
        self._expectation.frequency = frequency
        return self

    def _set_response(self, response: ResponseStrategy) -> CallExpectationBuilder:
        self._controller._ensure_recording()
        self._expectation.response = response
        return self

    # Frequency
    def times(self, n: int) -> CallExpectationBuilder:
        return self._set_frequency(Frequency.exactly(n))

    def once(self) -> CallExpectationBuilder:
        return self.times(1)

    def twice(self) -> CallExpectationBuilder:
        return self.times(2)

    def any(self) -> CallExpectationBuilder:
        return self._set_frequency(Frequency.any())

    def never(self) -> CallExpectationBuilder:
        return self._set_frequency(Frequency.never())

    def at_least_once(self) -> CallExpectationBuilder:
        return self._set_frequency(Frequency.at_least(1))

    def at_least(self, n: int) -> CallExpectationBuilder:
        return self._set_frequency(Frequency.at_least(n))

    def at_most(self, n: int) -> CallExpectationBuilder:
        return self._set_frequency(Frequency.at_most(n))

    # Arguments
    def with_no_extra_arguments(self) -> CallExpectationBuilder:
        self._controller._ensure_recording()
        self._expectation.allow_extra_arguments = False
        return self

    # Responses
    def return_value(self, value: Any) -> CallExpectationBuilder:
        return self._set_response(Return(value))

    def return_value_map(self, rows: list[list[Any]]) -> CallExpectationBuilder:
        return self._set_response(ValueMap([list(r) for r in rows]))

    def will(self, fn: Callable[[JoinPoint], Any]) -> CallExpectationBuilder:
        return self._set_response(Compute(fn))

    def return_this(self) -> CallExpectationBuilder:
        return self._set_response(ReturnSelf())

    def throw_exception(
        self, exception: BaseException | type[BaseException] | None = None
    ) -> CallExpectationBuilder:
        return self._set_response(Throw(exception))

    def return_consecutively(self, values: list[Any]) -> CallExpectationBuilder:
        return self._set_response(ValueSequence(list(values)))

    def return_shmock(
        self, target: type, setup: Callable[[MockController], None] | None = None
    ) -> CallExpectationBuilder:
        self._controller._ensure_recording()
        nested = self._controller.nested(target, setup)
        return self._set_response(DelegateToNestedMock(target, nested))

    def call_original(self) -> CallExpectationBuilder:
        return self._set_response(Fallthrough())
