from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from shmock.errors import ResolutionFailure
from shmock.matchers import matches

if TYPE_CHECKING:
    from shmock.joinpoint import JoinPoint


class ResponseStrategy:
    """What a satisfied expectation produces for the caller."""

    def respond(self, joinpoint: JoinPoint) -> Any:
        raise NotImplementedError

    def accepts(self, arguments: list[Any], kwargs: dict[str, Any]) -> bool:
        """Whether this response can answer a call with these arguments."""
        return True

    def describe(self) -> str:
        return type(self).__name__


@dataclass
class Return(ResponseStrategy):
    value: Any = None

    def respond(self, joinpoint: JoinPoint) -> Any:
        return self.value

    def describe(self) -> str:
        return f"returns {self.value!r}"


@dataclass
class Compute(ResponseStrategy):
    """Calls ``fn(joinpoint)``; the callback may rewrite ``joinpoint.arguments``."""

    fn: Callable[[JoinPoint], Any]

    def respond(self, joinpoint: JoinPoint) -> Any:
        return self.fn(joinpoint)

    def describe(self) -> str:
        return f"computed by {getattr(self.fn, '__name__', self.fn)!r}"


class DefaultMockException(Exception):
    """Raised by ``throw_exception()`` when no exception was given."""


@dataclass
class Throw(ResponseStrategy):
    exception: BaseException | type[BaseException] | None = None

    def respond(self, joinpoint: JoinPoint) -> Any:
        exc = self.exception
        if exc is None:
            raise DefaultMockException(
                f"Exception thrown by mocked {joinpoint.method_name}()"
            )
        if isinstance(exc, type):
            raise exc()
        raise exc

    def describe(self) -> str:
        return f"raises {self.exception!r}"


@dataclass
class ValueSequence(ResponseStrategy):
    """One value per call; the last value repeats once the list runs out."""

    values: list[Any] = field(default_factory=list)
    _served: int = field(default=0, init=False, repr=False)

    def respond(self, joinpoint: JoinPoint) -> Any:
        if not self.values:
            return None
        index = min(self._served, len(self.values) - 1)
        self._served += 1
        return self.values[index]

    def describe(self) -> str:
        return f"returns consecutively {self.values!r}"


@dataclass
class ValueMap(ResponseStrategy):
    """Rows of ``[arg1, ..., argN, result]``; the first matching row wins.

    Rows are matched against positional arguments only. Keyword arguments
    that the target's signature cannot turn into positional ones (keyword-only
    parameters, ``**kwargs``) are not seen by the rows; constrain them on the
    expectation itself instead.

    A call no row matches does not match the expectation at all, so it is
    neither counted nor recorded.
    """

    rows: list[list[Any]] = field(default_factory=list)

    def __post_init__(self) -> None:
        for row in self.rows:
            if len(row) < 1:
                raise ValueError("return_value_map rows need at least a result")

    def _row_for(self, arguments: list[Any]) -> list[Any] | None:
        for row in self.rows:
            if matches(row[:-1], arguments):
                return row
        return None

    def accepts(self, arguments: list[Any], kwargs: dict[str, Any]) -> bool:
        return self._row_for(arguments) is not None

    def respond(self, joinpoint: JoinPoint) -> Any:
        row = self._row_for(joinpoint.arguments)
        if row is not None:
            return row[-1]
        raise ResolutionFailure(
            joinpoint.method_name,
            joinpoint.arguments,
            joinpoint.kwargs,
            f"no row of the return value map matches "
            f"(rows: {[row[:-1] for row in self.rows]})",
        )

    def describe(self) -> str:
        return f"returns from map of {len(self.rows)} row(s)"


class ReturnSelf(ResponseStrategy):
    def respond(self, joinpoint: JoinPoint) -> Any:
        return joinpoint.target

    def describe(self) -> str:
        return "returns the mock itself"


@dataclass
class DelegateToNestedMock(ResponseStrategy):
    """Answers with a nested mock that was built and replayed at declaration."""

    target: type
    mock: Any

    def respond(self, joinpoint: JoinPoint) -> Any:
        return self.mock

    def describe(self) -> str:
        return f"returns nested mock of {self.target.__name__}"


class Fallthrough(ResponseStrategy):
    def respond(self, joinpoint: JoinPoint) -> Any:
        return joinpoint.call_original()

    def describe(self) -> str:
        return "calls the original method"
