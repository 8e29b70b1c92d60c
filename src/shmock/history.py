from __future__ import annotations

from typing import TYPE_CHECKING, Any

from shmock.errors import format_arguments

if TYPE_CHECKING:
    from shmock.expectation import CallExpectation


class CallRecord:
    """One intercepted invocation of a mocked method."""

    def __init__(
        self,
        method_name: str,
        arguments: list[Any],
        kwargs: dict[str, Any],
        expectation: CallExpectation | None = None,
    ) -> None:
        self.method_name = method_name
        self.arguments = list(arguments)
        self.kwargs = dict(kwargs)
        self.expectation = expectation

    @property
    def fell_through(self) -> bool:
        return self.expectation is None

    def __str__(self) -> str:
        suffix = " [unmocked]" if self.fell_through else ""
        return f"{self.method_name}{format_arguments(self.arguments, self.kwargs)}{suffix}"

    def __repr__(self) -> str:
        return f"CallRecord({self})"


class CallHistory:
    """Ordered log of every call one mock received, matched or not."""

    def __init__(self) -> None:
        self._calls: list[CallRecord] = []

    def record(
        self,
        method_name: str,
        arguments: list[Any],
        kwargs: dict[str, Any],
        expectation: CallExpectation | None = None,
    ) -> CallRecord:
        record = CallRecord(method_name, arguments, kwargs, expectation)
        self._calls.append(record)
        return record

    @property
    def all_calls(self) -> list[CallRecord]:
        return list(self._calls)

    def calls_to(self, method_name: str) -> list[CallRecord]:
        return [c for c in self._calls if c.method_name == method_name]

    def called_order(self) -> list[str]:
        """Return method names in call order."""
        return [c.method_name for c in self._calls]

    def call_count(self, method_name: str) -> int:
        return len(self.calls_to(method_name))

    def assert_call_order(self, *names: str) -> None:
        """Assert that methods were called in this order (subsequence, not strict)."""
        actual = self.called_order()
        it = iter(actual)
        for name in names:
            assert any(n == name for n in it), (
                f"Expected method '{name}' in call order after previous methods.\n"
                f"Actual order: {actual}"
            )

    def __len__(self) -> int:
        return len(self._calls)
