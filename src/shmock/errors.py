from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shmock.expectation import CallExpectation
    from shmock.history import CallRecord


class MockUsageError(Exception):
    """A mock was configured or driven in the wrong lifecycle state."""


class MockExpectationFailure(AssertionError):
    """Base for failures the test framework should report as a failed test."""


def _format_calls(calls: list[CallRecord]) -> str:
    if not calls:
        return "  (none)"
    return "\n".join(f"  {c}" for c in calls)


class ResolutionFailure(MockExpectationFailure):
    def __init__(
        self,
        method_name: str,
        arguments: list[Any],
        kwargs: dict[str, Any],
        reason: str,
        candidates: list[CallExpectation] | None = None,
        calls: list[CallRecord] | None = None,
    ) -> None:
        self.method_name = method_name
        self.arguments = list(arguments)
        self.kwargs = dict(kwargs)
        self.reason = reason
        declared = (
            "\n".join(f"  {e.describe()}" for e in candidates)
            if candidates
            else "  (none)"
        )
        super().__init__(
            f"\n\nUnexpected call to {method_name}(): {reason}\n"
            f"Received: {format_arguments(arguments, kwargs)}\n"
            f"Declared expectations:\n{declared}\n"
            f"Observed calls:\n{_format_calls(calls or [])}\n"
        )


class VerificationFailure(MockExpectationFailure):
    def __init__(
        self,
        unsatisfied: list[CallExpectation],
        calls: list[CallRecord] | None = None,
    ) -> None:
        self.unsatisfied = list(unsatisfied)
        lines = [
            f"  {e.describe()}: expected at least {e.frequency.minimum} "
            f"call(s), got {e.count}"
            for e in unsatisfied
        ]
        super().__init__(
            f"\n\n{len(unsatisfied)} mock expectation(s) not met:\n"
            + "\n".join(lines)
            + f"\nObserved calls:\n{_format_calls(calls or [])}\n"
        )


def format_arguments(arguments: list[Any], kwargs: dict[str, Any]) -> str:
    parts = [repr(a) for a in arguments]
    parts.extend(f"{k}={v!r}" for k, v in kwargs.items())
    return "(" + ", ".join(parts) + ")"
