from __future__ import annotations

from typing import Any, Callable

from shmock.expectation import CallExpectation


class ExpectationRegistry:
    """Expectations of one mock, keyed by method name in declaration order."""

    def __init__(self) -> None:
        self._by_method: dict[str, list[CallExpectation]] = {}
        # Global declaration order across all methods
        self._all: list[CallExpectation] = []

    def add(self, expectation: CallExpectation) -> None:
        self._by_method.setdefault(expectation.method_name, []).append(expectation)
        self._all.append(expectation)

    def declares(self, method_name: str) -> bool:
        return bool(self._by_method.get(method_name))

    def for_method(self, method_name: str) -> list[CallExpectation]:
        return list(self._by_method.get(method_name, []))

    @property
    def all(self) -> list[CallExpectation]:
        return list(self._all)

    def resolve(
        self,
        method_name: str,
        arguments: list[Any],
        kwargs: dict[str, Any],
        allowed: Callable[[CallExpectation], bool] | None = None,
    ) -> CallExpectation | None:
        """Return the first declared, unexhausted expectation matching the call.

        ``allowed`` narrows the candidates further, e.g. to those the order
        enforcer lets fire.
        """
        for expectation in self._by_method.get(method_name, []):
            if expectation.exhausted:
                continue
            if allowed is not None and not allowed(expectation):
                continue
            if expectation.matches(arguments, kwargs):
                return expectation
        return None

    def has_exhausted_match(
        self, method_name: str, arguments: list[Any], kwargs: dict[str, Any]
    ) -> bool:
        """True if the call would match an expectation that is already full."""
        return any(
            e.exhausted and e.matches(arguments, kwargs)
            for e in self._by_method.get(method_name, [])
        )

    def has_unanswerable_match(
        self, method_name: str, arguments: list[Any], kwargs: dict[str, Any]
    ) -> bool:
        """True if the arguments match an expectation whose response cannot answer them."""
        return any(
            not e.exhausted
            and e.matches(arguments, kwargs, check_response=False)
            and not e.response.accepts(arguments, kwargs)
            for e in self._by_method.get(method_name, [])
        )

    def unsatisfied(self) -> list[CallExpectation]:
        return [e for e in self._all if not e.satisfied]

    def __len__(self) -> int:
        return len(self._all)


class OrderEnforcer:
    """Sequence position shared by all ordered expectations of one mock.

    An expectation at position ``k`` may fire only while the enforcer has not
    moved past ``k`` and every expectation ordered before it has met its
    minimum call count.
    """

    def __init__(self) -> None:
        self._next_slot = 0
        self._position = 0
        self._ordered: list[CallExpectation] = []

    @property
    def position(self) -> int:
        return self._position

    def assign(self, expectation: CallExpectation) -> None:
        expectation.position = self._next_slot
        self._next_slot += 1
        self._ordered.append(expectation)

    def blocking(self, expectation: CallExpectation) -> list[CallExpectation]:
        """Expectations that must be satisfied before ``expectation`` may fire."""
        k = expectation.position
        if k is None:
            return []
        return [e for e in self._ordered[:k] if not e.satisfied]

    def allows(self, expectation: CallExpectation) -> bool:
        k = expectation.position
        if k is None:
            return True
        return k >= self._position and not self.blocking(expectation)

    def advance(self, expectation: CallExpectation) -> None:
        if expectation.position is not None:
            self._position = max(self._position, expectation.position)
