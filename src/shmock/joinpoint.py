"""Invocation chain: every call to a mock telescopes through a stack of JoinPoints.

Each layer is a JoinPoint that wraps the next one. A layer may inspect or
rewrite the arguments, resolve the call itself, or call ``execute()`` on the
layer it wraps. The innermost layer reaches the original method (or returns
None when originals are not preserved).

    OrderCheck -> Resolution -> Counting -> Response -> Fallback
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from shmock.errors import MockUsageError, ResolutionFailure, format_arguments

if TYPE_CHECKING:
    from shmock.expectation import CallExpectation
    from shmock.history import CallHistory
    from shmock.registry import ExpectationRegistry, OrderEnforcer

logger = logging.getLogger(__name__)


class Invocation:
    """State shared by every layer handling one call."""

    def __init__(
        self,
        target: Any,
        method_name: str,
        arguments: list[Any],
        kwargs: dict[str, Any],
        original: Callable[..., Any] | None,
    ) -> None:
        self.target = target
        self.method_name = method_name
        self.arguments = list(arguments)
        self.kwargs = dict(kwargs)
        self.original = original
        self.expectation: CallExpectation | None = None


class JoinPoint:
    """A single invocation of a method, as seen by one layer of the chain.

    The target is the mock instance, or the mock class for static and class
    methods. ``execute()`` may not run the method directly; it may hand the
    call to the next layer instead.
    """

    def __init__(self, invocation: Invocation, next_point: JoinPoint | None = None) -> None:
        self._invocation = invocation
        self._next = next_point

    @property
    def target(self) -> Any:
        return self._invocation.target

    @property
    def method_name(self) -> str:
        return self._invocation.method_name

    @property
    def arguments(self) -> list[Any]:
        """Arguments currently slated for the underlying method. Mutable."""
        return self._invocation.arguments

    @arguments.setter
    def arguments(self, new_arguments: list[Any]) -> None:
        self._invocation.arguments = list(new_arguments)

    def set_arguments(self, new_arguments: list[Any]) -> None:
        self.arguments = new_arguments

    @property
    def kwargs(self) -> dict[str, Any]:
        return self._invocation.kwargs

    @property
    def parameters(self) -> list[Any]:
        return self._invocation.arguments

    @property
    def expectation(self) -> CallExpectation | None:
        return self._invocation.expectation

    def call_original(self) -> Any:
        """Invoke the real method with the current arguments."""
        original = self._invocation.original
        if original is None:
            raise MockUsageError(
                f"{self.method_name}() has no original implementation to call"
            )
        return original(*self.arguments, **self.kwargs)

    def execute(self) -> Any:
        assert self._next is not None, "Terminal JoinPoint must override execute()"
        return self._next.execute()


class OrderCheckJoinPoint(JoinPoint):
    def __init__(
        self,
        invocation: Invocation,
        next_point: JoinPoint,
        registry: ExpectationRegistry,
        enforcer: OrderEnforcer,
        history: CallHistory,
    ) -> None:
        super().__init__(invocation, next_point)
        self._registry = registry
        self._enforcer = enforcer
        self._history = history

    def execute(self) -> Any:
        eligible = self._registry.resolve(
            self.method_name, self.arguments, self.kwargs, self._enforcer.allows
        )
        candidate = self._registry.resolve(self.method_name, self.arguments, self.kwargs)
        if eligible is None and candidate is not None:
            blocking = self._enforcer.blocking(candidate)
            raise ResolutionFailure(
                self.method_name,
                self.arguments,
                self.kwargs,
                f"called out of order (expectation #{candidate.position}, "
                f"sequence is at #{self._enforcer.position})",
                blocking or [candidate],
                self._history.all_calls,
            )
        try:
            return super().execute()
        finally:
            if self._invocation.expectation is not None:
                self._enforcer.advance(self._invocation.expectation)


class ResolutionJoinPoint(JoinPoint):
    def __init__(
        self,
        invocation: Invocation,
        next_point: JoinPoint,
        registry: ExpectationRegistry,
        history: CallHistory,
        allowed: Callable[[CallExpectation], bool] | None = None,
    ) -> None:
        super().__init__(invocation, next_point)
        self._registry = registry
        self._history = history
        self._allowed = allowed

    def execute(self) -> Any:
        if not self._registry.declares(self.method_name):
            return super().execute()

        expectation = self._registry.resolve(
            self.method_name, self.arguments, self.kwargs, self._allowed
        )
        if expectation is None:
            raise resolution_failure(self._registry, self._history, self._invocation)
        self._invocation.expectation = expectation
        return super().execute()


class CountingJoinPoint(JoinPoint):
    def __init__(
        self,
        invocation: Invocation,
        next_point: JoinPoint,
        registry: ExpectationRegistry,
        history: CallHistory,
        allowed: Callable[[CallExpectation], bool] | None = None,
    ) -> None:
        super().__init__(invocation, next_point)
        self._registry = registry
        self._history = history
        self._allowed = allowed

    def execute(self) -> Any:
        expectation = self._invocation.expectation
        if expectation is None:
            return super().execute()

        # A re-entrant call may have filled the expectation since resolution.
        while not expectation.record_call():
            expectation = self._registry.resolve(
                self.method_name, self.arguments, self.kwargs, self._allowed
            )
            if expectation is None:
                self._invocation.expectation = None
                raise resolution_failure(self._registry, self._history, self._invocation)
        self._invocation.expectation = expectation
        self._history.record(self.method_name, self.arguments, self.kwargs, expectation)
        return super().execute()


class ResponseJoinPoint(JoinPoint):
    def execute(self) -> Any:
        expectation = self._invocation.expectation
        if expectation is None:
            return super().execute()
        return expectation.response.respond(self)


class FallbackJoinPoint(JoinPoint):
    def __init__(
        self, invocation: Invocation, preserve_original: bool, history: CallHistory
    ) -> None:
        super().__init__(invocation)
        self._preserve_original = preserve_original
        self._history = history

    def execute(self) -> Any:
        self._history.record(self.method_name, self.arguments, self.kwargs)
        if self._preserve_original and self._invocation.original is not None:
            return self.call_original()
        return None


def resolution_failure(
    registry: ExpectationRegistry, history: CallHistory, invocation: Invocation
) -> ResolutionFailure:
    name, args, kwargs = invocation.method_name, invocation.arguments, invocation.kwargs
    if registry.has_unanswerable_match(name, args, kwargs):
        reason = "no row of the return value map matches these arguments"
    elif registry.has_exhausted_match(name, args, kwargs):
        reason = "all matching expectations have reached their maximum call count"
    else:
        reason = "no expectation matches these arguments"
    return ResolutionFailure(
        name, args, kwargs, reason, registry.for_method(name), history.all_calls
    )


class InvocationChain:
    """Builds and runs the JoinPoint stack for each call routed into a mock."""

    def __init__(
        self,
        registry: ExpectationRegistry,
        history: CallHistory,
        enforcer: OrderEnforcer | None = None,
        preserve_original: bool = True,
        debug: bool = False,
    ) -> None:
        self.registry = registry
        self.history = history
        self.enforcer = enforcer
        self.preserve_original = preserve_original
        self.replaying = False
        self._debug = debug

    def build(self, invocation: Invocation) -> JoinPoint:
        point: JoinPoint = FallbackJoinPoint(invocation, self.preserve_original, self.history)
        point = ResponseJoinPoint(invocation, point)
        allowed = self.enforcer.allows if self.enforcer is not None else None
        point = CountingJoinPoint(invocation, point, self.registry, self.history, allowed)
        point = ResolutionJoinPoint(invocation, point, self.registry, self.history, allowed)
        if self.enforcer is not None:
            point = OrderCheckJoinPoint(
                invocation, point, self.registry, self.enforcer, self.history
            )
        return point

    def intercept(
        self,
        target: Any,
        method_name: str,
        arguments: list[Any],
        kwargs: dict[str, Any] | None = None,
        original: Callable[..., Any] | None = None,
    ) -> Any:
        if not self.replaying:
            raise MockUsageError(
                f"{method_name}() called on a mock that is still recording; "
                f"call replay() first"
            )
        invocation = Invocation(target, method_name, arguments, kwargs or {}, original)
        if self._debug:
            logger.debug(
                "SHMOCK ← %s%s", method_name, format_arguments(arguments, kwargs or {})
            )
        result = self.build(invocation).execute()
        if self._debug:
            matched = invocation.expectation
            logger.debug(
                "SHMOCK → %s: %s -> %r",
                method_name,
                matched.describe() if matched else "unmocked",
                result,
            )
        return result
