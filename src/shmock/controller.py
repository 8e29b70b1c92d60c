from __future__ import annotations

import functools
import logging
from typing import Any, Callable

from shmock.errors import MockUsageError, VerificationFailure
from shmock.expectation import CallExpectation, CallExpectationBuilder
from shmock.history import CallHistory
from shmock.joinpoint import InvocationChain
from shmock.registry import ExpectationRegistry, OrderEnforcer
from shmock.synthesizer import instantiate, interceptable, synthesize

logger = logging.getLogger(__name__)


class MockController:
    """Records expectations for one target class, then replays them.

    Declare expectations while recording, either explicitly or through
    attribute sugar, then call ``replay()`` to obtain the substitute:

        controller = MockController(Calculator)
        controller.multiply(2, 2).return_value(4)
        controller.expect("reset").never()
        calculator = controller.replay()

    Attribute sugar only reaches names the controller does not define itself.
    Target methods called ``expect``, ``replay``, ``verify``, ``nested``,
    ``mock``, ``target``, ``chain``, ``history`` (or any other controller
    member) must be declared through ``expect``:

        controller.expect("verify", ANY).return_value(True)

    Args:
        target:                    The class to substitute.
        static:                    If True, ``replay()`` returns the synthesized
                                   class itself instead of an instance.
        preserve_original_methods: Unmocked methods call the real implementation.
        debug:                     Log every interception at debug level.
    """

    def __init__(
        self,
        target: type,
        static: bool = False,
        preserve_original_methods: bool = True,
        debug: bool = False,
    ) -> None:
        if not isinstance(target, type):
            raise MockUsageError(f"Can only mock classes, got {target!r}")
        self._target = target
        self._static = static
        self._debug = debug
        self._methods = interceptable(target)
        self._registry = ExpectationRegistry()
        self._history = CallHistory()
        self._chain = InvocationChain(
            self._registry,
            self._history,
            preserve_original=preserve_original_methods,
            debug=debug,
        )
        self._ordering = False
        self._constructor_args: tuple[Any, ...] = ()
        self._constructor_kwargs: dict[str, Any] = {}
        self._call_constructor = True
        self._children: list[MockController] = []
        self._mock: Any = None

    def __getattr__(self, name: str) -> Callable[..., CallExpectationBuilder]:
        if name.startswith("_"):
            raise AttributeError(name)
        return functools.partial(self.expect, name)

    def __repr__(self) -> str:
        state = "replaying" if self.replaying else "recording"
        return f"<MockController {self._target.__name__} {state}>"

    # ------------------------------------------------------------------ #
    # Recording                                                           #
    # ------------------------------------------------------------------ #

    def _ensure_recording(self) -> None:
        if self.replaying:
            raise MockUsageError(
                f"Mock of {self._target.__name__} is already replaying; "
                f"expectations must be declared before replay()"
            )

    def expect(self, method_name: str, *constraints: Any, **kw_constraints: Any) -> CallExpectationBuilder:
        """Declare that ``method_name`` will be called with matching arguments."""
        self._ensure_recording()
        if method_name not in self._methods:
            raise MockUsageError(
                f"{self._target.__name__} has no public method {method_name!r} to mock"
            )
        expectation = CallExpectation(method_name, tuple(constraints), dict(kw_constraints))
        if self._ordering:
            assert self._chain.enforcer is not None
            self._chain.enforcer.assign(expectation)
        self._registry.add(expectation)
        return CallExpectationBuilder(expectation, self)

    def order_matters(self) -> MockController:
        """Expectations declared from now on must be satisfied in declaration order."""
        self._ensure_recording()
        if self._chain.enforcer is None:
            self._chain.enforcer = OrderEnforcer()
        self._ordering = True
        return self

    def order_doesnt_matter(self) -> MockController:
        self._ensure_recording()
        self._ordering = False
        return self

    def dont_preserve_original_methods(self) -> MockController:
        """Unmocked methods return None instead of running the real method."""
        self._ensure_recording()
        self._chain.preserve_original = False
        return self

    def preserve_original_methods(self) -> MockController:
        self._ensure_recording()
        self._chain.preserve_original = True
        return self

    def set_constructor_arguments(self, *args: Any, **kwargs: Any) -> MockController:
        self._ensure_recording()
        self._constructor_args = args
        self._constructor_kwargs = kwargs
        return self

    def disable_original_constructor(self) -> MockController:
        self._ensure_recording()
        self._call_constructor = False
        return self

    def nested(self, target: type, setup: Callable[[MockController], None] | None = None) -> Any:
        """Build, configure and replay a child mock verified along with this one."""
        child = MockController(
            target,
            preserve_original_methods=self._chain.preserve_original,
            debug=self._debug,
        )
        if setup is not None:
            setup(child)
        self._children.append(child)
        return child.replay()

    # ------------------------------------------------------------------ #
    # Replay                                                              #
    # ------------------------------------------------------------------ #

    def replay(self) -> Any:
        """Stop recording and return the substitute class or instance."""
        if self.replaying:
            raise MockUsageError(f"replay() already called for {self._target.__name__}")
        self._chain.replaying = True
        cls = synthesize(self._target, self._chain)
        if self._static:
            self._mock = cls
        else:
            self._mock = instantiate(
                cls,
                self._constructor_args,
                self._constructor_kwargs,
                call_constructor=self._call_constructor,
            )
        logger.info(
            "Mock of %s replaying (%d expectation(s))",
            self._target.__name__,
            len(self._registry),
        )
        return self._mock

    @property
    def replaying(self) -> bool:
        return self._chain.replaying

    @property
    def mock(self) -> Any:
        assert self.replaying, "Mock not replaying yet, call replay() first"
        return self._mock

    @property
    def target(self) -> type:
        return self._target

    @property
    def chain(self) -> InvocationChain:
        return self._chain

    @property
    def expectations(self) -> list[CallExpectation]:
        return self._registry.all

    @property
    def history(self) -> CallHistory:
        return self._history

    @property
    def children(self) -> list[MockController]:
        return list(self._children)

    # ------------------------------------------------------------------ #
    # Verification                                                        #
    # ------------------------------------------------------------------ #

    def unsatisfied(self) -> list[CallExpectation]:
        """Expectations below their minimum call count, nested mocks included."""
        result = self._registry.unsatisfied()
        for child in self._children:
            result.extend(child.unsatisfied())
        return result

    def verify(self) -> None:
        unsatisfied = self.unsatisfied()
        if unsatisfied:
            raise VerificationFailure(unsatisfied, self._history.all_calls)


def create(
    target: type,
    setup: Callable[[MockController], None] | None = None,
    **options: Any,
) -> Any:
    """Build an instance mock of ``target``, run ``setup`` on it and replay it.

    The caller is responsible for verification; prefer ``Session.mock`` or
    the ``shmock`` pytest fixture, which verify automatically.
    """
    controller = MockController(target, **options)
    if setup is not None:
        setup(controller)
    return controller.replay()


def create_class(
    target: type,
    setup: Callable[[MockController], None] | None = None,
    **options: Any,
) -> type:
    """Like ``create`` but returns the synthesized class for static mocking."""
    controller = MockController(target, static=True, **options)
    if setup is not None:
        setup(controller)
    return controller.replay()
