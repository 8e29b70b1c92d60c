from __future__ import annotations

import logging
import os
from typing import Any, Callable

from shmock.controller import MockController
from shmock.errors import VerificationFailure

logger = logging.getLogger(__name__)


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name, "").strip()
    if not value:
        return None
    return value not in ("0", "false", "no", "off")


class Session:
    """All mocks belonging to one test.

    The session:
    1. Creates mock controllers with shared defaults.
    2. Keeps every controller it created, nested mocks included.
    3. Verifies all of them at once after the test body.

    Args:
        preserve_original_methods: Default for new mocks. Reads
                                   SHMOCK_PRESERVE_ORIGINALS if not set,
                                   and falls back to True.
        debug:                     Log every interception. Also enabled by
                                   SHMOCK_DEBUG=1.
    """

    def __init__(
        self,
        preserve_original_methods: bool | None = None,
        debug: bool = False,
    ) -> None:
        if preserve_original_methods is None:
            preserve_original_methods = _env_flag("SHMOCK_PRESERVE_ORIGINALS")
        self._preserve = True if preserve_original_methods is None else preserve_original_methods
        self._debug = debug or bool(_env_flag("SHMOCK_DEBUG"))
        self._controllers: list[MockController] = []
        self._verified = False

    def __enter__(self) -> Session:
        return self

    def __exit__(
        self, exc_type: type | None, exc: BaseException | None, tb: object
    ) -> None:
        if exc_type is None:
            self.verify()

    @property
    def preserve_original_methods(self) -> bool:
        return self._preserve

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def controllers(self) -> list[MockController]:
        return list(self._controllers)

    def controller(self, target: type) -> MockController:
        """A recording controller for an instance mock; call replay() yourself."""
        return self._register(MockController(target, **self._options()))

    def class_controller(self, target: type) -> MockController:
        """A recording controller whose replay() returns the mocked class."""
        return self._register(MockController(target, static=True, **self._options()))

    def mock(
        self,
        target: type,
        setup: Callable[[MockController], None] | None = None,
    ) -> Any:
        """Build, set up and replay an instance mock of ``target``.

        Args:
            target: The class to substitute.
            setup:  Called with the controller to declare expectations.
        """
        controller = self.controller(target)
        if setup is not None:
            setup(controller)
        return controller.replay()

    def mock_class(
        self,
        target: type,
        setup: Callable[[MockController], None] | None = None,
    ) -> type:
        controller = self.class_controller(target)
        if setup is not None:
            setup(controller)
        return controller.replay()

    def _options(self) -> dict[str, Any]:
        return {"preserve_original_methods": self._preserve, "debug": self._debug}

    def _register(self, controller: MockController) -> MockController:
        self._controllers.append(controller)
        return controller

    # ------------------------------------------------------------------ #
    # Verification                                                        #
    # ------------------------------------------------------------------ #

    def verify(self) -> None:
        """Raise one VerificationFailure covering every mock of the session."""
        if self._verified:
            return
        self._verified = True
        unsatisfied = []
        calls = []
        for controller in self._controllers:
            unsatisfied.extend(controller.unsatisfied())
            calls.extend(controller.history.all_calls)
        logger.info(
            "Verified %d mock(s): %d unmet expectation(s)",
            len(self._controllers),
            len(unsatisfied),
        )
        if unsatisfied:
            raise VerificationFailure(unsatisfied, calls)

    def summary(self) -> str:
        lines = []
        for controller in self._controllers:
            lines.append(f"{controller.target.__name__}:")
            for e in controller.expectations:
                lines.append(f"  expect {e.describe()} [{e.state.value}]")
            for c in controller.history.all_calls:
                lines.append(f"  call   {c}")
        return "\n".join(lines)

    def print_summary(self) -> None:
        print("\n" + self.summary())
