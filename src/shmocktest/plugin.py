from collections.abc import Generator

import pytest

from shmock.session import Session


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("shmock")
    group.addoption(
        "--shmock-no-preserve",
        action="store_true",
        default=False,
        help="Unmocked methods return None instead of calling the real method.",
    )
    group.addoption(
        "--shmock-debug",
        action="store_true",
        default=False,
        help="Log every intercepted mock call.",
    )


@pytest.fixture
def shmock(request: pytest.FixtureRequest) -> Generator[Session, None, None]:
    """A Session whose mocks are verified when the test finishes.

    Usage:

        def test_total(shmock):
            calc = shmock.mock(Calculator, lambda c: c.multiply(2, 2).return_value(4))
            assert Invoice(calc).total() == 4
    """
    preserve = False if request.config.getoption("--shmock-no-preserve") else None
    debug = request.config.getoption("--shmock-debug")

    session = Session(preserve_original_methods=preserve, debug=debug)

    yield session

    # A failed body already reports its own error; unmet expectations would be noise.
    if hasattr(request.node, "rep_call") and request.node.rep_call.failed:
        print("\n--- shmock summary ---")
        session.print_summary()
        return
    session.verify()


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item,
    call: pytest.CallInfo,  # noqa: ARG001
) -> Generator[None, None, None]:
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)
