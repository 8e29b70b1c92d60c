import pytest

COLLABORATOR = """
class Mailer:
    def send(self, to, body):
        raise RuntimeError("real mail sent")

    def ping(self):
        return "pong"
"""


@pytest.fixture
def mailer_module(pytester: pytest.Pytester) -> None:
    pytester.makepyfile(mailer=COLLABORATOR)


def test_fixture_verifies_after_a_passing_test(pytester, mailer_module):
    pytester.makepyfile(
        """
        from mailer import Mailer

        def test_sends(shmock):
            mailer = shmock.mock(Mailer, lambda c: c.send("bob", "hi").return_value(True))
            assert mailer.send("bob", "hi") is True
        """
    )

    result = pytester.runpytest()

    result.assert_outcomes(passed=1)


def test_unmet_expectations_error_at_teardown(pytester, mailer_module):
    pytester.makepyfile(
        """
        from mailer import Mailer

        def test_forgets_to_send(shmock):
            shmock.mock(Mailer, lambda c: c.send("bob", "hi").return_value(True))
        """
    )

    result = pytester.runpytest()

    result.assert_outcomes(passed=1, errors=1)
    result.stdout.fnmatch_lines(["*VerificationFailure*", "*send('bob', 'hi')*"])


def test_failed_test_prints_summary_instead_of_verifying(pytester, mailer_module):
    pytester.makepyfile(
        """
        from mailer import Mailer

        def test_fails(shmock):
            shmock.mock(Mailer, lambda c: c.send("bob", "hi").return_value(True))
            assert False
        """
    )

    result = pytester.runpytest("-s")

    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines(["*shmock summary*"])
    assert "VerificationFailure" not in result.stdout.str()


def test_no_preserve_option(pytester, mailer_module):
    pytester.makepyfile(
        """
        from mailer import Mailer

        def test_ping(shmock):
            assert shmock.mock(Mailer).ping() is None
        """
    )

    result = pytester.runpytest("--shmock-no-preserve")

    result.assert_outcomes(passed=1)


def test_debug_option(pytester, mailer_module):
    pytester.makepyfile(
        """
        from mailer import Mailer

        def test_ping(shmock):
            assert shmock.debug
            assert shmock.mock(Mailer).ping() == "pong"
        """
    )

    result = pytester.runpytest("--shmock-debug")

    result.assert_outcomes(passed=1)
