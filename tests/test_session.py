import pytest

from collaborators import Calculator, ClassToMockStatically
from shmock import Session, VerificationFailure


def test_session_verifies_every_mock_on_clean_exit():
    with pytest.raises(VerificationFailure) as excinfo:
        with Session() as s:
            s.mock(Calculator, lambda c: c.add(1, 1).return_value(2))
            s.mock_class(ClassToMockStatically, lambda c: c.get_an_int().return_value(3))

    assert len(excinfo.value.unsatisfied) == 2


def test_session_passes_when_expectations_are_met():
    with Session() as s:
        calc = s.mock(Calculator, lambda c: c.add(1, 1).return_value(2))
        static = s.mock_class(ClassToMockStatically, lambda c: c.get_an_int().any())

        assert calc.add(1, 1) == 2
        assert static.get_an_int() is None


def test_session_skips_verification_when_the_body_raised():
    with pytest.raises(KeyError):
        with Session() as s:
            s.mock(Calculator, lambda c: c.add(1, 1).return_value(2))
            raise KeyError("body failed")


def test_verify_runs_once():
    s = Session()
    s.mock(Calculator, lambda c: c.add(1, 1))

    with pytest.raises(VerificationFailure):
        s.verify()
    s.verify()


def test_controllers_can_be_replayed_manually():
    s = Session()
    controller = s.controller(Calculator)
    controller.add(2, 2).return_value(5)
    calc = controller.replay()

    assert calc.add(2, 2) == 5
    assert s.controllers == [controller]
    s.verify()


def test_class_controllers_replay_to_a_class():
    s = Session()
    controller = s.class_controller(ClassToMockStatically)

    assert isinstance(controller.replay(), type)


def test_preservation_default_read_from_environment(monkeypatch):
    monkeypatch.setenv("SHMOCK_PRESERVE_ORIGINALS", "0")
    s = Session()

    calc = s.mock(Calculator)

    assert not s.preserve_original_methods
    assert calc.add(1, 1) is None


def test_explicit_preservation_overrides_environment(monkeypatch):
    monkeypatch.setenv("SHMOCK_PRESERVE_ORIGINALS", "0")
    s = Session(preserve_original_methods=True)

    assert s.mock(Calculator).add(1, 1) == 2


def test_debug_read_from_environment(monkeypatch):
    monkeypatch.setenv("SHMOCK_DEBUG", "1")

    assert Session().debug
    monkeypatch.delenv("SHMOCK_DEBUG")
    assert not Session().debug


def test_summary_lists_expectations_and_calls(capsys):
    s = Session()
    calc = s.mock(Calculator, lambda c: c.add(1, 1).return_value(2))
    calc.add(1, 1)
    calc.multiply(3, 3)

    s.print_summary()
    out = capsys.readouterr().out

    assert "Calculator:" in out
    assert "expect add(1, 1) exactly 1x" in out
    assert "[exhausted]" in out
    assert "call   multiply(3, 3) [unmocked]" in out
