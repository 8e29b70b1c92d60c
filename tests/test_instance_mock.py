from __future__ import annotations

import pytest

from collaborators import Calculator, Repository, RequiresArguments
from shmock import (
    ANY,
    MockController,
    MockUsageError,
    ResolutionFailure,
    VerificationFailure,
    create,
    create_class,
)


def test_instance_mock_is_an_instance_of_the_target():
    calc = create(Calculator)

    assert isinstance(calc, Calculator)
    assert calc.precision == 2


def test_return_this_answers_with_the_instance():
    calc = create(Calculator, lambda c: c.add(1, 1).return_this())

    assert calc.add(1, 1) is calc


def test_unmocked_instance_methods_call_through():
    calc = create(Calculator, lambda c: c.add(1, 1).return_value(3))

    assert calc.add(1, 1) == 3
    assert calc.multiply(2, 5) == 10


def test_keyword_arguments_are_matched_positionally():
    controller = MockController(Calculator)
    controller.divide(10, 2).return_value(5)
    calc = controller.replay()

    assert calc.divide(a=10, b=2) == 5
    controller.verify()


def test_keyword_constraints_match_by_name():
    controller = MockController(Calculator)
    controller.divide(ANY, ANY, rounding="up").any().return_value(4)
    calc = controller.replay()

    assert calc.divide(7, 2, rounding="up") == 4
    with pytest.raises(ResolutionFailure):
        calc.divide(7, 2)
    with pytest.raises(ResolutionFailure):
        calc.divide(7, 2, rounding="down")


def test_constructor_arguments_are_passed_to_the_original_constructor():
    controller = MockController(RequiresArguments)
    controller.set_constructor_arguments("world")
    mock = controller.replay()

    assert mock.greet() == "hello world"


def test_original_constructor_can_be_disabled():
    controller = MockController(RequiresArguments)
    controller.disable_original_constructor()
    controller.greet().return_value("hi")
    mock = controller.replay()

    assert not hasattr(mock, "name")
    assert mock.greet() == "hi"


def test_abstract_interfaces_can_be_mocked():
    repo = create(Repository, lambda c: c.load("k").return_value("v"))

    assert isinstance(repo, Repository)
    assert repo.load("k") == "v"
    assert repo.save("k", 1) is None


def test_create_class_returns_the_synthesized_class():
    cls = create_class(Calculator)

    assert issubclass(cls, Calculator)
    assert cls is not Calculator


@pytest.mark.asyncio
async def test_coroutine_methods_stay_awaitable():
    calc = create(Calculator, lambda c: c.fetch_rate("EUR").return_value(1.1))

    assert await calc.fetch_rate("EUR") == 1.1


@pytest.mark.asyncio
async def test_unmocked_coroutine_methods_await_the_original():
    calc = create(Calculator)

    assert await calc.fetch_rate("USD") == 1.0


def test_each_mock_gets_its_own_registry():
    first = MockController(Calculator)
    first.add(1, 1).return_value(100)
    second = MockController(Calculator)
    second.add(1, 1).return_value(200)

    a, b = first.replay(), second.replay()

    assert a.add(1, 1) == 100
    assert b.add(1, 1) == 200
    assert type(a) is not type(b)


def test_recursive_calls_reenter_the_chain():
    controller = MockController(Calculator)
    controller.add(1, 1).will(lambda jp: jp.target.multiply(2, 3) + 1)
    controller.multiply(2, 3).return_value(6)
    calc = controller.replay()

    assert calc.add(1, 1) == 7
    controller.verify()


def test_history_records_matched_and_unmocked_calls():
    controller = MockController(Calculator)
    controller.add(1, 2).return_value(3)
    calc = controller.replay()

    calc.add(1, 2)
    calc.multiply(2, 2)

    assert controller.history.called_order() == ["add", "multiply"]
    assert [c.fell_through for c in controller.history.all_calls] == [False, True]
    controller.history.assert_call_order("add", "multiply")


# ------------------------------------------------------------------ #
# Lifecycle misuse                                                    #
# ------------------------------------------------------------------ #


def test_expect_after_replay_is_rejected():
    controller = MockController(Calculator)
    controller.replay()

    with pytest.raises(MockUsageError):
        controller.add(1, 1)


def test_configuring_a_builder_after_replay_is_rejected():
    controller = MockController(Calculator)
    builder = controller.add(1, 1)
    controller.replay()

    with pytest.raises(MockUsageError):
        builder.times(2)


def test_replay_twice_is_rejected():
    controller = MockController(Calculator)
    controller.replay()

    with pytest.raises(MockUsageError, match="already called"):
        controller.replay()


def test_mock_level_configuration_after_replay_is_rejected():
    controller = MockController(Calculator)
    controller.replay()

    with pytest.raises(MockUsageError):
        controller.order_matters()
    with pytest.raises(MockUsageError):
        controller.dont_preserve_original_methods()


def test_calls_cannot_be_routed_while_recording():
    controller = MockController(Calculator)

    with pytest.raises(MockUsageError, match="still recording"):
        controller.chain.intercept(None, "add", [1, 1])


def test_unknown_methods_cannot_be_expected():
    controller = MockController(Calculator)

    with pytest.raises(MockUsageError, match="no public method"):
        controller.subtract(1, 1)


def test_only_classes_can_be_mocked():
    with pytest.raises(MockUsageError):
        MockController(Calculator())


def test_verification_failure_lists_every_unmet_expectation():
    controller = MockController(Calculator)
    controller.add(1, 1).return_value(2)
    controller.multiply(ANY, ANY).times(2).return_value(0)
    calc = controller.replay()
    calc.multiply(1, 1)

    with pytest.raises(VerificationFailure) as excinfo:
        controller.verify()

    assert len(excinfo.value.unsatisfied) == 2
    message = str(excinfo.value)
    assert "add(1, 1)" in message
    assert "got 1" in message
    assert "multiply(1, 1)" in message


def test_methods_named_like_controller_members_are_declared_through_expect():
    class Validator:
        def verify(self, document: str) -> bool:
            raise RuntimeError("real validation")

    controller = MockController(Validator)
    controller.expect("verify", "doc").return_value(True)
    validator = controller.replay()

    assert validator.verify("doc") is True
    controller.verify()


def test_return_value_map_rows_ignore_keyword_only_arguments():
    controller = MockController(Calculator)
    controller.divide().any().return_value_map([[1, 2, 0.25], [ANY, ANY, 0.0]])
    calc = controller.replay()

    assert calc.divide(1, 2, rounding="up") == 0.25
    assert calc.divide(b=2, a=1) == 0.25
    assert calc.divide(3, 4, rounding="down") == 0.0
