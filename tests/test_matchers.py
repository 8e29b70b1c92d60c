from collections import OrderedDict

import pytest

from shmock.matchers import (
    ANY,
    contains,
    equal_to,
    greater_than,
    identical_to,
    is_predicate,
    is_type,
    less_than,
    loose_equals,
    matches,
    satisfies,
)


@pytest.mark.parametrize(
    "expected, actual",
    [
        ("1", 1),
        (1, 1.0),
        ("2", 2.0),
        ("1.5", 1.5),
        ("01", "1"),
        (" 3 ", 3),
        ("1e2", 100),
        ([2, 2], [2, 2]),
        ((1, "2"), [1, 2]),
        ({"a": "1"}, {"a": 1}),
        ({"a": [1, {"b": "2"}]}, {"a": [1, {"b": 2}]}),
        (OrderedDict(x=1), {"x": 1}),
        ("abc", "abc"),
        (None, None),
    ],
)
def test_loose_equality_matches(expected, actual):
    assert loose_equals(expected, actual)


@pytest.mark.parametrize(
    "expected, actual",
    [
        ("1", 2),
        ("abc", 0),
        ("one", "1"),
        (None, 0),
        (0, None),
        ([2, 2], [2, 3]),
        ([2, 2], [2, 2, 2]),
        ({"a": 1}, {"a": 1, "b": 2}),
        ({"a": 1}, {"b": 1}),
        ("nan", float("nan")),
        ([1], "1"),
    ],
)
def test_loose_equality_rejects(expected, actual):
    assert not loose_equals(expected, actual)


def test_more_constraints_than_arguments_never_matches():
    assert not matches([1, 2], [1])


def test_extra_arguments_are_ignored_by_default():
    assert matches([1], [1, 2, 3])
    assert not matches([1], [1, 2, 3], allow_extra_arguments=False)


def test_no_constraints_match_any_call():
    assert matches([], [])
    assert matches([], ["anything", 42])


def test_unconstrained_slots_always_match():
    assert matches([ANY, 2], [object(), 2])


def test_first_failing_position_short_circuits():
    seen = []

    def record(value):
        seen.append(value)
        return True

    assert not matches([1, satisfies(record)], [2, 3])
    assert seen == []


def test_keyword_constraints():
    assert matches([], [], {"timeout": "5"}, {"timeout": 5, "retries": 1})
    assert not matches([], [], {"timeout": 5}, {})
    assert not matches([], [], {"timeout": 5}, {"timeout": 6})


def test_predicates_are_authoritative():
    class AlwaysNo:
        def test(self, value):
            return False

    assert is_predicate(AlwaysNo())
    assert not matches([AlwaysNo()], [1])


def test_classes_are_literals_not_predicates():
    class HasTest:
        def test(self, value):
            return True

    assert not is_predicate(HasTest)
    assert matches([HasTest], [HasTest])
    assert not matches([HasTest], [HasTest()])


def test_is_type_by_name_and_by_class():
    assert is_type("integer").test(3)
    assert not is_type("integer").test(3.0)
    assert not is_type("integer").test(True)
    assert is_type("string").test("x")
    assert is_type("array").test([1])
    assert is_type("null").test(None)
    assert is_type("callable").test(len)
    assert is_type(float).test(1.0)
    with pytest.raises(ValueError):
        is_type("quaternion").test(1)


def test_comparison_predicates():
    assert greater_than(2).test(3)
    assert not greater_than(2).test(2)
    assert not greater_than(2).test("abc")
    assert less_than(2).test(1)
    assert contains("b").test("abc")
    assert not contains("z").test(["a"])


def test_strict_predicates_skip_coercion():
    assert not equal_to(1).test("1")
    assert equal_to(1).test(1)
    marker = object()
    assert identical_to(marker).test(marker)
    assert not identical_to([1]).test([1])


def test_predicates_have_readable_reprs():
    assert repr(greater_than(2)) == "greater_than(2)"
    assert repr(is_type("integer")) == "is_type(integer)"
    assert repr(ANY) == "ANY"
