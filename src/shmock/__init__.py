from shmock.controller import MockController, create, create_class
from shmock.errors import (
    MockExpectationFailure,
    MockUsageError,
    ResolutionFailure,
    VerificationFailure,
)
from shmock.expectation import CallExpectation, CallExpectationBuilder, ExpectationState, Frequency
from shmock.joinpoint import InvocationChain, JoinPoint
from shmock.matchers import (
    ANY,
    anything,
    contains,
    equal_to,
    greater_than,
    identical_to,
    is_type,
    less_than,
    satisfies,
)
from shmock.session import Session

__all__ = [
    "ANY",
    "CallExpectation",
    "CallExpectationBuilder",
    "ExpectationState",
    "Frequency",
    "InvocationChain",
    "JoinPoint",
    "MockController",
    "MockExpectationFailure",
    "MockUsageError",
    "ResolutionFailure",
    "Session",
    "VerificationFailure",
    "anything",
    "contains",
    "create",
    "create_class",
    "equal_to",
    "greater_than",
    "identical_to",
    "is_type",
    "less_than",
    "satisfies",
]
