"""
Condition System for Survey Flow

Every visibility or branching rule carries a condition tree.
Conditions are Abstract Syntax Trees built from two node kinds:

    - SimpleCondition: compares one question's answer with a value
    - CompoundCondition: combines child conditions with AND / OR

ARCHITECTURAL RULE:
    A condition tree is structure only.
    Evaluation lives in surveyflow.evaluator.
    Cross-question dependencies live in surveyflow.dependencies.

A condition tree never references itself. The cross-question graph
(which CAN contain cycles) is a separate, derived structure.
"""

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union


class _Undefined:
    """
    Marker for "no value at all".

    Distinct from None, which is an explicit null answer.
    Used when an answer key is absent from the response values
    or when a condition omits its comparison value.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self):
        return "UNDEFINED"


UNDEFINED = _Undefined()


class Condition(ABC):
    """
    Base class for condition tree nodes.

    DO NOT:
        - Add evaluation logic here (belongs in evaluator)
        - Add dependency walking here (belongs in dependencies)
    """
    pass


class ComparisonOperator(Enum):
    """
    Comparison operators available to survey authors.

    The string values are the stored wire names.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    IN_LIST = "in_list"
    NOT_IN_LIST = "not_in_list"

    @classmethod
    def parse(cls, name: str) -> Union["ComparisonOperator", str]:
        """Return the matching member, or the raw name if it is not recognised."""
        try:
            return cls(name)
        except ValueError:
            return name


# Operators that ignore the comparison value
VALUELESS_OPERATORS = frozenset({
    ComparisonOperator.IS_EMPTY,
    ComparisonOperator.IS_NOT_EMPTY,
})

# Operators whose comparison value must be a list
LIST_OPERATORS = frozenset({
    ComparisonOperator.IN_LIST,
    ComparisonOperator.NOT_IN_LIST,
})


class LogicalOperator(Enum):
    """Combinators for compound conditions."""

    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class SimpleCondition(Condition):
    """
    Leaf condition: compare the answer to one question against a value.

    Example:
        q1 equals "No"

    Becomes:
        SimpleCondition(
            question_id="q1",
            operator=ComparisonOperator.EQUALS,
            value="No",
        )

    Properties:
        question_id: Question whose answer is read
        operator: ComparisonOperator, or the raw name of an operator
            this engine does not know (such conditions never match)
        value: Comparison value; UNDEFINED when omitted
            (is_empty / is_not_empty need none)
    """

    question_id: str
    operator: Union[ComparisonOperator, str]
    value: Any = UNDEFINED

    @property
    def is_known_operator(self) -> bool:
        return isinstance(self.operator, ComparisonOperator)


@dataclass(frozen=True)
class CompoundCondition(Condition):
    """
    Internal node combining child conditions.

    Example:
        (age >= 18 AND country in_list ["UK", "IE"])

    Becomes:
        CompoundCondition(
            combinator=LogicalOperator.AND,
            conditions=(
                SimpleCondition("age", ComparisonOperator.GREATER_THAN_OR_EQUAL, 18),
                SimpleCondition("country", ComparisonOperator.IN_LIST, ["UK", "IE"]),
            ),
        )

    IMPORTANT:
        conditions should never be empty once a survey has been validated.
        An empty AND is vacuously true, an empty OR is false.
    """

    combinator: LogicalOperator
    conditions: Tuple[Condition, ...] = ()

    def __post_init__(self):
        # Accept any iterable of children but store an immutable tuple
        if not isinstance(self.conditions, tuple):
            object.__setattr__(self, "conditions", tuple(self.conditions))


def all_of(*conditions: Condition) -> CompoundCondition:
    """Shorthand for an AND compound."""
    return CompoundCondition(LogicalOperator.AND, conditions)


def any_of(*conditions: Condition) -> CompoundCondition:
    """Shorthand for an OR compound."""
    return CompoundCondition(LogicalOperator.OR, conditions)
