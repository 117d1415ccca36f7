"""
Tests for the condition tree model.

These tests verify:
    - Simple and compound conditions can be created
    - Condition trees are immutable
    - Unknown operators are kept rather than rejected
    - The UNDEFINED marker behaves as a singleton distinct from None
"""

import copy
import pickle

import pytest
from surveyflow.conditions import (
    UNDEFINED,
    ComparisonOperator,
    CompoundCondition,
    Condition,
    LogicalOperator,
    SimpleCondition,
    all_of,
    any_of,
)


class TestSimpleCondition:
    """Test leaf conditions."""

    def test_create_simple_condition(self):
        """Should store question id, operator and value."""
        cond = SimpleCondition("q1", ComparisonOperator.EQUALS, "No")
        assert cond.question_id == "q1"
        assert cond.operator is ComparisonOperator.EQUALS
        assert cond.value == "No"

    def test_value_defaults_to_undefined(self):
        """is_empty style conditions omit the value."""
        cond = SimpleCondition("q1", ComparisonOperator.IS_EMPTY)
        assert cond.value is UNDEFINED

    def test_simple_condition_is_condition(self):
        cond = SimpleCondition("q1", ComparisonOperator.EQUALS, 1)
        assert isinstance(cond, Condition)

    def test_simple_condition_immutable(self):
        """Conditions are rebuilt on edit, never mutated."""
        cond = SimpleCondition("q1", ComparisonOperator.EQUALS, 1)
        with pytest.raises(AttributeError):
            cond.value = 2

    def test_unknown_operator_kept_raw(self):
        cond = SimpleCondition("q1", ComparisonOperator.parse("sounds_like"), "x")
        assert cond.operator == "sounds_like"
        assert not cond.is_known_operator

    def test_known_operator_parsed(self):
        assert ComparisonOperator.parse("in_list") is ComparisonOperator.IN_LIST


class TestCompoundCondition:
    """Test AND/OR groups."""

    def test_and_group(self):
        left = SimpleCondition("q1", ComparisonOperator.EQUALS, "a")
        right = SimpleCondition("q2", ComparisonOperator.EQUALS, "b")
        group = CompoundCondition(LogicalOperator.AND, (left, right))
        assert group.combinator is LogicalOperator.AND
        assert group.conditions == (left, right)

    def test_list_children_stored_as_tuple(self):
        child = SimpleCondition("q1", ComparisonOperator.IS_EMPTY)
        group = CompoundCondition(LogicalOperator.OR, [child])
        assert isinstance(group.conditions, tuple)

    def test_nested_groups(self):
        inner = any_of(
            SimpleCondition("q1", ComparisonOperator.EQUALS, 1),
            SimpleCondition("q1", ComparisonOperator.EQUALS, 2),
        )
        outer = all_of(inner, SimpleCondition("q2", ComparisonOperator.IS_NOT_EMPTY))
        assert outer.combinator is LogicalOperator.AND
        assert outer.conditions[0].combinator is LogicalOperator.OR

    def test_compound_immutable(self):
        group = all_of()
        with pytest.raises(AttributeError):
            group.combinator = LogicalOperator.OR


class TestUndefined:
    def test_is_falsy_and_not_none(self):
        assert not UNDEFINED
        assert UNDEFINED is not None

    def test_singleton_survives_copy_and_pickle(self):
        assert copy.deepcopy(UNDEFINED) is UNDEFINED
        assert pickle.loads(pickle.dumps(UNDEFINED)) is UNDEFINED

    def test_repr(self):
        assert repr(UNDEFINED) == "UNDEFINED"
