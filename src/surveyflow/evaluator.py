"""
Survey Flow Evaluator — condition, rule and visibility resolution.

Three layers, each built on the previous one:
    - evaluate_condition: one condition tree against the answers
    - resolve_rules: first matching rule of a question
    - is_question_visible: tri-state rule outcome -> shown or hidden

IMPORTANT: Every function here is total. Malformed or mismatched
comparisons degrade to False; nothing raises. Callers re-run these on
every answer change, so no state is kept between calls.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Iterable, List, Optional, Sequence

from surveyflow.conditions import (
    UNDEFINED,
    ComparisonOperator,
    CompoundCondition,
    Condition,
    LogicalOperator,
    SimpleCondition,
)
from surveyflow.model import ActionType, LogicAction, LogicRule, Question, ResponseValues

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

_NUMBER_TYPES = (int, float)
_SEQUENCE_TYPES = (list, tuple)


# =============================================================================
# VALUE SEMANTICS
# =============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """
    Equality without type coercion.

    - bools only equal bools (True is not 1)
    - numbers compare numerically, NaN equals nothing
    - strings only equal strings
    - lists compare by identity
    - None and UNDEFINED only equal themselves
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return left is right


def _member(items: Iterable[Any], value: Any) -> bool:
    return any(strict_equals(item, value) for item in items)


def to_number(value: Any) -> float:
    """Coerce an operand for relational comparison; non-numeric -> NaN."""
    if _is_number(value):
        try:
            return float(value)
        except OverflowError:
            # int too large for a float
            return math.inf if value > 0 else -math.inf
    if isinstance(value, str):
        text = value.strip()
        if _DECIMAL_RE.match(text):
            return float(text)
    return math.nan


def is_empty(value: Any) -> bool:
    """None, UNDEFINED, '' and empty lists are empty; 0 and False are not."""
    if value is None or value is UNDEFINED:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, _SEQUENCE_TYPES):
        return len(value) == 0
    return False


def display_string(value: Any) -> str:
    """String form used for substring tests."""
    if value is UNDEFINED:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, _SEQUENCE_TYPES):
        return ",".join(display_string(v) for v in value)
    return str(value)


# =============================================================================
# CONDITION EVALUATOR
# =============================================================================

def _evaluate_simple(condition: SimpleCondition, values: ResponseValues) -> bool:
    answer = values.get(condition.question_id, UNDEFINED)
    expected = condition.value
    op = condition.operator

    if op is ComparisonOperator.EQUALS:
        return strict_equals(answer, expected)
    if op is ComparisonOperator.NOT_EQUALS:
        return not strict_equals(answer, expected)

    if op is ComparisonOperator.CONTAINS or op is ComparisonOperator.NOT_CONTAINS:
        if isinstance(answer, str):
            found = display_string(expected) in answer
        elif isinstance(answer, _SEQUENCE_TYPES):
            found = _member(answer, expected)
        else:
            # Neither text nor a selection: nothing can be contained
            return op is ComparisonOperator.NOT_CONTAINS
        return found if op is ComparisonOperator.CONTAINS else not found

    if op is ComparisonOperator.GREATER_THAN:
        return to_number(answer) > to_number(expected)
    if op is ComparisonOperator.LESS_THAN:
        return to_number(answer) < to_number(expected)
    if op is ComparisonOperator.GREATER_THAN_OR_EQUAL:
        return to_number(answer) >= to_number(expected)
    if op is ComparisonOperator.LESS_THAN_OR_EQUAL:
        return to_number(answer) <= to_number(expected)

    if op is ComparisonOperator.IS_EMPTY:
        return is_empty(answer)
    if op is ComparisonOperator.IS_NOT_EMPTY:
        return not is_empty(answer)

    if op is ComparisonOperator.IN_LIST:
        if not isinstance(expected, _SEQUENCE_TYPES):
            return False
        return _member(expected, answer)
    if op is ComparisonOperator.NOT_IN_LIST:
        if not isinstance(expected, _SEQUENCE_TYPES):
            return True
        return not _member(expected, answer)

    logger.debug("Unknown operator %r on %s; condition does not match", op, condition.question_id)
    return False


def evaluate_condition(condition: Condition, values: ResponseValues) -> bool:
    """
    Evaluate a condition tree against the current answers.

    AND needs every child true, OR needs at least one.
    An empty AND is therefore true and an empty OR false.

    Args:
        condition: SimpleCondition or CompoundCondition
        values: questionId -> answer

    Returns:
        True if the condition holds. Never raises.
    """
    if isinstance(condition, CompoundCondition):
        results = (evaluate_condition(child, values) for child in condition.conditions)
        if condition.combinator is LogicalOperator.AND:
            return all(results)
        if condition.combinator is LogicalOperator.OR:
            return any(results)
        logger.debug("Unknown combinator %r; condition does not match", condition.combinator)
        return False

    if isinstance(condition, SimpleCondition):
        return _evaluate_simple(condition, values)

    logger.debug("Unsupported condition node %r; condition does not match", type(condition))
    return False


# =============================================================================
# RULE RESOLVER
# =============================================================================

def resolve_rules(rules: Optional[Sequence[LogicRule]], values: ResponseValues) -> Optional[LogicAction]:
    """
    Return the action of the first rule whose condition holds.

    Rule order is priority. Returns None when nothing matches
    (or there are no rules).
    """
    if not rules:
        return None
    for rule in rules:
        if evaluate_condition(rule.condition, values):
            return rule.action
    return None


# =============================================================================
# VISIBILITY RESOLVER
# =============================================================================

def is_question_visible(question: Question, values: ResponseValues) -> bool:
    """
    Decide whether a question is shown.

    - no rules / no match -> visible
    - show -> visible
    - hide -> hidden
    - jump -> visible (jump only affects sequencing)

    Not transitive: hiding a question does not clear its answer,
    and dependents still see whatever value is present.
    """
    action = resolve_rules(question.logic, values)
    if action is None:
        return True
    return action.type is not ActionType.HIDE


def visible_questions(questions: Iterable[Question], values: ResponseValues) -> List[Question]:
    """Questions to display, in survey order."""
    return [q for q in sorted(questions, key=lambda q: q.order) if is_question_visible(q, values)]


def resolve_jump(question: Question, values: ResponseValues) -> Optional[str]:
    """
    Target of the question's resolved jump action, if any.

    Only reports the target; moving there is the renderer's job.
    """
    action = resolve_rules(question.logic, values)
    if action is not None and action.type is ActionType.JUMP:
        return action.target_question_id
    return None


def count_answered(questions: Iterable[Question], values: ResponseValues) -> int:
    """Number of visible questions holding a non-empty answer (progress counter)."""
    return sum(
        1 for q in visible_questions(questions, values)
        if not is_empty(values.get(q.id, UNDEFINED))
    )
