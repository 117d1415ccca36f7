"""
Serialization helpers for surveyflow objects (Survey, Question, Condition, etc.).

Provides JSON/YAML round-trip via an intermediate dict representation.
The dict layout is the one survey builders store:

    condition leaf:   {"questionId": "q1", "operator": "equals", "value": "No"}
    condition group:  {"type": "and", "conditions": [...]}
    action:           {"type": "jump", "targetQuestionId": "q5"}
    logic:            {"rules": [{"id": ..., "condition": ..., "action": ...}]}
"""
from __future__ import annotations

import json
import warnings
from typing import Any, Dict, List, Optional

import yaml

from surveyflow.conditions import (
    UNDEFINED,
    ComparisonOperator,
    CompoundCondition,
    Condition,
    LogicalOperator,
    SimpleCondition,
)
from surveyflow.model import (
    ActionType,
    LogicAction,
    LogicRule,
    Question,
    QuestionType,
    Survey,
)


class SerializationError(ValueError):
    """Raised when a stored survey cannot be turned back into objects."""
    pass


def _require(d: Any, key: str, what: str) -> Any:
    if not isinstance(d, dict):
        raise SerializationError(f"{what} must be a mapping, got {type(d).__name__}")
    if key not in d:
        raise SerializationError(f"{what} is missing '{key}'")
    return d[key]


def condition_to_dict(c: Condition) -> Dict[str, Any]:
    if isinstance(c, CompoundCondition):
        return {
            "type": c.combinator.value,
            "conditions": [condition_to_dict(child) for child in c.conditions],
        }
    if isinstance(c, SimpleCondition):
        op = c.operator.value if isinstance(c.operator, ComparisonOperator) else c.operator
        d = {"questionId": c.question_id, "operator": op}
        if c.value is not UNDEFINED:
            d["value"] = list(c.value) if isinstance(c.value, tuple) else c.value
        return d
    raise TypeError(f"Unsupported Condition type: {type(c)}")


def condition_from_dict(d: Any) -> Condition:
    if isinstance(d, dict) and "conditions" in d:
        raw = d.get("type", d.get("combinator"))
        try:
            combinator = LogicalOperator(raw)
        except ValueError:
            raise SerializationError(f"Unknown condition combinator: {raw!r}")
        children = d["conditions"]
        if not isinstance(children, list):
            raise SerializationError("'conditions' must be a list")
        return CompoundCondition(combinator, tuple(condition_from_dict(child) for child in children))

    question_id = _require(d, "questionId", "Condition")
    raw_op = _require(d, "operator", "Condition")
    op = ComparisonOperator.parse(raw_op)
    if not isinstance(op, ComparisonOperator):
        warnings.warn(f"Unknown operator '{raw_op}' on {question_id}; condition will never match", UserWarning)
    return SimpleCondition(question_id=question_id, operator=op, value=d.get("value", UNDEFINED))


def action_to_dict(a: LogicAction) -> Dict[str, Any]:
    d = {"type": a.type.value}
    if a.target_question_id is not None:
        d["targetQuestionId"] = a.target_question_id
    return d


def action_from_dict(d: Any) -> LogicAction:
    raw = _require(d, "type", "Action")
    try:
        action_type = ActionType(raw)
    except ValueError:
        raise SerializationError(f"Unknown action type: {raw!r}")
    return LogicAction(type=action_type, target_question_id=d.get("targetQuestionId"))


def rule_to_dict(r: LogicRule) -> Dict[str, Any]:
    return {"id": r.id, "condition": condition_to_dict(r.condition), "action": action_to_dict(r.action)}


def rule_from_dict(d: Any) -> LogicRule:
    return LogicRule(
        id=str(_require(d, "id", "Rule")),
        condition=condition_from_dict(_require(d, "condition", "Rule")),
        action=action_from_dict(_require(d, "action", "Rule")),
    )


def logic_to_dict(rules: List[LogicRule]) -> Optional[Dict[str, Any]]:
    if not rules:
        return None
    return {"rules": [rule_to_dict(r) for r in rules]}


def logic_from_dict(d: Any) -> List[LogicRule]:
    if d is None:
        return []
    rules = _require(d, "rules", "Logic")
    if rules is None:
        return []
    return [rule_from_dict(r) for r in rules]


def question_to_dict(q: Question) -> Dict[str, Any]:
    return {
        "id": q.id,
        "order": q.order,
        "type": q.type.value,
        "question": q.text,
        "description": q.description,
        "required": q.required,
        "options": q.options,
        "logic": logic_to_dict(q.logic),
    }


def question_from_dict(d: Dict[str, Any], position: int = 1) -> Question:
    """Build a Question; `position` supplies the order when none is stored."""
    question_id = str(_require(d, "id", "Question"))
    raw_type = d.get("type", QuestionType.TEXT.value)
    try:
        question_type = QuestionType(raw_type)
    except ValueError:
        raise SerializationError(f"Unknown question type: {raw_type!r}")
    return Question(
        id=question_id,
        order=int(d.get("order", position)),
        type=question_type,
        text=d.get("question", d.get("text", "")),
        description=d.get("description"),
        logic=logic_from_dict(d.get("logic")),
        required=bool(d.get("required", False)),
        options=list(d.get("options") or []),
    )


def survey_to_dict(s: Survey) -> Dict[str, Any]:
    return {
        "id": s.id,
        "title": s.title,
        "questions": [question_to_dict(q) for q in s.questions],
        "metadata": s.metadata,
    }


def survey_from_dict(d: Any) -> Survey:
    if not isinstance(d, dict):
        raise SerializationError(f"Survey must be a mapping, got {type(d).__name__}")
    s = Survey(id=str(d.get("id", "")), title=d.get("title", ""))
    s.questions = [question_from_dict(q, position=i) for i, q in enumerate(d.get("questions", []), start=1)]
    s.metadata = d.get("metadata") or {}
    return s


def survey_to_json(s: Survey) -> str:
    return json.dumps(survey_to_dict(s), sort_keys=True)


def survey_from_json(s: str) -> Survey:
    d = json.loads(s)
    return survey_from_dict(d)


def survey_to_yaml(s: Survey) -> str:
    return yaml.safe_dump(survey_to_dict(s), sort_keys=False)


def survey_from_yaml(s: str) -> Survey:
    d = yaml.safe_load(s)
    return survey_from_dict(d)
