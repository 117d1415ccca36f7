"""
Tests for serialization and deserialization of surveyflow objects.

These tests ensure the stored dict layout is read and written faithfully
and that JSON/YAML round-trips are lossless.
"""

import pytest
from surveyflow.conditions import (
    UNDEFINED,
    ComparisonOperator,
    CompoundCondition,
    LogicalOperator,
    SimpleCondition,
)
from surveyflow.examples import build_example_survey
from surveyflow.model import ActionType, QuestionType
from surveyflow.serialization import (
    SerializationError,
    action_from_dict,
    condition_from_dict,
    condition_to_dict,
    question_from_dict,
    survey_from_dict,
    survey_from_json,
    survey_from_yaml,
    survey_to_dict,
    survey_to_json,
    survey_to_yaml,
)


STORED_QUESTION = {
    "id": "q2",
    "type": "single_choice",
    "question": "Hi {{Q1}}, pizza?",
    "required": True,
    "options": ["Yes", "No"],
    "logic": {
        "rules": [
            {
                "id": "r1",
                "condition": {
                    "type": "or",
                    "conditions": [
                        {"questionId": "q1", "operator": "equals", "value": "No"},
                        {"questionId": "q1", "operator": "is_empty"},
                    ],
                },
                "action": {"type": "hide"},
            }
        ]
    },
}


def test_read_stored_question():
    q = question_from_dict(STORED_QUESTION, position=2)

    assert q.id == "q2"
    assert q.order == 2
    assert q.type is QuestionType.SINGLE_CHOICE
    assert q.text == "Hi {{Q1}}, pizza?"
    assert q.required is True
    rule = q.logic[0]
    assert rule.action.type is ActionType.HIDE
    assert isinstance(rule.condition, CompoundCondition)
    assert rule.condition.combinator is LogicalOperator.OR
    assert rule.condition.conditions[1].value is UNDEFINED


def test_condition_dict_round_trip_keeps_omitted_value():
    d = {"questionId": "q1", "operator": "is_not_empty"}
    assert condition_to_dict(condition_from_dict(d)) == d


def test_combinator_alias_accepted():
    c = condition_from_dict({"combinator": "and", "conditions": []})
    assert c == CompoundCondition(LogicalOperator.AND, ())


def test_unknown_operator_warns_and_is_kept():
    with pytest.warns(UserWarning, match="sounds_like"):
        c = condition_from_dict({"questionId": "q1", "operator": "sounds_like", "value": "x"})
    assert c == SimpleCondition("q1", "sounds_like", "x")
    assert condition_to_dict(c)["operator"] == "sounds_like"


def test_tuple_value_written_as_list():
    c = SimpleCondition("q1", ComparisonOperator.IN_LIST, ("a", "b"))
    assert condition_to_dict(c)["value"] == ["a", "b"]


@pytest.mark.parametrize("bad", [
    {"operator": "equals"},
    {"questionId": "q1"},
    {"type": "xor", "conditions": []},
    "not a mapping",
])
def test_malformed_condition_raises(bad):
    with pytest.raises(SerializationError):
        condition_from_dict(bad)


def test_bad_action_raises():
    with pytest.raises(SerializationError):
        action_from_dict({"type": "teleport"})


def test_jump_action_target():
    action = action_from_dict({"type": "jump", "targetQuestionId": "q5"})
    assert action.target_question_id == "q5"


def test_bad_question_type_raises():
    with pytest.raises(SerializationError):
        question_from_dict({"id": "q1", "type": "hologram"})


def test_survey_must_be_mapping():
    with pytest.raises(SerializationError):
        survey_from_dict(["not", "a", "survey"])


def test_orders_default_to_position():
    s = survey_from_dict({"id": "s", "questions": [{"id": "a"}, {"id": "b"}]})
    assert s.question_order == ["a", "b"]
    assert [q.order for q in s.questions] == [1, 2]


def test_json_roundtrip():
    survey = build_example_survey()
    before = survey_to_dict(survey)
    restored = survey_from_json(survey_to_json(survey))
    assert survey_to_dict(restored) == before


def test_yaml_roundtrip():
    survey = build_example_survey()
    before = survey_to_dict(survey)
    restored = survey_from_yaml(survey_to_yaml(survey))
    assert survey_to_dict(restored) == before
    assert restored.get_question("q_recommend").logic[0].action.target_question_id == "q_complaint"
