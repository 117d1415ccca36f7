"""
Tests for the Survey Analyzer.

Tests verify that the analyzer correctly:
    - Inventories questions, rules and piping
    - Detects duplicate ids and positions
    - Collects logic and piping errors
    - Finds cycles through logic and piping edges
    - Decides whether a survey can be published
"""

from surveyflow.analyzer import analyze_survey
from surveyflow.conditions import ComparisonOperator, SimpleCondition, all_of, any_of
from surveyflow.dependencies import LogicErrorKind
from surveyflow.examples import build_example_survey
from surveyflow.model import ActionType, LogicAction, LogicRule, Question, QuestionType, Survey
from surveyflow.piping import PipingErrorKind


def _rule(ref, action=ActionType.HIDE, condition=None):
    return LogicRule(
        id=f"r_{ref}",
        condition=condition or SimpleCondition(ref, ComparisonOperator.EQUALS, "x"),
        action=LogicAction(action),
    )


def _q(qid, order, text=None, logic=None):
    return Question(id=qid, order=order, type=QuestionType.TEXT, text=text or qid, logic=logic or [])


def test_example_survey_is_publishable():
    report = analyze_survey(build_example_survey())

    assert report.total_questions == 6
    assert report.questions_with_logic == 4
    assert report.questions_with_piping == 3
    assert report.total_rules == 4
    assert report.logic_errors == []
    assert report.piping_errors == []
    assert not report.has_cycles
    assert report.warnings == []
    assert report.publishable


def test_duplicate_ids_and_orders():
    survey = Survey(id="dup", questions=[_q("a", 1), _q("a", 2), _q("b", 2)])

    report = analyze_survey(survey)

    assert report.duplicate_ids == ["a"]
    assert report.duplicate_orders == [2]
    assert not report.publishable
    assert any("Duplicate question ids" in w for w in report.warnings)


def test_forward_piping_blocks_publish():
    survey = Survey(id="s", questions=[_q("a", 1, "Hi {{Q2}}"), _q("b", 2)])

    report = analyze_survey(survey)

    assert [e.kind for e in report.piping_errors] == [PipingErrorKind.FORWARD_REFERENCE]
    assert not report.publishable


def test_logic_cycle_blocks_publish():
    survey = Survey(id="s", questions=[_q("a", 1, logic=[_rule("b")]), _q("b", 2, logic=[_rule("a")])])

    report = analyze_survey(survey)

    assert report.has_cycles
    assert report.cycle == ["a", "b", "a"]
    assert LogicErrorKind.CYCLE in {e.kind for e in report.logic_errors}
    assert "Cycle detected: a -> b -> a" in report.warnings
    assert not report.publishable


def test_mixed_logic_and_piping_cycle():
    """Logic a -> b plus piping b -> a is still a cycle."""
    survey = Survey(id="s", questions=[_q("a", 1, logic=[_rule("b")]), _q("b", 2, text="You said {{a}}")])

    report = analyze_survey(survey)

    assert report.has_cycles
    assert len(report.dependency_edges) == 2
    assert not report.publishable


def test_show_only_rules_warn_but_publish():
    survey = Survey(id="s", questions=[_q("a", 1), _q("b", 2, logic=[_rule("a", ActionType.SHOW)])])

    report = analyze_survey(survey)

    assert report.publishable
    assert any("only has 'show' rules" in w for w in report.warnings)


def test_condition_depth_metrics():
    leaf = SimpleCondition("a", ComparisonOperator.IS_EMPTY)
    deep = leaf
    for _ in range(6):
        deep = all_of(any_of(deep))
    survey = Survey(id="s", questions=[_q("a", 1), _q("b", 2, logic=[_rule("a", condition=deep)])])

    report = analyze_survey(survey)

    assert report.max_condition_depth == 13
    assert report.total_condition_leaves == 1
    assert any("High condition complexity" in w for w in report.warnings)


def test_empty_survey():
    report = analyze_survey(Survey(id="empty"))
    assert report.total_questions == 0
    assert report.publishable
