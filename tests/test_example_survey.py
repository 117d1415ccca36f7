"""
Walk through the example survey the way a form renderer would.

Each answer change re-runs visibility and piping for every question.
"""

from surveyflow.evaluator import count_answered, is_question_visible, resolve_jump, visible_questions
from surveyflow.examples import build_example_survey
from surveyflow.piping import PipingContext, apply_piping


def _visible_ids(survey, answers):
    return [q.id for q in visible_questions(survey.questions, answers)]


def test_example_survey_structure():
    survey = build_example_survey()

    assert len(survey.questions) == 6
    assert survey.question_order[0] == "q_name"
    assert survey.get_question("q_recommend").logic[0].action.target_question_id == "q_complaint"


def test_nothing_answered():
    survey = build_example_survey()
    answers = {}

    # q_likes_pizza is not "Yes", so toppings are hidden; no toppings hides the rating
    assert _visible_ids(survey, answers) == ["q_name", "q_likes_pizza", "q_recommend", "q_complaint"]
    assert count_answered(survey.questions, answers) == 0


def test_pizza_fan_flow():
    survey = build_example_survey()
    answers = {"q_name": "Sam", "q_likes_pizza": "Yes", "q_flavor": ["Pepperoni"], "q_rating": 5}

    assert _visible_ids(survey, answers) == ["q_name", "q_likes_pizza", "q_flavor", "q_rating", "q_recommend"]
    assert not is_question_visible(survey.get_question("q_complaint"), answers)
    assert resolve_jump(survey.get_question("q_recommend"), answers) is None

    ctx = PipingContext(answers=answers, question_order=survey.question_order)
    assert apply_piping(survey.get_question("q_likes_pizza").text, ctx) == "Hi Sam, do you like pizza?"
    assert apply_piping(survey.get_question("q_rating").text, ctx) == "How would you rate Pepperoni?"
    assert apply_piping(survey.get_question("q_recommend").text, ctx) == "Would you recommend us, Sam?"


def test_low_rating_jumps_to_complaint():
    survey = build_example_survey()
    answers = {"q_name": "Sam", "q_likes_pizza": "Yes", "q_flavor": ["Veggie"], "q_rating": "2"}

    assert resolve_jump(survey.get_question("q_recommend"), answers) == "q_complaint"
    assert is_question_visible(survey.get_question("q_complaint"), answers)
    assert count_answered(survey.questions, answers) == 4


def test_answer_change_recomputes():
    survey = build_example_survey()
    answers = {"q_likes_pizza": "Yes"}
    assert "q_flavor" in _visible_ids(survey, answers)

    answers["q_likes_pizza"] = "No"
    assert "q_flavor" not in _visible_ids(survey, answers)
