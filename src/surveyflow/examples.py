"""
Example survey builder used by the tests and the command line demo.

Builds a short food-preferences survey that exercises piping
({{Q1}}, {{q_flavor}}), hide rules, a compound condition and a jump.
"""
from surveyflow.conditions import ComparisonOperator, SimpleCondition, all_of
from surveyflow.model import ActionType, LogicAction, LogicRule, Question, QuestionType, Survey


def build_example_survey(survey_id: str = "food-preferences") -> Survey:
    survey = Survey(id=survey_id, title="Food preferences")

    q_name = Question(id="q_name", order=1, type=QuestionType.TEXT, text="What is your name?")

    q_likes_pizza = Question(
        id="q_likes_pizza",
        order=2,
        type=QuestionType.SINGLE_CHOICE,
        text="Hi {{Q1}}, do you like pizza?",
        options=["Yes", "No"],
    )

    # Only asked of pizza fans
    q_flavor = Question(
        id="q_flavor",
        order=3,
        type=QuestionType.MULTIPLE_CHOICE,
        text="Which toppings do you pick?",
        options=["Margherita", "Pepperoni", "Veggie"],
        logic=[
            LogicRule(
                id="r_hide_flavor",
                condition=SimpleCondition("q_likes_pizza", ComparisonOperator.NOT_EQUALS, "Yes"),
                action=LogicAction(ActionType.HIDE),
            ),
        ],
    )

    q_rating = Question(
        id="q_rating",
        order=4,
        type=QuestionType.RATING,
        text="How would you rate {{flavor}}?",
        description="1 is poor, 5 is excellent",
        logic=[
            LogicRule(
                id="r_hide_rating",
                condition=SimpleCondition("q_flavor", ComparisonOperator.IS_EMPTY),
                action=LogicAction(ActionType.HIDE),
            ),
        ],
    )

    # Low ratings from pizza fans skip straight to the complaint box
    q_recommend = Question(
        id="q_recommend",
        order=5,
        type=QuestionType.SINGLE_CHOICE,
        text="Would you recommend us, {{q_name}}?",
        options=["Yes", "No"],
        logic=[
            LogicRule(
                id="r_jump_complaint",
                condition=all_of(
                    SimpleCondition("q_likes_pizza", ComparisonOperator.EQUALS, "Yes"),
                    SimpleCondition("q_rating", ComparisonOperator.LESS_THAN_OR_EQUAL, 2),
                ),
                action=LogicAction(ActionType.JUMP, target_question_id="q_complaint"),
            ),
        ],
    )

    q_complaint = Question(
        id="q_complaint",
        order=6,
        type=QuestionType.TEXTAREA,
        text="Sorry to hear that. What went wrong?",
        logic=[
            LogicRule(
                id="r_hide_complaint",
                condition=SimpleCondition("q_rating", ComparisonOperator.GREATER_THAN, 2),
                action=LogicAction(ActionType.HIDE),
            ),
        ],
    )

    survey.questions = [q_name, q_likes_pizza, q_flavor, q_rating, q_recommend, q_complaint]
    return survey
