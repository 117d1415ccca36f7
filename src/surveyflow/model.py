"""
Core Survey Model Objects

Defines the data structures a survey builder produces and the
flow engine consumes:

    - Questions (ordered survey items)
    - Logic rules (condition + action)
    - Logic actions (show / hide / jump)
    - Surveys (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering or persistence
        - Are never mutated by the engine
        - Are fully serializable
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Union

from .conditions import Condition


AnswerValue = Union[str, int, float, List[str], bool, None]

# questionId -> answer; absent keys read as UNDEFINED
ResponseValues = Mapping[str, AnswerValue]


class QuestionType(Enum):
    """Input kinds offered by the survey builder."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    DROPDOWN = "dropdown"
    RATING = "rating"
    SCALE = "scale"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    FILE_UPLOAD = "file_upload"
    LOCATION = "location"
    SIGNATURE = "signature"


class ActionType(Enum):
    """What a matching rule does to its question."""

    SHOW = "show"
    HIDE = "hide"
    JUMP = "jump"


@dataclass(frozen=True)
class LogicAction:
    """
    Action taken when a rule's condition matches.

    Properties:
        type: ActionType
        target_question_id:
            Next question for JUMP actions; required iff type is JUMP.
            The engine only reports it, sequencing belongs to the renderer.
    """

    type: ActionType
    target_question_id: Optional[str] = None


@dataclass(frozen=True)
class LogicRule:
    """
    One authored rule on a question.

    A question holds an ordered list of rules.
    List order is evaluation priority: the first matching rule wins.
    """

    id: str
    condition: Condition
    action: LogicAction


@dataclass
class Question:
    """
    A single survey question.

    Properties:
        id:
            Unique, stable identifier (e.g. "q_name")

        order:
            1-based position within the survey. The only ordering
            used by positional piping placeholders ({{Q1}}, {{Q2}}, ...)

        type:
            QuestionType of the input control

        text:
            Question text, may contain {{...}} piping placeholders

        description:
            Optional help text, may also contain placeholders

        logic:
            Ordered LogicRules; empty means always visible

        required / options:
            Builder metadata, carried through untouched
    """

    id: str
    order: int
    type: QuestionType
    text: str
    description: Optional[str] = None
    logic: List[LogicRule] = field(default_factory=list)
    required: bool = False
    options: List[str] = field(default_factory=list)


@dataclass
class Survey:
    """
    Root container for an authored survey.

    INVARIANTS (checked by surveyflow.analyzer, not enforced here):
        - Question ids are unique
        - Question orders are unique
        - Logic and piping references form an acyclic graph
    """

    id: str
    title: str = ""
    questions: List[Question] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def get_question(self, question_id: str) -> Optional[Question]:
        """
        Retrieve a question by ID.

        Returns:
            Question object or None if not found
        """
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def ordered_questions(self) -> List[Question]:
        """Questions sorted by `order`; ties keep their list position."""
        return ordered(self.questions)

    @property
    def question_order(self) -> List[str]:
        """Question ids in survey order, as used for {{Qn}} piping."""
        return [q.id for q in self.ordered_questions()]


def ordered(questions: List[Question]) -> List[Question]:
    return sorted(questions, key=lambda q: q.order)
