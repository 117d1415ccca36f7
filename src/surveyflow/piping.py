"""
Answer piping: interpolate earlier answers into question text.

Syntax:
    {{question_id}}   answer to the question with that id
    {{Q1}}, {{Q2}}    answer to the question at that 1-based position

Examples:
    "Hi {{Q1}}, what's your favourite colour?" -> "Hi Sam, what's your favourite colour?"
    "You selected {{q_food}}. Are you sure?"   -> "You selected Pizza. Are you sure?"

Placeholders that cannot be resolved are left exactly as written,
so applying piping twice gives the same text as applying it once.
Stored question text is never rewritten.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from surveyflow.conditions import UNDEFINED
from surveyflow.model import Question, ordered

logger = logging.getLogger(__name__)

NO_ANSWER = "[no answer]"
YES = "Yes"
NO = "No"

# Prefix the survey builder puts on generated question ids;
# authors may leave it out of placeholders ({{flavor}} -> q_flavor)
ID_PREFIX = "q_"

_PLACEHOLDER_RE = re.compile(r"\{\{([^}]+)\}\}")
_POSITIONAL_RE = re.compile(r"^Q(\d+)$", re.IGNORECASE)


@dataclass
class PipingContext:
    """
    Everything needed to resolve placeholders at render time.

    Properties:
        answers: questionId -> current answer
        question_order: question ids in survey order, for {{Qn}}
    """

    answers: Mapping[str, Any] = field(default_factory=dict)
    question_order: Sequence[str] = ()


def format_answer(value: Any) -> str:
    """Format an answer for display inside question text."""
    if value is None or value is UNDEFINED or value == "":
        return NO_ANSWER
    if isinstance(value, bool):
        return YES if value else NO
    if isinstance(value, (list, tuple)):
        if not value:
            return NO_ANSWER
        return ", ".join(str(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def has_piping(text: Optional[str]) -> bool:
    """True if the text contains at least one placeholder."""
    return bool(text) and _PLACEHOLDER_RE.search(text) is not None


def extract_placeholders(text: Optional[str]) -> List[str]:
    """
    All placeholder keys in the text, trimmed, in order of appearance.

    Example:
        extract_placeholders("{{ name }} likes {{Q2}}") -> ["name", "Q2"]
    """
    if not text:
        return []
    return [m.group(1).strip() for m in _PLACEHOLDER_RE.finditer(text)]


def positional_index(key: str) -> Optional[int]:
    """Zero-based index for a Qn key, None for any other key."""
    match = _POSITIONAL_RE.match(key)
    if match is None:
        return None
    return int(match.group(1)) - 1


def resolve_question_id(key: str, question_order: Sequence[str], known_ids) -> Optional[str]:
    """
    Map a placeholder key to a question id.

    Qn keys index question_order. Other keys must be in known_ids,
    either exactly or without the builder's "q_" prefix.
    Returns None when the key does not resolve.
    """
    index = positional_index(key)
    if index is not None:
        if 0 <= index < len(question_order):
            return question_order[index]
        return None
    if key in known_ids:
        return key
    if ID_PREFIX + key in known_ids:
        return ID_PREFIX + key
    return None


def apply_piping(text: Optional[str], context: PipingContext) -> Optional[str]:
    """
    Replace resolvable placeholders with formatted answers.

    Args:
        text: Question text or description
        context: Answers and question order

    Returns:
        Text with placeholders substituted; unresolved ones untouched.
        Empty or None text is returned as given.
    """
    if not text:
        return text

    def _substitute(match: "re.Match[str]") -> str:
        key = match.group(1).strip()
        # Named keys only resolve to questions that hold an answer
        question_id = resolve_question_id(key, context.question_order, context.answers)
        if question_id is None:
            logger.debug("Leaving unresolved placeholder %s", match.group(0))
            return match.group(0)
        return format_answer(context.answers.get(question_id, UNDEFINED))

    return _PLACEHOLDER_RE.sub(_substitute, text)


# =============================================================================
# AUTHORING-TIME VALIDATION
# =============================================================================

class PipingErrorKind(Enum):
    SELF_REFERENCE = "self_reference"
    FORWARD_REFERENCE = "forward_reference"
    NOT_FOUND = "not_found"


_MESSAGES = {
    PipingErrorKind.SELF_REFERENCE: "Self-reference detected",
    PipingErrorKind.FORWARD_REFERENCE: "Forward reference detected (can only reference previous questions)",
    PipingErrorKind.NOT_FOUND: "Referenced question does not exist",
}


@dataclass(frozen=True)
class PipingError:
    """One bad placeholder, located precisely enough to point the author at it."""

    question_id: str
    question_index: int
    kind: PipingErrorKind
    placeholder: str

    @property
    def message(self) -> str:
        return _MESSAGES[self.kind]


@dataclass
class PipingValidationResult:
    valid: bool = True
    errors: List[PipingError] = field(default_factory=list)


def _classify(key: str, index: int, order: List[str], index_by_id: Dict[str, int]) -> Optional[PipingErrorKind]:
    ref_index = positional_index(key)
    if ref_index is None:
        question_id = resolve_question_id(key, order, index_by_id)
        if question_id is None:
            return PipingErrorKind.NOT_FOUND
        ref_index = index_by_id[question_id]

    if ref_index == index:
        return PipingErrorKind.SELF_REFERENCE
    # Any position past our own is forward, even past the end of the survey
    if ref_index > index:
        return PipingErrorKind.FORWARD_REFERENCE
    if ref_index < 0:
        return PipingErrorKind.NOT_FOUND
    return None


def validate_piping(questions: Sequence[Question]) -> PipingValidationResult:
    """
    Check every placeholder in every question's text and description.

    A placeholder may only reference an earlier question. Positions are
    0-based indexes in survey order. Input is never modified.
    """
    result = PipingValidationResult()
    questions_in_order = ordered(list(questions))
    order = [q.id for q in questions_in_order]
    index_by_id = {qid: i for i, qid in enumerate(order)}

    for index, question in enumerate(questions_in_order):
        keys = extract_placeholders(question.text) + extract_placeholders(question.description)
        for key in keys:
            kind = _classify(key, index, order, index_by_id)
            if kind is not None:
                result.errors.append(PipingError(
                    question_id=question.id,
                    question_index=index,
                    kind=kind,
                    placeholder=key,
                ))

    result.valid = not result.errors
    if result.errors:
        logger.info("Piping validation found %d error(s)", len(result.errors))
    return result


def placeholder_references(question: Question, question_order: Sequence[str]) -> List[Tuple[str, str]]:
    """(placeholder, question id) pairs for placeholders that resolve to a question."""
    known = set(question_order)
    refs = []
    for key in extract_placeholders(question.text) + extract_placeholders(question.description):
        question_id = resolve_question_id(key, question_order, known)
        if question_id is not None:
            refs.append((key, question_id))
    return refs
