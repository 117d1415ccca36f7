"""
Survey Flow Resolution Engine

Decides, for a user-authored survey:
    - which questions are visible given the answers so far
    - whether the authored branching rules are well-formed
    - how earlier answers are piped into later question text

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Form rendering
    - Persistence
    - HTTP transport
    - Navigation between questions

Everything here is a pure function of the survey and the answers.
"""

from surveyflow.dependencies import find_cycles
from surveyflow.evaluator import evaluate_condition, is_question_visible, resolve_rules
from surveyflow.piping import PipingContext, apply_piping, validate_piping

__version__ = "0.1.0"

__all__ = [
    "PipingContext",
    "apply_piping",
    "evaluate_condition",
    "find_cycles",
    "is_question_visible",
    "resolve_rules",
    "validate_piping",
]
