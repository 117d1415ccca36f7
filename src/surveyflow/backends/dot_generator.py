"""
Graphviz DOT diagram generator for survey dependency graphs.

Draws one node per question and one edge per cross-question reference
(logic conditions and piping placeholders). Edges on the first
detected cycle are drawn in red so authors can see what to break.

Supports two modes:
    - SIMPLE: Question ids and reference edges
    - DETAILED: Question text, rule conditions and edge kinds
"""

from enum import Enum
from typing import List, Set, Tuple

from surveyflow.conditions import (
    ComparisonOperator,
    CompoundCondition,
    Condition,
    SimpleCondition,
    UNDEFINED,
)
from surveyflow.dependencies import PIPING, build_dependency_graph, find_cycles
from surveyflow.model import Survey


class DotMode(Enum):
    """Visualization modes for DOT output."""
    SIMPLE = "simple"          # Just the reference graph
    DETAILED = "detailed"      # Include question text and rules


_OPERATOR_LABELS = {
    ComparisonOperator.EQUALS: "==",
    ComparisonOperator.NOT_EQUALS: "!=",
    ComparisonOperator.CONTAINS: "contains",
    ComparisonOperator.NOT_CONTAINS: "not contains",
    ComparisonOperator.GREATER_THAN: ">",
    ComparisonOperator.LESS_THAN: "<",
    ComparisonOperator.GREATER_THAN_OR_EQUAL: ">=",
    ComparisonOperator.LESS_THAN_OR_EQUAL: "<=",
    ComparisonOperator.IS_EMPTY: "is empty",
    ComparisonOperator.IS_NOT_EMPTY: "is not empty",
    ComparisonOperator.IN_LIST: "in",
    ComparisonOperator.NOT_IN_LIST: "not in",
}


def _escape_dot_string(s: str) -> str:
    """Escape special characters for DOT labels."""
    if not s:
        return '""'
    # Escape backslashes first
    s = s.replace('\\', '\\\\')
    s = s.replace('"', '\\"')
    s = s.replace('\n', '\\n')
    return f'"{s}"'


def _escape_dot_id(identifier: str) -> str:
    """Quote an identifier unless it is a plain DOT id."""
    if not identifier or identifier[0].isdigit() or not identifier.replace('_', '').isalnum():
        return _escape_dot_string(identifier)
    return identifier


def _condition_to_label(condition: Condition) -> str:
    """Convert a condition to a readable DOT label."""
    if isinstance(condition, CompoundCondition):
        joiner = f" {condition.combinator.value.upper()} "
        return "(" + joiner.join(_condition_to_label(c) for c in condition.conditions) + ")"

    if isinstance(condition, SimpleCondition):
        op = _OPERATOR_LABELS.get(condition.operator, str(condition.operator))
        if condition.value is UNDEFINED:
            return f"{condition.question_id} {op}"
        return f"{condition.question_id} {op} {condition.value!r}"

    return "?"


def _cycle_edges(cycle: List[str]) -> Set[Tuple[str, str]]:
    return {(cycle[i], cycle[i + 1]) for i in range(len(cycle) - 1)}


def generate_dot(survey: Survey, mode: DotMode = DotMode.SIMPLE) -> str:
    """
    Generate Graphviz DOT format for a survey's reference graph.

    Args:
        survey: Survey to visualize
        mode: Visualization mode (SIMPLE, DETAILED)

    Returns:
        String containing DOT graph definition
    """
    lines = []

    lines.append("digraph survey {")
    lines.append("  rankdir=LR;")
    lines.append("  node [shape=box, style=filled, fillcolor=lightblue];")

    # =========================================================================
    # NODES
    # =========================================================================

    for question in survey.ordered_questions():
        label = question.id
        if mode == DotMode.DETAILED:
            info = [f"Q{question.order}: {question.text}"]
            for rule in question.logic:
                action = rule.action.type.value
                if rule.action.target_question_id:
                    action = f"{action} -> {rule.action.target_question_id}"
                info.append(f"{action} if {_condition_to_label(rule.condition)}")
            label = f"{question.id}\n" + "\n".join(info)
        lines.append(f"  {_escape_dot_id(question.id)} [label={_escape_dot_string(label)}];")

    # =========================================================================
    # EDGES (REFERENCES)
    # =========================================================================

    graph = build_dependency_graph(survey.questions, include_piping=True)
    on_cycle = _cycle_edges(find_cycles(survey.questions, include_piping=True))

    for edge in graph.edges:
        attrs = []
        if edge.kind == PIPING:
            attrs.append("style=dashed")
        if mode == DotMode.DETAILED:
            attrs.append(f"label={_escape_dot_string(edge.kind)}")
        if (edge.source, edge.target) in on_cycle:
            attrs.append("color=red")
        attr_str = f" [{', '.join(attrs)}]" if attrs else ""
        lines.append(f"  {_escape_dot_id(edge.source)} -> {_escape_dot_id(edge.target)}{attr_str};")

    lines.append("}")

    return "\n".join(lines)


def save_dot_file(survey: Survey, filename: str, mode: DotMode = DotMode.SIMPLE) -> None:
    """
    Generate DOT and save to file.

    Args:
        survey: Survey to visualize
        filename: Output file path (.dot extension recommended)
        mode: Visualization mode
    """
    dot = generate_dot(survey, mode=mode)
    with open(filename, 'w') as f:
        f.write(dot)


__all__ = ["DotMode", "generate_dot", "save_dot_file"]
