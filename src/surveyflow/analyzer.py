"""
Survey Analyzer — publish-time diagnostics for authored surveys.

This module bundles every authoring check into one read-only report:
    - Question inventory and ordering problems
    - Logic rule errors (dangling references, bad operators, bad jumps)
    - Dependency graph edges and the first cycle
    - Piping placeholder errors
    - Condition complexity metrics

IMPORTANT: The analyzer never modifies the survey. A survey builder
should refuse to publish when `report.publishable` is False and show
the errors to the author.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from surveyflow.conditions import CompoundCondition, Condition
from surveyflow.dependencies import (
    DependencyEdge,
    LogicError,
    build_dependency_graph,
    find_cycles,
    validate_logic,
)
from surveyflow.model import ActionType, Survey
from surveyflow.piping import PipingError, has_piping, validate_piping

logger = logging.getLogger(__name__)

MAX_CONDITION_DEPTH = 5


@dataclass
class ConditionMetrics:
    """Metrics about a single condition tree."""
    depth: int = 0
    leaf_count: int = 0


def _measure_condition(condition: Condition) -> ConditionMetrics:
    """Recursively measure a condition tree; a lone leaf has depth 1."""
    if isinstance(condition, CompoundCondition):
        metrics = ConditionMetrics(depth=1)
        for child in condition.conditions:
            child_metrics = _measure_condition(child)
            metrics.depth = max(metrics.depth, 1 + child_metrics.depth)
            metrics.leaf_count += child_metrics.leaf_count
        return metrics
    return ConditionMetrics(depth=1, leaf_count=1)


@dataclass
class SurveyReport:
    """Analysis report for one survey."""

    survey_id: str
    total_questions: int = 0
    total_rules: int = 0
    questions_with_logic: int = 0
    questions_with_piping: int = 0

    # Structure
    duplicate_ids: List[str] = field(default_factory=list)
    duplicate_orders: List[int] = field(default_factory=list)

    # Graph properties
    dependency_edges: List[DependencyEdge] = field(default_factory=list)
    has_cycles: bool = False
    cycle: List[str] = field(default_factory=list)

    # Condition complexity
    max_condition_depth: int = 0
    total_condition_leaves: int = 0

    # Errors and warnings
    logic_errors: List[LogicError] = field(default_factory=list)
    piping_errors: List[PipingError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)

    @property
    def publishable(self) -> bool:
        """True when nothing blocks publishing. Warnings do not block."""
        return not (
            self.duplicate_ids
            or self.duplicate_orders
            or self.has_cycles
            or self.logic_errors
            or self.piping_errors
        )


def analyze_survey(survey: Survey) -> SurveyReport:
    """
    Run every authoring check on a survey.

    The cycle check covers logic and piping references together,
    since either kind of edge can make a question depend on itself.

    Returns a SurveyReport with errors, metrics and warnings.
    """
    report = SurveyReport(survey_id=survey.id)
    questions = survey.questions

    # =========================================================================
    # 1. INVENTORY
    # =========================================================================

    report.total_questions = len(questions)
    id_counts: Dict[str, int] = Counter(q.id for q in questions)
    order_counts: Dict[int, int] = Counter(q.order for q in questions)
    report.duplicate_ids = sorted(qid for qid, n in id_counts.items() if n > 1)
    report.duplicate_orders = sorted(order for order, n in order_counts.items() if n > 1)

    depths = []
    for question in questions:
        if question.logic:
            report.questions_with_logic += 1
        report.total_rules += len(question.logic)
        if has_piping(question.text) or has_piping(question.description):
            report.questions_with_piping += 1
        for rule in question.logic:
            metrics = _measure_condition(rule.condition)
            depths.append(metrics.depth)
            report.total_condition_leaves += metrics.leaf_count

    if depths:
        report.max_condition_depth = max(depths)

    # =========================================================================
    # 2. LOGIC, PIPING AND GRAPH
    # =========================================================================

    report.logic_errors = validate_logic(questions).errors
    report.piping_errors = validate_piping(questions).errors

    graph = build_dependency_graph(questions, include_piping=True)
    report.dependency_edges = list(graph.edges)
    report.cycle = find_cycles(questions, include_piping=True)
    report.has_cycles = bool(report.cycle)

    # =========================================================================
    # 3. WARNING FLAGS
    # =========================================================================

    if report.duplicate_ids:
        report.add_warning(f"Duplicate question ids: {', '.join(report.duplicate_ids)}")

    if report.duplicate_orders:
        report.add_warning(
            f"Duplicate question positions: {', '.join(str(o) for o in report.duplicate_orders)}"
        )

    if report.has_cycles:
        report.add_warning(f"Cycle detected: {' -> '.join(report.cycle)}")

    if report.max_condition_depth > MAX_CONDITION_DEPTH:
        report.add_warning(f"High condition complexity: max depth {report.max_condition_depth}")

    for question in questions:
        rules = question.logic
        if rules and all(rule.action.type is ActionType.SHOW for rule in rules):
            # Questions are visible by default, so show-only rules change nothing
            report.add_warning(
                f"Question {question.id} only has 'show' rules; add a 'hide' rule to make it conditional"
            )

    logger.info(
        "Analyzed survey %s: %d logic error(s), %d piping error(s), cycle=%s",
        survey.id, len(report.logic_errors), len(report.piping_errors), report.has_cycles,
    )
    return report
