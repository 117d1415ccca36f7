"""
Cross-question dependency graph and authoring-time rule checks.

An edge A -> B means question A reads question B, either through a
logic condition or through a piping placeholder. The graph must be
acyclic before a survey is published.

IMPORTANT: This is an authoring-time tool. It never runs while a
respondent fills in a form, and it only reads the questions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set

from surveyflow.conditions import (
    LIST_OPERATORS,
    CompoundCondition,
    Condition,
    SimpleCondition,
)
from surveyflow.model import ActionType, Question, ordered
from surveyflow.piping import placeholder_references

logger = logging.getLogger(__name__)

LOGIC = "logic"
PIPING = "piping"


def _walk_leaves(condition: Condition) -> Iterable[SimpleCondition]:
    """Yield every SimpleCondition in a tree, left to right."""
    if isinstance(condition, CompoundCondition):
        for child in condition.conditions:
            yield from _walk_leaves(child)
    elif isinstance(condition, SimpleCondition):
        yield condition


def condition_references(condition: Condition) -> List[str]:
    """Distinct question ids a condition reads, in first-seen order."""
    refs: List[str] = []
    for leaf in _walk_leaves(condition):
        if leaf.question_id not in refs:
            refs.append(leaf.question_id)
    return refs


@dataclass(frozen=True)
class DependencyEdge:
    source: str
    target: str
    kind: str  # LOGIC or PIPING


@dataclass
class DependencyGraph:
    """
    Derived reference graph of a survey.

    nodes are question ids in list order; edges keep first-seen order
    so traversal, and therefore cycle reporting, is deterministic.
    """

    nodes: List[str] = field(default_factory=list)
    edges: List[DependencyEdge] = field(default_factory=list)
    _edge_set: Set[DependencyEdge] = field(default_factory=set, init=False, repr=False, compare=False)

    def __post_init__(self):
        self._edge_set.update(self.edges)

    def add_edge(self, source: str, target: str, kind: str) -> None:
        edge = DependencyEdge(source, target, kind)
        if edge not in self._edge_set:
            self._edge_set.add(edge)
            self.edges.append(edge)

    def successors(self, node: str) -> List[str]:
        return self.adjacency().get(node, [])

    def adjacency(self) -> Dict[str, List[str]]:
        """source -> distinct targets, logic and piping edges merged."""
        adjacency: Dict[str, List[str]] = {node: [] for node in self.nodes}
        seen = set()
        for edge in self.edges:
            if (edge.source, edge.target) in seen:
                continue
            seen.add((edge.source, edge.target))
            adjacency.setdefault(edge.source, []).append(edge.target)
        return adjacency


def build_dependency_graph(questions: Sequence[Question], include_piping: bool = False) -> DependencyGraph:
    """
    Build the reference graph for a list of questions.

    Args:
        questions: Survey questions
        include_piping: Also add edges for placeholders that resolve

    Returns:
        DependencyGraph
    """
    graph = DependencyGraph(nodes=[q.id for q in questions])
    question_order = [q.id for q in ordered(list(questions))]

    for question in questions:
        for rule in question.logic:
            for target in condition_references(rule.condition):
                graph.add_edge(question.id, target, LOGIC)
        if include_piping:
            for _, target in placeholder_references(question, question_order):
                graph.add_edge(question.id, target, PIPING)

    return graph


def _find_cycle(adjacency: Dict[str, List[str]], roots: Iterable[str]) -> List[str]:
    """
    Depth-first search with a recursion stack (gray) and a visited set.

    Returns the path from the revisited ancestor to the node that closed
    the cycle, ending with the ancestor again; [] if there is no cycle.
    Iterative so that long reference chains cannot exhaust the stack.
    """
    visited = set()
    on_stack = set()

    for root in roots:
        if root in visited:
            continue
        visited.add(root)
        on_stack.add(root)
        path = [root]
        pending = [iter(adjacency.get(root, ()))]

        while pending:
            for neighbor in pending[-1]:
                if neighbor in on_stack:
                    start = path.index(neighbor)
                    return path[start:] + [neighbor]
                if neighbor not in visited:
                    visited.add(neighbor)
                    on_stack.add(neighbor)
                    path.append(neighbor)
                    pending.append(iter(adjacency.get(neighbor, ())))
                    break
            else:
                pending.pop()
                on_stack.discard(path.pop())

    return []


def find_cycles(questions: Sequence[Question], include_piping: bool = False) -> List[str]:
    """
    Ids in the first dependency cycle found, or [] if the graph is acyclic.

    The list follows edge direction: it starts at the ancestor the search
    ran back into, walks the search path down to the question whose
    reference closed the loop, and ends with the ancestor again. With
    x -> y -> z -> x reached from x, the result is ['x', 'y', 'z', 'x'];
    a question reading itself gives ['a', 'a'].

    The first cycle in traversal order is reported, which is not
    necessarily the shortest one in the graph.
    """
    graph = build_dependency_graph(questions, include_piping=include_piping)
    cycle = _find_cycle(graph.adjacency(), graph.nodes)
    if cycle:
        logger.info("Dependency cycle detected: %s", " -> ".join(cycle))
    return cycle


# =============================================================================
# LOGIC RULE VALIDATION
# =============================================================================

class LogicErrorKind(Enum):
    UNKNOWN_QUESTION = "unknown_question"
    SELF_REFERENCE = "self_reference"
    UNKNOWN_OPERATOR = "unknown_operator"
    EMPTY_COMPOUND = "empty_compound"
    LIST_VALUE_REQUIRED = "list_value_required"
    MISSING_JUMP_TARGET = "missing_jump_target"
    UNKNOWN_JUMP_TARGET = "unknown_jump_target"
    CYCLE = "cycle"


_MESSAGES = {
    LogicErrorKind.UNKNOWN_QUESTION: "Condition references a question that does not exist",
    LogicErrorKind.SELF_REFERENCE: "Condition references its own question",
    LogicErrorKind.UNKNOWN_OPERATOR: "Unknown comparison operator",
    LogicErrorKind.EMPTY_COMPOUND: "AND/OR group has no conditions",
    LogicErrorKind.LIST_VALUE_REQUIRED: "Operator needs a list of values",
    LogicErrorKind.MISSING_JUMP_TARGET: "Jump action has no target question",
    LogicErrorKind.UNKNOWN_JUMP_TARGET: "Jump target does not exist",
    LogicErrorKind.CYCLE: "Circular dependency between questions",
}


@dataclass(frozen=True)
class LogicError:
    """
    One authoring problem in a question's logic.

    detail carries the offending id, operator or cycle path.
    rule_id is None for errors that are not tied to one rule (cycles).
    """

    question_id: str
    question_index: int
    rule_id: Optional[str]
    kind: LogicErrorKind
    detail: str = ""

    @property
    def message(self) -> str:
        base = _MESSAGES[self.kind]
        return f"{base}: {self.detail}" if self.detail else base


@dataclass
class LogicValidationResult:
    valid: bool = True
    errors: List[LogicError] = field(default_factory=list)


def _check_condition(condition: Condition, question: Question, known_ids) -> List[tuple]:
    problems = []
    if isinstance(condition, CompoundCondition):
        if not condition.conditions:
            problems.append((LogicErrorKind.EMPTY_COMPOUND, condition.combinator.value))
        for child in condition.conditions:
            problems.extend(_check_condition(child, question, known_ids))
        return problems

    if isinstance(condition, SimpleCondition):
        if condition.question_id == question.id:
            problems.append((LogicErrorKind.SELF_REFERENCE, condition.question_id))
        elif condition.question_id not in known_ids:
            problems.append((LogicErrorKind.UNKNOWN_QUESTION, condition.question_id))

        if not condition.is_known_operator:
            problems.append((LogicErrorKind.UNKNOWN_OPERATOR, str(condition.operator)))
        elif condition.operator in LIST_OPERATORS and not isinstance(condition.value, (list, tuple)):
            problems.append((LogicErrorKind.LIST_VALUE_REQUIRED, condition.operator.value))
    return problems


def validate_logic(questions: Sequence[Question]) -> LogicValidationResult:
    """
    Check every rule of every question, then the graph as a whole.

    Reports dangling references, unknown operators, empty groups,
    malformed jumps and the first dependency cycle.
    """
    result = LogicValidationResult()
    questions_in_order = ordered(list(questions))
    known_ids = {q.id for q in questions_in_order}
    index_by_id = {q.id: i for i, q in enumerate(questions_in_order)}

    for index, question in enumerate(questions_in_order):
        for rule in question.logic:
            for kind, detail in _check_condition(rule.condition, question, known_ids):
                result.errors.append(LogicError(question.id, index, rule.id, kind, detail))

            if rule.action.type is ActionType.JUMP:
                target = rule.action.target_question_id
                if not target:
                    result.errors.append(LogicError(
                        question.id, index, rule.id, LogicErrorKind.MISSING_JUMP_TARGET))
                elif target not in known_ids:
                    result.errors.append(LogicError(
                        question.id, index, rule.id, LogicErrorKind.UNKNOWN_JUMP_TARGET, target))

    cycle = find_cycles(questions)
    if cycle:
        first = cycle[0]
        result.errors.append(LogicError(
            question_id=first,
            question_index=index_by_id.get(first, -1),
            rule_id=None,
            kind=LogicErrorKind.CYCLE,
            detail=" -> ".join(cycle),
        ))

    result.valid = not result.errors
    return result
