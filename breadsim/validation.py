"""
Topology validators run on the built (unpruned) circuit graph.

Errors stop the analysis; warnings are reported alongside the results.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from .graph import CircuitGraph, EdgeKind, find_wire_path, has_wire_only_path
from .power import GROUND_NODE, POWER_NODE

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    id: str
    severity: Severity
    message: str
    component_ids: List[str] = Field(default_factory=list)
    affected_nodes: List[str] = Field(default_factory=list)
    suggested_fix: Optional[str] = None


class ValidationResult(BaseModel):
    issues: List[ValidationIssue] = Field(default_factory=list)

    @computed_field
    @property
    def has_errors(self) -> bool:
        return any(issue.severity is Severity.ERROR for issue in self.issues)

    @computed_field
    @property
    def has_warnings(self) -> bool:
        return any(issue.severity is Severity.WARNING for issue in self.issues)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity is Severity.WARNING]


def check_self_loops(graph: CircuitGraph, power_node=POWER_NODE, ground_node=GROUND_NODE) -> List[ValidationIssue]:
    """Flag components whose two ends sit on the same net, directly or through wires."""
    issues = []
    rails = {power_node, ground_node}
    for edge in graph.component_edges():
        if edge.is_self_loop:
            issues.append(ValidationIssue(
                id=f"self-loop-{edge.id}",
                severity=Severity.WARNING,
                message="Shorted component detected",
                component_ids=[edge.component_id],
                affected_nodes=[edge.source],
                suggested_fix="Connect the component to different strips to create a PD.",
            ))
            continue
        if {edge.source, edge.target} == rails:
            continue
        if has_wire_only_path(graph, edge.source, edge.target, exclude_edge_ids=(edge.id,)):
            issues.append(ValidationIssue(
                id=f"indirect-short-{edge.id}",
                severity=Severity.WARNING,
                message="Indirect short circuit detected!",
                component_ids=[edge.component_id],
                affected_nodes=[edge.source, edge.target],
                suggested_fix="Remove the loop of wires to prevent a short circuit.",
            ))
    return issues


def check_wire_paths(graph: CircuitGraph, power_node=POWER_NODE, ground_node=GROUND_NODE) -> List[ValidationIssue]:
    """Flag a wire-only path between the supply terminals, naming the wires on it."""
    path = find_wire_path(graph, power_node, ground_node, edge_kinds=frozenset({EdgeKind.WIRE}))
    if path is None:
        return []
    wire_ids = [edge.wire_id or edge.connection_id for edge in path]
    return [ValidationIssue(
        id="power-ground-short",
        severity=Severity.ERROR,
        message="+V → GND short circuit detected!",
        component_ids=wire_ids,
        affected_nodes=[power_node, ground_node],
        suggested_fix="Remove the wire connecting the positive and negative rails.",
    )]


def check_omissions(graph: CircuitGraph) -> List[ValidationIssue]:
    issues = []
    for omitted in graph.omitted:
        where = "" if omitted.index is None else f" (gate {omitted.index})"
        issues.append(ValidationIssue(
            id=f"omitted-{omitted.component_id}" + ("" if omitted.index is None else f"-{omitted.index}"),
            severity=Severity.WARNING,
            message="Component not fully connected",
            component_ids=[omitted.component_id],
            suggested_fix=f"Finish wiring {omitted.kind.value} {omitted.component_id}{where}: {omitted.reason}.",
        ))
    return issues


def validate_circuit(graph: CircuitGraph, power_node=POWER_NODE, ground_node=GROUND_NODE) -> ValidationResult:
    """
    Run every validator over ``graph``.

    Args:
        graph: The graph as built, before reachability pruning
        power_node: Label of the power node
        ground_node: Label of the ground node

    Returns:
        ValidationResult: All issues found, errors and warnings together
    """
    issues = []
    issues.extend(check_self_loops(graph, power_node, ground_node))
    issues.extend(check_wire_paths(graph, power_node, ground_node))
    issues.extend(check_omissions(graph))
    for issue in issues:
        log = logger.error if issue.severity is Severity.ERROR else logger.warning
        log("%s: %s", issue.message, ", ".join(issue.component_ids))
    return ValidationResult(issues=issues)
