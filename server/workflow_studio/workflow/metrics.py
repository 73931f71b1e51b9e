"""
Workflow analytics: size, automation coverage, cycle time and health score
"""

from typing import Dict, List, Optional

from ..config import METRICS_CONFIG
from ..models import (
    WorkflowGraph, NodeKind, Severity, ValidationError, WorkflowMetrics, ProblemNode
)
from .validator import validate


def _estimated_hours(node) -> float:
    if node.kind == NodeKind.TASK and node.data.estimated_hours is not None:
        return node.data.estimated_hours
    return METRICS_CONFIG["kind_hours"].get(node.kind, 0.0)


def compute_metrics(
    workflow: WorkflowGraph,
    errors: Optional[List[ValidationError]] = None
) -> WorkflowMetrics:
    """Summarize a workflow; validation runs here when ``errors`` is not given"""
    if errors is None:
        errors = validate(workflow)

    total_nodes = len(workflow.nodes)
    nodes_by_kind: Dict[str, int] = {kind: 0 for kind in NodeKind.get_all_kinds()}
    for node in workflow.nodes:
        nodes_by_kind[node.kind] += 1

    automation_coverage = 0.0
    if total_nodes:
        automation_coverage = round(nodes_by_kind[NodeKind.AUTOMATED.value] / total_nodes * 100, 1)

    error_count = sum(1 for e in errors if e.severity == Severity.ERROR)
    warning_count = len(errors) - error_count
    base_score = 100 if total_nodes else 0
    health_score = base_score - error_count * METRICS_CONFIG["error_penalty"] - warning_count * METRICS_CONFIG["warning_penalty"]
    health_score = max(0, min(100, health_score))

    problems: Dict[str, ProblemNode] = {}
    labels = {node.id: node.label for node in workflow.nodes}
    for error in errors:
        if error.node_id is None:
            continue
        problem = problems.setdefault(
            error.node_id,
            ProblemNode(node_id=error.node_id, label=labels.get(error.node_id, ""))
        )
        if error.severity == Severity.ERROR:
            problem.errors.append(error.message)
        else:
            problem.warnings.append(error.message)

    return WorkflowMetrics(
        total_nodes=total_nodes,
        total_edges=len(workflow.edges),
        nodes_by_kind=nodes_by_kind,
        automation_coverage=automation_coverage,
        estimated_cycle_time=sum(_estimated_hours(node) for node in workflow.nodes),
        health_score=health_score,
        problem_nodes=list(problems.values())
    )
