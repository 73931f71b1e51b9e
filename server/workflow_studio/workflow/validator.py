"""
Workflow validation logic: structural rules, reachability and cycle detection
"""

import re
import logging
from collections import deque
from typing import Callable, Dict, List, Optional, Set

from ..config import VALIDATION_CONFIG
from ..models import (
    WorkflowGraph, WorkflowNode, NodeKind, Severity,
    ValidationError, ValidationReport
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(VALIDATION_CONFIG["email_pattern"])


class WorkflowValidator:
    """
    Workflow validator

    Findings are returned as data, never raised. Every check runs on every
    call (no early exit), so several issues on one node surface side by side.
    Check order:
    1. Start/end cardinality and id uniqueness
    2. Edge endpoint checks
    3. Per-node field checks dispatched by kind
    4. Orphan checks from precomputed incoming/outgoing maps
    5. Reachability (BFS from the start nodes)
    6. Cycle detection (DFS with a recursion-stack set)
    """

    def __init__(self):
        self._node_checks: Dict[str, Callable[[WorkflowNode, List[str], List[ValidationError]], None]] = {
            NodeKind.START.value: self._validate_start_node,
            NodeKind.TASK.value: self._validate_task_node,
            NodeKind.APPROVAL.value: self._validate_approval_node,
            NodeKind.AUTOMATED.value: self._validate_automated_node,
            NodeKind.END.value: self._validate_end_node,
        }

    def _format_node_name(self, node: WorkflowNode) -> str:
        """Format node name in user-friendly way"""
        kind = node.kind.capitalize()
        if node.label.strip():
            return f"{kind} '{node.label.strip()}'"
        # For long IDs, use only last 8 characters
        if len(node.id) > 20:
            return f"{kind} (...{node.id[-8:]})"
        return f"{kind} ({node.id})"

    def validate(self, workflow: WorkflowGraph) -> List[ValidationError]:
        """Run every check and return all findings"""
        errors: List[ValidationError] = []

        self._validate_required_nodes(workflow, errors)

        # An empty workflow only reports the missing start node
        if not workflow.nodes:
            return errors

        self._validate_unique_ids(workflow, errors)
        self._validate_edges(workflow, errors)

        pre_nodes_map = self._build_pre_nodes_map(workflow)
        post_nodes_map = self._build_post_nodes_map(workflow)

        for node in workflow.nodes:
            self._validate_label(node, errors)
            check = self._node_checks.get(node.kind)
            if check is None:
                raise ValueError(f"Unhandled node kind: {node.kind}")
            check(node, post_nodes_map.get(node.id, []), errors)

        self._validate_connections(workflow, pre_nodes_map, post_nodes_map, errors)
        self._validate_reachability(workflow, post_nodes_map, errors)
        self._validate_acyclic(workflow, post_nodes_map, errors)

        return errors

    def validate_workflow(self, workflow: WorkflowGraph) -> ValidationReport:
        """
        Validate entire workflow

        Returns:
            ValidationReport: valid iff no error-severity finding exists
        """
        errors = self.validate(workflow)
        error_count = sum(1 for e in errors if e.severity == Severity.ERROR)
        warning_count = len(errors) - error_count
        logger.debug(f"Validated workflow: {error_count} errors, {warning_count} warnings")
        return ValidationReport(
            valid=error_count == 0,
            errors=errors,
            error_count=error_count,
            warning_count=warning_count
        )

    def _validate_required_nodes(self, workflow: WorkflowGraph, errors: List[ValidationError]):
        """Validate start/end cardinality"""
        start_nodes = [node for node in workflow.nodes if node.kind == NodeKind.START]
        end_nodes = [node for node in workflow.nodes if node.kind == NodeKind.END]

        if not start_nodes:
            errors.append(ValidationError(
                severity=Severity.ERROR,
                code="NO_START",
                message="Workflow must contain a Start node."
            ))
        elif len(start_nodes) > 1:
            errors.append(ValidationError(
                severity=Severity.WARNING,
                code="MULTIPLE_STARTS",
                message="Multiple Start nodes detected. Recommended: only one Start node."
            ))

        if workflow.nodes and not end_nodes:
            errors.append(ValidationError(
                severity=Severity.WARNING,
                code="NO_END",
                message="Workflow has no End node."
            ))

    def _validate_unique_ids(self, workflow: WorkflowGraph, errors: List[ValidationError]):
        """Check for duplicate node and edge IDs"""
        seen: Set[str] = set()
        for node in workflow.nodes:
            if node.id in seen:
                errors.append(ValidationError(
                    node_id=node.id,
                    severity=Severity.ERROR,
                    code="DUPLICATE_NODE_ID",
                    message=f"Duplicate node ID '{node.id}'."
                ))
            seen.add(node.id)

        seen = set()
        for edge in workflow.edges:
            if edge.id in seen:
                errors.append(ValidationError(
                    edge_id=edge.id,
                    severity=Severity.ERROR,
                    code="DUPLICATE_EDGE_ID",
                    message=f"Duplicate edge ID '{edge.id}'."
                ))
            seen.add(edge.id)

    def _validate_edges(self, workflow: WorkflowGraph, errors: List[ValidationError]):
        """Validate edge endpoints and probability unit"""
        node_ids = {node.id for node in workflow.nodes}
        min_p = VALIDATION_CONFIG["min_probability"]
        max_p = VALIDATION_CONFIG["max_probability"]

        for edge in workflow.edges:
            if edge.source not in node_ids:
                errors.append(ValidationError(
                    edge_id=edge.id,
                    severity=Severity.ERROR,
                    code="EDGE_DANGLING_SOURCE",
                    message=f"Edge {edge.id}: Source node '{edge.source}' does not exist."
                ))

            if edge.target not in node_ids:
                errors.append(ValidationError(
                    edge_id=edge.id,
                    severity=Severity.ERROR,
                    code="EDGE_DANGLING_TARGET",
                    message=f"Edge {edge.id}: Target node '{edge.target}' does not exist."
                ))

            probability = edge.data.probability
            if probability is not None and not (min_p <= probability <= max_p):
                errors.append(ValidationError(
                    edge_id=edge.id,
                    severity=Severity.WARNING,
                    code="EDGE_INVALID_PROBABILITY",
                    message=f"Edge {edge.id}: probability {probability} is outside {min_p}..{max_p}."
                ))

    def _validate_label(self, node: WorkflowNode, errors: List[ValidationError]):
        if not (node.data.label or "").strip():
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.ERROR,
                code="MISSING_LABEL",
                message=f"{node.kind.capitalize()} node is missing a label/title."
            ))

    def _validate_start_node(self, node: WorkflowNode, post_nodes: List[str], errors: List[ValidationError]):
        # Start nodes carry no required fields beyond the label
        return

    def _validate_task_node(self, node: WorkflowNode, post_nodes: List[str], errors: List[ValidationError]):
        if not node.data.assignee:
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.WARNING,
                code="TASK_NO_ASSIGNEE",
                message=f"{self._format_node_name(node)} has no assignee; tasks without assignees may not be actionable."
            ))

    def _validate_approval_node(self, node: WorkflowNode, post_nodes: List[str], errors: List[ValidationError]):
        data = node.data
        if not data.approvers:
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.ERROR,
                code="APPROVAL_NO_APPROVERS",
                message=f"{self._format_node_name(node)} requires at least one approver."
            ))
        elif len(data.approvers) == 1 and data.approval_type == "all":
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.WARNING,
                code="APPROVAL_SINGLE_APPROVER_ALL",
                message='Approval type "All approvers" with a single approver is equivalent to "Any".'
            ))

        if data.escalation_email and not EMAIL_PATTERN.match(data.escalation_email):
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.WARNING,
                code="APPROVAL_BAD_ESCALATION_EMAIL",
                message="Escalation email does not look like a valid email address."
            ))

    def _validate_automated_node(self, node: WorkflowNode, post_nodes: List[str], errors: List[ValidationError]):
        data = node.data
        if not data.action_id:
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.ERROR,
                code="AUTOMATION_NO_ACTION",
                message=f"{self._format_node_name(node)} must have an action selected."
            ))
        elif not data.params:
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.WARNING,
                code="AUTOMATION_NO_PARAMS",
                message="Automated action has no parameters specified; verify required params for the selected action."
            ))

    def _validate_end_node(self, node: WorkflowNode, post_nodes: List[str], errors: List[ValidationError]):
        if post_nodes:
            errors.append(ValidationError(
                node_id=node.id,
                severity=Severity.ERROR,
                code="END_HAS_OUTGOING",
                message=f"{self._format_node_name(node)} must not have outgoing connections."
            ))

    def _validate_connections(
        self,
        workflow: WorkflowGraph,
        pre_nodes_map: Dict[str, List[str]],
        post_nodes_map: Dict[str, List[str]],
        errors: List[ValidationError]
    ):
        """Flag orphaned and half-connected nodes"""
        for node in workflow.nodes:
            pre_nodes = pre_nodes_map.get(node.id, [])
            post_nodes = post_nodes_map.get(node.id, [])

            if not pre_nodes and not post_nodes:
                errors.append(ValidationError(
                    node_id=node.id,
                    severity=Severity.WARNING,
                    code="NODE_IS_ORPHANED",
                    message="This node is not connected to the workflow (no incoming and no outgoing edges)."
                ))
                continue

            # Start nodes may lack incoming edges, end nodes outgoing ones
            if not pre_nodes and node.kind != NodeKind.START:
                errors.append(ValidationError(
                    node_id=node.id,
                    severity=Severity.WARNING,
                    code="NODE_NO_INCOMING",
                    message=f"{self._format_node_name(node)} has no incoming connection."
                ))
            if not post_nodes and node.kind != NodeKind.END:
                errors.append(ValidationError(
                    node_id=node.id,
                    severity=Severity.WARNING,
                    code="NODE_NO_OUTGOING",
                    message=f"{self._format_node_name(node)} has no outgoing connection."
                ))

    def _validate_reachability(
        self,
        workflow: WorkflowGraph,
        post_nodes_map: Dict[str, List[str]],
        errors: List[ValidationError]
    ):
        """BFS from every start node; unreachable non-start nodes are warnings"""
        start_ids = [node.id for node in workflow.nodes if node.kind == NodeKind.START]
        if not start_ids:
            # Already reported as NO_START
            return

        visited = self._reachable_from(start_ids, post_nodes_map)
        for node in workflow.nodes:
            if node.id not in visited and node.kind != NodeKind.START:
                errors.append(ValidationError(
                    node_id=node.id,
                    severity=Severity.WARNING,
                    code="NODE_UNREACHABLE",
                    message=f"{self._format_node_name(node)} cannot be reached from the Start node."
                ))

    def _validate_acyclic(
        self,
        workflow: WorkflowGraph,
        post_nodes_map: Dict[str, List[str]],
        errors: List[ValidationError]
    ):
        if self._find_cycle(workflow, post_nodes_map) is not None:
            errors.append(ValidationError(
                severity=Severity.WARNING,
                code="CYCLE_DETECTED",
                message="Cycle detected in the workflow. Ensure loops are intentional; simulation visits each node once."
            ))

    def _reachable_from(self, start_ids: List[str], post_nodes_map: Dict[str, List[str]]) -> Set[str]:
        visited: Set[str] = set(start_ids)
        queue = deque(start_ids)
        while queue:
            current = queue.popleft()
            for target in post_nodes_map.get(current, []):
                if target not in visited:
                    visited.add(target)
                    queue.append(target)
        return visited

    def _find_cycle(self, workflow: WorkflowGraph, post_nodes_map: Dict[str, List[str]]) -> Optional[str]:
        """
        Iterative DFS keeping the current recursion stack.

        Returns the id of the first node found on a back edge, or None.
        """
        visited: Set[str] = set()
        on_stack: Set[str] = set()

        for root in workflow.nodes:
            if root.id in visited:
                continue
            visited.add(root.id)
            on_stack.add(root.id)
            stack = [(root.id, iter(post_nodes_map.get(root.id, [])))]

            while stack:
                node_id, successors = stack[-1]
                advanced = False
                for target in successors:
                    if target in on_stack:
                        return target
                    if target not in visited:
                        visited.add(target)
                        on_stack.add(target)
                        stack.append((target, iter(post_nodes_map.get(target, []))))
                        advanced = True
                        break
                if not advanced:
                    stack.pop()
                    on_stack.discard(node_id)

        return None

    def _build_pre_nodes_map(self, workflow: WorkflowGraph) -> Dict[str, List[str]]:
        """Map each node's pre-nodes (dangling edges are skipped)"""
        node_ids = {node.id for node in workflow.nodes}
        pre_nodes_map: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}

        for edge in workflow.edges:
            if edge.source in node_ids and edge.target in node_ids:
                pre_nodes_map[edge.target].append(edge.source)

        return pre_nodes_map

    def _build_post_nodes_map(self, workflow: WorkflowGraph) -> Dict[str, List[str]]:
        """Map each node's post-nodes (dangling edges are skipped)"""
        node_ids = {node.id for node in workflow.nodes}
        post_nodes_map: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}

        for edge in workflow.edges:
            if edge.source in node_ids and edge.target in node_ids:
                post_nodes_map[edge.source].append(edge.target)

        return post_nodes_map


_default_validator = WorkflowValidator()


def validate(workflow: WorkflowGraph) -> List[ValidationError]:
    """Module-level shortcut for ``WorkflowValidator().validate``"""
    return _default_validator.validate(workflow)
