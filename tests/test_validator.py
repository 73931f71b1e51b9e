"""
Workflow validation tests
"""
import pytest

from conftest import edge
from workflow_studio.models import (
    WorkflowGraph, StartNode, TaskNode, ApprovalNode, AutomatedNode, EndNode, Severity
)
from workflow_studio.workflow import WorkflowValidator, validate


def codes(errors):
    return [e.code for e in errors]


class TestValidatorScenarios:
    """End-to-end validation of representative graphs"""

    def test_linear_workflow_is_clean(self, linear_workflow):
        """A configured Start -> Task -> End graph yields no findings"""
        assert validate(linear_workflow) == []

    def test_empty_workflow_reports_only_missing_start(self):
        """An empty graph reports exactly one NO_START error"""
        errors = validate(WorkflowGraph())

        assert codes(errors) == ["NO_START"]
        assert errors[0].severity == Severity.ERROR

    def test_cycle_is_a_warning(self):
        """A -> B -> A is flagged as a cycle without blocking"""
        workflow = WorkflowGraph(
            nodes=[
                TaskNode(id="a", data={"label": "A", "assignee": "x"}),
                TaskNode(id="b", data={"label": "B", "assignee": "y"}),
            ],
            edges=[edge("e1", "a", "b"), edge("e2", "b", "a")]
        )
        errors = validate(workflow)

        cycle = [e for e in errors if e.code == "CYCLE_DETECTED"]
        assert len(cycle) == 1
        assert cycle[0].severity == Severity.WARNING
        assert "NO_START" in codes(errors)

    def test_single_approver_with_all_is_warning(self):
        """approvers=['x'] with approval type 'all' is redundant, not wrong"""
        workflow = WorkflowGraph(
            nodes=[
                StartNode(id="s", data={"label": "S"}),
                ApprovalNode(id="ap", data={"label": "Sign", "approvers": ["x"], "approval_type": "all"}),
                EndNode(id="e", data={"label": "E"}),
            ],
            edges=[edge("e1", "s", "ap"), edge("e2", "ap", "e")]
        )
        errors = validate(workflow)

        assert codes(errors) == ["APPROVAL_SINGLE_APPROVER_ALL"]
        assert errors[0].severity == Severity.WARNING
        assert errors[0].node_id == "ap"


class TestValidatorRules:
    """Individual rule checks"""

    def test_validation_is_pure(self, linear_workflow):
        """Validating never mutates the graph and is repeatable"""
        linear_workflow.nodes[1].data.assignee = None
        before = linear_workflow.model_copy(deep=True)

        first = validate(linear_workflow)
        second = validate(linear_workflow)

        assert first == second
        assert linear_workflow == before

    def test_missing_label_is_error(self, linear_workflow):
        linear_workflow.nodes[1].data.label = "   "
        errors = validate(linear_workflow)

        missing = [e for e in errors if e.code == "MISSING_LABEL"]
        assert len(missing) == 1
        assert missing[0].node_id == "task"
        assert missing[0].severity == Severity.ERROR

    def test_task_without_assignee_is_warning(self, linear_workflow):
        linear_workflow.nodes[1].data.assignee = ""
        report = WorkflowValidator().validate_workflow(linear_workflow)

        assert codes(report.errors) == ["TASK_NO_ASSIGNEE"]
        assert report.valid
        assert report.warning_count == 1

    def test_multiple_issues_on_one_node_are_all_reported(self):
        """No early exit: a bare approval node collects every finding"""
        workflow = WorkflowGraph(
            nodes=[
                StartNode(id="s", data={"label": "S"}),
                ApprovalNode(id="ap", data={"escalation_email": "not-an-email"}),
                EndNode(id="e", data={"label": "E"}),
            ],
            edges=[edge("e1", "s", "ap"), edge("e2", "ap", "e")]
        )
        node_codes = [e.code for e in validate(workflow) if e.node_id == "ap"]

        assert node_codes == ["MISSING_LABEL", "APPROVAL_NO_APPROVERS", "APPROVAL_BAD_ESCALATION_EMAIL"]

    def test_automation_requires_action(self):
        workflow = WorkflowGraph(
            nodes=[
                StartNode(id="s", data={"label": "S"}),
                AutomatedNode(id="a1", data={"label": "No action"}),
                AutomatedNode(id="a2", data={"label": "No params", "action_id": "generate_doc"}),
                EndNode(id="e", data={"label": "E"}),
            ],
            edges=[edge("e1", "s", "a1"), edge("e2", "a1", "a2"), edge("e3", "a2", "e")]
        )
        errors = validate(workflow)

        by_node = {e.node_id: (e.code, e.severity) for e in errors}
        assert by_node["a1"] == ("AUTOMATION_NO_ACTION", Severity.ERROR)
        assert by_node["a2"] == ("AUTOMATION_NO_PARAMS", Severity.WARNING)

    def test_end_with_outgoing_edge_is_error(self, linear_workflow):
        linear_workflow.edges.append(edge("e3", "end", "task"))
        errors = validate(linear_workflow)

        assert "END_HAS_OUTGOING" in codes(errors)
        assert "CYCLE_DETECTED" in codes(errors)

    def test_multiple_starts_and_missing_end_are_warnings(self):
        workflow = WorkflowGraph(
            nodes=[
                StartNode(id="s1", data={"label": "S1"}),
                StartNode(id="s2", data={"label": "S2"}),
                TaskNode(id="t", data={"label": "T", "assignee": "x"}),
            ],
            edges=[edge("e1", "s1", "t"), edge("e2", "s2", "t")]
        )
        errors = validate(workflow)

        assert codes(errors)[:2] == ["MULTIPLE_STARTS", "NO_END"]
        assert all(e.severity == Severity.WARNING for e in errors)

    def test_duplicate_ids_are_errors(self, linear_workflow):
        linear_workflow.nodes.append(EndNode(id="end", data={"label": "Again"}))
        linear_workflow.edges.append(edge("e1", "task", "end"))
        errors = validate(linear_workflow)

        assert "DUPLICATE_NODE_ID" in codes(errors)
        assert "DUPLICATE_EDGE_ID" in codes(errors)


class TestValidatorGraphChecks:
    """Connectivity, reachability and edge integrity"""

    def test_dangling_edge_endpoints(self, linear_workflow):
        linear_workflow.edges.append(edge("bad", "ghost", "phantom"))
        errors = validate(linear_workflow)

        dangling = [e for e in errors if e.edge_id == "bad"]
        assert codes(dangling) == ["EDGE_DANGLING_SOURCE", "EDGE_DANGLING_TARGET"]
        assert all(e.severity == Severity.ERROR for e in dangling)

    def test_orphan_node(self, linear_workflow):
        linear_workflow.nodes.append(TaskNode(id="lonely", data={"label": "Lonely", "assignee": "x"}))
        errors = validate(linear_workflow)

        lonely = [e.code for e in errors if e.node_id == "lonely"]
        assert lonely == ["NODE_IS_ORPHANED", "NODE_UNREACHABLE"]

    def test_start_and_end_are_exempt_from_direction_checks(self, linear_workflow):
        errors = validate(linear_workflow)
        assert "NODE_NO_INCOMING" not in codes(errors)
        assert "NODE_NO_OUTGOING" not in codes(errors)

    def test_half_connected_task(self, linear_workflow):
        linear_workflow.nodes.append(TaskNode(id="dead_end", data={"label": "Dead end", "assignee": "x"}))
        linear_workflow.edges.append(edge("e3", "task", "dead_end"))
        errors = validate(linear_workflow)

        assert [e.code for e in errors if e.node_id == "dead_end"] == ["NODE_NO_OUTGOING"]

    def test_unreachable_island(self, linear_workflow):
        """Nodes connected to each other but not to the start are unreachable"""
        linear_workflow.nodes.extend([
            TaskNode(id="x", data={"label": "X", "assignee": "a"}),
            TaskNode(id="y", data={"label": "Y", "assignee": "b"}),
        ])
        linear_workflow.edges.append(edge("e3", "x", "y"))
        errors = validate(linear_workflow)

        unreachable = sorted(e.node_id for e in errors if e.code == "NODE_UNREACHABLE")
        assert unreachable == ["x", "y"]

    @pytest.mark.parametrize("probability", [-0.1, 1.5, 70])
    def test_probability_outside_fraction_range(self, branching_workflow, probability):
        branching_workflow.edges[0].data.probability = probability
        errors = validate(branching_workflow)

        assert codes(errors) == ["EDGE_INVALID_PROBABILITY"]
        assert errors[0].edge_id == "e1"

    def test_branching_workflow_is_clean(self, branching_workflow):
        assert validate(branching_workflow) == []
