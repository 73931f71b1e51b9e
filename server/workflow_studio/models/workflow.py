"""Workflow graph models: nodes, edges and validation findings."""

from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional, Union
from .enums import (
    NodeKind, Severity, ApprovalType, TaskPriority, StartTrigger, EndOutcome
)


class Position(BaseModel):
    x: float = Field(0.0, description="Canvas x coordinate")
    y: float = Field(0.0, description="Canvas y coordinate")


class BaseNodeData(BaseModel):
    label: str = Field("", description="Node title")
    description: Optional[str] = Field(None, description="Free text description")
    # Transient simulation flags
    is_executing: bool = Field(default=False)
    is_completed: bool = Field(default=False)
    execution_time: Optional[float] = Field(None, description="Simulated duration (ms)")


class StartNodeData(BaseNodeData):
    trigger: StartTrigger = Field(default=StartTrigger.MANUAL)


class TaskNodeData(BaseNodeData):
    assignee: Optional[str] = Field(None, description="Responsible person")
    due_date: Optional[str] = Field(None, description="Due date (ISO string)")
    priority: Optional[TaskPriority] = Field(None)
    estimated_hours: Optional[float] = Field(None, ge=0)
    custom_fields: Dict[str, str] = Field(default_factory=dict)


class ApprovalNodeData(BaseNodeData):
    approvers: List[str] = Field(default_factory=list)
    approval_type: ApprovalType = Field(default=ApprovalType.ANY)
    deadline: Optional[str] = Field(None, description="Approval deadline (ISO string)")
    escalation_email: Optional[str] = Field(None)


class AutomatedNodeData(BaseNodeData):
    action_id: Optional[str] = Field(None, description="Selected automation")
    action_label: Optional[str] = Field(None)
    params: Dict[str, str] = Field(default_factory=dict)
    retry_count: int = Field(default=0, ge=0)
    timeout: Optional[float] = Field(None, ge=0, description="Action timeout (s)")


class EndNodeData(BaseNodeData):
    outcome: EndOutcome = Field(default=EndOutcome.SUCCESS)
    notify_on_complete: bool = Field(default=False)


class _NodeBase(BaseModel):
    id: str = Field(..., description="Node ID")
    position: Position = Field(default_factory=Position)

    @property
    def label(self) -> str:
        return self.data.label


class StartNode(_NodeBase):
    kind: Literal["start"] = "start"
    data: StartNodeData = Field(default_factory=StartNodeData)


class TaskNode(_NodeBase):
    kind: Literal["task"] = "task"
    data: TaskNodeData = Field(default_factory=TaskNodeData)


class ApprovalNode(_NodeBase):
    kind: Literal["approval"] = "approval"
    data: ApprovalNodeData = Field(default_factory=ApprovalNodeData)


class AutomatedNode(_NodeBase):
    kind: Literal["automated"] = "automated"
    data: AutomatedNodeData = Field(default_factory=AutomatedNodeData)


class EndNode(_NodeBase):
    kind: Literal["end"] = "end"
    data: EndNodeData = Field(default_factory=EndNodeData)


WorkflowNode = Annotated[
    Union[StartNode, TaskNode, ApprovalNode, AutomatedNode, EndNode],
    Field(discriminator="kind")
]

NODE_CLASSES = {
    NodeKind.START.value: StartNode,
    NodeKind.TASK.value: TaskNode,
    NodeKind.APPROVAL.value: ApprovalNode,
    NodeKind.AUTOMATED.value: AutomatedNode,
    NodeKind.END.value: EndNode,
}


class EdgeData(BaseModel):
    label: Optional[str] = Field(None)
    weight: Optional[float] = Field(None)
    # Always a 0..1 fraction
    probability: Optional[float] = Field(None, description="Branch probability (0..1)")
    condition: Optional[str] = Field(None)
    notes: Optional[str] = Field(None)


class WorkflowEdge(BaseModel):
    id: str = Field(..., description="Edge ID")
    source: str = Field(..., description="Source node ID")
    target: str = Field(..., description="Target node ID")
    data: EdgeData = Field(default_factory=EdgeData)

    def effective_weight(self) -> float:
        """Probability if set, otherwise weight, otherwise 1"""
        if self.data.probability is not None:
            return self.data.probability
        if self.data.weight is not None:
            return self.data.weight
        return 1.0


class WorkflowGraph(BaseModel):
    nodes: List[WorkflowNode] = Field(default_factory=list, description="Node list")
    edges: List[WorkflowEdge] = Field(default_factory=list, description="Edge list")

    def node_map(self) -> Dict[str, WorkflowNode]:
        return {node.id: node for node in self.nodes}

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[WorkflowEdge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def find_edge_between(self, source_id: str, target_id: str) -> Optional[WorkflowEdge]:
        for edge in self.edges:
            if edge.source == source_id and edge.target == target_id:
                return edge
        return None

    def start_nodes(self) -> List[WorkflowNode]:
        return [node for node in self.nodes if node.kind == NodeKind.START]


class ValidationError(BaseModel):
    node_id: Optional[str] = Field(None)
    edge_id: Optional[str] = Field(None)
    severity: Severity = Field(..., description="error blocks simulation, warning does not")
    code: str = Field(..., description="Stable identifier")
    message: str = Field(..., description="Human readable message")


class ValidationReport(BaseModel):
    valid: bool = Field(..., description="True iff no error-severity finding")
    errors: List[ValidationError] = Field(default_factory=list)
    error_count: int = Field(0)
    warning_count: int = Field(0)
