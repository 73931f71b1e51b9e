"""Workflow data models and type definitions."""

from .enums import (
    NodeKind,
    Severity,
    StepStatus,
    SimulationSpeed,
    RunnerState,
    ApprovalType,
    TaskPriority,
    StartTrigger,
    EndOutcome,
    LayoutDirection
)
from .workflow import (
    Position,
    BaseNodeData,
    StartNodeData,
    TaskNodeData,
    ApprovalNodeData,
    AutomatedNodeData,
    EndNodeData,
    StartNode,
    TaskNode,
    ApprovalNode,
    AutomatedNode,
    EndNode,
    WorkflowNode,
    NODE_CLASSES,
    EdgeData,
    WorkflowEdge,
    WorkflowGraph,
    ValidationError,
    ValidationReport
)
from .simulation import SimulationStep, SimulationState
from .analytics import ProblemNode, WorkflowMetrics, VersionDiff
from .api_models import (
    SimulationRequest,
    SimulationStepsResponse,
    SpeedRequest,
    LayoutRequest,
    DiffRequest,
    ImportRequest
)

__all__ = [
    # Enums
    'NodeKind',
    'Severity',
    'StepStatus',
    'SimulationSpeed',
    'RunnerState',
    'ApprovalType',
    'TaskPriority',
    'StartTrigger',
    'EndOutcome',
    'LayoutDirection',
    # Workflow
    'Position',
    'BaseNodeData',
    'StartNodeData',
    'TaskNodeData',
    'ApprovalNodeData',
    'AutomatedNodeData',
    'EndNodeData',
    'StartNode',
    'TaskNode',
    'ApprovalNode',
    'AutomatedNode',
    'EndNode',
    'WorkflowNode',
    'NODE_CLASSES',
    'EdgeData',
    'WorkflowEdge',
    'WorkflowGraph',
    'ValidationError',
    'ValidationReport',
    # Simulation
    'SimulationStep',
    'SimulationState',
    # Analytics
    'ProblemNode',
    'WorkflowMetrics',
    'VersionDiff',
    # API Models
    'SimulationRequest',
    'SimulationStepsResponse',
    'SpeedRequest',
    'LayoutRequest',
    'DiffRequest',
    'ImportRequest'
]
