"""API request/response models."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from .enums import SimulationSpeed, LayoutDirection
from .workflow import WorkflowGraph
from .simulation import SimulationStep


class SimulationRequest(BaseModel):
    workflow: WorkflowGraph = Field(..., description="Workflow to simulate")
    speed: SimulationSpeed = Field(default=SimulationSpeed.NORMAL)
    seed: Optional[int] = Field(None, description="Seed for reproducible step durations")


class SimulationStepsResponse(BaseModel):
    steps: List[SimulationStep] = Field(..., description="Ordered simulation steps")
    total_duration: float = Field(0.0, description="Sum of simulated durations (ms)")


class SpeedRequest(BaseModel):
    speed: SimulationSpeed = Field(..., description="New playback speed")


class LayoutRequest(BaseModel):
    workflow: WorkflowGraph = Field(..., description="Workflow to lay out")
    direction: LayoutDirection = Field(default=LayoutDirection.TOP_BOTTOM)


class DiffRequest(BaseModel):
    current: WorkflowGraph = Field(..., description="Workflow under edit")
    version: WorkflowGraph = Field(..., description="Saved version to compare with")


class ImportRequest(BaseModel):
    snapshot: Dict[str, Any] = Field(..., description="Exported workflow payload")
