"""Simulation step and state models."""

from pydantic import BaseModel, Field
from typing import List, Optional
from .enums import StepStatus, SimulationSpeed


class SimulationStep(BaseModel):
    node_id: Optional[str] = Field(None, description="Node ID (None for workflow-level failures)")
    timestamp: float = Field(..., description="Logical timestamp (ms)")
    status: StepStatus = Field(..., description="Step status")
    message: str = Field(..., description="UI message")
    duration: Optional[float] = Field(None, description="Simulated node duration (ms)")


class SimulationState(BaseModel):
    is_running: bool = Field(default=False)
    is_paused: bool = Field(default=False)
    current_node_id: Optional[str] = Field(None)
    active_edge_id: Optional[str] = Field(None)
    steps: List[SimulationStep] = Field(default_factory=list)
    speed: SimulationSpeed = Field(default=SimulationSpeed.NORMAL)
    start_time: Optional[float] = Field(None, description="Wall clock start (epoch ms)")
    end_time: Optional[float] = Field(None, description="Wall clock end (epoch ms)")
