"""Analytics and version comparison models."""

from pydantic import BaseModel, Field
from typing import Dict, List


class ProblemNode(BaseModel):
    node_id: str = Field(..., description="Node ID")
    label: str = Field("", description="Node label")
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class WorkflowMetrics(BaseModel):
    total_nodes: int = Field(0)
    total_edges: int = Field(0)
    nodes_by_kind: Dict[str, int] = Field(default_factory=dict)
    automation_coverage: float = Field(0.0, description="Automated nodes (%)")
    estimated_cycle_time: float = Field(0.0, description="Estimated hours")
    health_score: int = Field(0, description="0..100")
    problem_nodes: List[ProblemNode] = Field(default_factory=list)


class VersionDiff(BaseModel):
    nodes_added: int = Field(0)
    nodes_removed: int = Field(0)
    nodes_changed: int = Field(0)
    edges_added: int = Field(0)
    edges_removed: int = Field(0)
    edges_changed: int = Field(0)

    def has_changes(self) -> bool:
        return any([
            self.nodes_added, self.nodes_removed, self.nodes_changed,
            self.edges_added, self.edges_removed, self.edges_changed
        ])
