"""
Simulation step generation - breadth-first linearization of the workflow
"""

import logging
import random
from collections import deque
from typing import Dict, List, Optional, Protocol, Set

from ..config import SIMULATION_CONFIG
from ..models import WorkflowGraph, WorkflowNode, NodeKind, SimulationStep, StepStatus
from ..utils import now_ms

logger = logging.getLogger(__name__)


class DurationSource(Protocol):
    """Supplies the simulated duration (ms) of the next node."""

    def next_duration(self, node: WorkflowNode) -> float:
        ...


class RandomDurationSource:
    """Uniformly random durations in [min_ms, max_ms]"""

    def __init__(
        self,
        min_ms: Optional[float] = None,
        max_ms: Optional[float] = None,
        seed: Optional[int] = None
    ):
        self.min_ms = SIMULATION_CONFIG["min_step_duration_ms"] if min_ms is None else min_ms
        self.max_ms = SIMULATION_CONFIG["max_step_duration_ms"] if max_ms is None else max_ms
        if self.min_ms > self.max_ms:
            raise ValueError(f"min_ms ({self.min_ms}) must not exceed max_ms ({self.max_ms})")
        self._rng = random.Random(seed)

    def next_duration(self, node: WorkflowNode) -> float:
        return self._rng.uniform(self.min_ms, self.max_ms)


class FixedDurationSource:
    """Same duration for every node"""

    def __init__(self, duration_ms: float):
        self.duration_ms = duration_ms

    def next_duration(self, node: WorkflowNode) -> float:
        return self.duration_ms


def _build_successors_map(workflow: WorkflowGraph, node_lookup: Dict[str, WorkflowNode]) -> Dict[str, List[str]]:
    """Successor ids per node in edge order, skipping edges to missing nodes"""
    successors: Dict[str, List[str]] = {}
    for edge in workflow.edges:
        if edge.target not in node_lookup:
            logger.debug(f"Skipping dangling edge {edge.id} -> '{edge.target}'")
            continue
        successors.setdefault(edge.source, []).append(edge.target)
    return successors


def generate_steps(
    workflow: WorkflowGraph,
    durations: Optional[DurationSource] = None,
    start_time: Optional[float] = None
) -> List[SimulationStep]:
    """
    Turn a workflow into an ordered list of timed execution steps.

    BFS from the first start node with a FIFO queue. Each dequeued node not
    yet visited yields an executing step, the logical clock advances by the
    node's duration, then a completed step follows. End nodes enqueue no
    successors. The visited set bounds every node to one executing/completed
    pair, so cycles terminate. Independent branches come out strictly
    sequential.

    Args:
        workflow: graph to simulate (does not need to be valid)
        durations: duration source, random 500-1500 ms by default
        start_time: logical clock origin in ms, current time by default

    Returns:
        List[SimulationStep]; a single failed step when no start node exists
    """
    durations = durations or RandomDurationSource()
    timestamp = now_ms() if start_time is None else start_time

    start_nodes = workflow.start_nodes()
    if not start_nodes:
        logger.info("Step generation aborted: workflow has no start node")
        return [SimulationStep(
            node_id=None,
            timestamp=timestamp,
            status=StepStatus.FAILED,
            message=SIMULATION_CONFIG["no_start_message"]
        )]

    node_lookup = workflow.node_map()
    successors = _build_successors_map(workflow, node_lookup)

    steps: List[SimulationStep] = []
    visited: Set[str] = set()
    queue = deque([start_nodes[0]])

    while queue:
        current = queue.popleft()
        if current.id in visited:
            continue
        visited.add(current.id)

        duration = durations.next_duration(current)
        steps.append(SimulationStep(
            node_id=current.id,
            timestamp=timestamp,
            status=StepStatus.EXECUTING,
            message=f"Executing: {current.label}",
            duration=duration
        ))

        timestamp += duration

        steps.append(SimulationStep(
            node_id=current.id,
            timestamp=timestamp,
            status=StepStatus.COMPLETED,
            message=f"Completed: {current.label}"
        ))

        if current.kind == NodeKind.END:
            continue

        for target_id in successors.get(current.id, []):
            if target_id not in visited:
                queue.append(node_lookup[target_id])

    logger.debug(f"Generated {len(steps)} steps for {len(visited)} nodes")
    return steps
