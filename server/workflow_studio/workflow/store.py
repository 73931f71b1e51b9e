"""
Workflow store - the single owner of graph, validation, history and simulation state
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..config import LAYOUT_CONFIG
from ..models import (
    WorkflowGraph, WorkflowNode, WorkflowEdge, NodeKind, NODE_CLASSES,
    Position, Severity, ValidationError, SimulationState, SimulationStep,
    SimulationSpeed, StepStatus, LayoutDirection
)
from ..utils import DuplicateElementError, ElementNotFoundError, generate_id, now_ms
from .history import HistoryManager
from .layout import LayoutFunction, layered_layout
from .scheduler import Scheduler
from .simulation_runner import SimulationObserver, SimulationRunner
from .snapshot import export_snapshot, import_snapshot
from .step_generator import DurationSource
from .validator import WorkflowValidator

logger = logging.getLogger(__name__)

Listener = Callable[["WorkflowStore"], None]

DEFAULT_LABELS = {
    NodeKind.START.value: "Start",
    NodeKind.TASK.value: "New Task",
    NodeKind.APPROVAL.value: "Approval Required",
    NodeKind.AUTOMATED.value: "Automated Step",
    NodeKind.END.value: "End",
}


class WorkflowStore(SimulationObserver):
    """
    Explicit state container for one workflow under edit.

    Its methods are the only mutation surface. Structural changes save the
    pre-mutation graph to history first; every change re-runs validation from
    scratch and then notifies subscribers. The store is also the simulation
    runner's observer and mirrors playback into ``simulation`` and the
    transient node flags.
    """

    def __init__(
        self,
        workflow: Optional[WorkflowGraph] = None,
        validator: Optional[WorkflowValidator] = None,
        history: Optional[HistoryManager] = None
    ):
        self.workflow = workflow.model_copy(deep=True) if workflow is not None else WorkflowGraph()
        self.validator = validator or WorkflowValidator()
        self.history = history or HistoryManager()
        self.validation_errors: List[ValidationError] = []
        self.simulation = SimulationState()
        self.clipboard: Optional[WorkflowGraph] = None
        self.selected_node_id: Optional[str] = None
        self.selected_edge_id: Optional[str] = None

        self._runner: Optional[SimulationRunner] = None
        self._listeners: List[Listener] = []

        self.run_validation()

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> List[WorkflowNode]:
        return self.workflow.nodes

    @property
    def edges(self) -> List[WorkflowEdge]:
        return self.workflow.edges

    @property
    def is_valid(self) -> bool:
        return not any(e.severity == Severity.ERROR for e in self.validation_errors)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a function that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_node_errors(self, node_id: str) -> List[ValidationError]:
        return [e for e in self.validation_errors if e.node_id == node_id]

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    def run_validation(self):
        self.validation_errors = self.validator.validate(self.workflow)

    def _commit(self):
        self.run_validation()
        self._notify()

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _require_node(self, node_id: str) -> WorkflowNode:
        node = self.workflow.get_node(node_id)
        if node is None:
            raise ElementNotFoundError("Node", node_id)
        return node

    def create_node(
        self,
        kind: str,
        position: Optional[Position] = None,
        data: Optional[Dict[str, Any]] = None
    ) -> WorkflowNode:
        """Build (without adding) a node with a fresh id and the default label for its kind"""
        kind = NodeKind(kind).value
        node_data = {"label": DEFAULT_LABELS[kind]}
        node_data.update(data or {})
        return NODE_CLASSES[kind].model_validate({
            "id": generate_id(kind),
            "position": position or Position(),
            "data": node_data
        })

    def add_node(self, node: WorkflowNode) -> WorkflowNode:
        if self.workflow.get_node(node.id) is not None:
            raise DuplicateElementError("Node", node.id)
        self.history.save(self.workflow)
        self.workflow.nodes.append(node)
        self._commit()
        return node

    def update_node(self, node_id: str, changes: Dict[str, Any]) -> WorkflowNode:
        """Patch a node's data fields (re-validated by the node's data model)"""
        node = self._require_node(node_id)
        merged = node.data.model_dump()
        merged.update(changes)
        node.data = type(node.data).model_validate(merged)
        self._commit()
        return node

    def set_node_positions(self, positions: Dict[str, Position]):
        """Move nodes (drag); not recorded in history"""
        for node_id, position in positions.items():
            self._require_node(node_id).position = Position.model_validate(position)
        self._commit()

    def delete_node(self, node_id: str):
        """Remove a node and every edge touching it"""
        self._require_node(node_id)
        self.history.save(self.workflow)
        self.workflow.nodes = [n for n in self.workflow.nodes if n.id != node_id]
        self.workflow.edges = [
            e for e in self.workflow.edges
            if e.source != node_id and e.target != node_id
        ]
        if self.selected_node_id == node_id:
            self.selected_node_id = None
        self._commit()

    def duplicate_node(self, node_id: str) -> WorkflowNode:
        node = self._require_node(node_id)
        offset = LAYOUT_CONFIG["paste_offset"]
        self.history.save(self.workflow)
        duplicate = node.model_copy(deep=True, update={
            "id": generate_id(node.kind),
            "position": Position(x=node.position.x + offset, y=node.position.y + offset)
        })
        duplicate.data.label = f"{node.data.label} (copy)"
        self.workflow.nodes.append(duplicate)
        self._commit()
        return duplicate

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def _require_edge(self, edge_id: str) -> WorkflowEdge:
        edge = self.workflow.get_edge(edge_id)
        if edge is None:
            raise ElementNotFoundError("Edge", edge_id)
        return edge

    def connect(self, source: str, target: str, data: Optional[Dict[str, Any]] = None) -> WorkflowEdge:
        """Add an edge with a fresh id between two nodes"""
        edge = WorkflowEdge.model_validate({
            "id": generate_id("edge"),
            "source": source,
            "target": target,
            "data": data or {"weight": 1}
        })
        return self.add_edge(edge)

    def add_edge(self, edge: WorkflowEdge) -> WorkflowEdge:
        """Dangling endpoints are accepted and reported by validation"""
        if self.workflow.get_edge(edge.id) is not None:
            raise DuplicateElementError("Edge", edge.id)
        self.history.save(self.workflow)
        self.workflow.edges.append(edge)
        self._commit()
        return edge

    def update_edge(self, edge_id: str, changes: Dict[str, Any]) -> WorkflowEdge:
        edge = self._require_edge(edge_id)
        merged = edge.data.model_dump()
        merged.update(changes)
        edge.data = type(edge.data).model_validate(merged)
        self._commit()
        return edge

    def delete_edge(self, edge_id: str):
        self._require_edge(edge_id)
        self.history.save(self.workflow)
        self.workflow.edges = [e for e in self.workflow.edges if e.id != edge_id]
        if self.selected_edge_id == edge_id:
            self.selected_edge_id = None
        self._commit()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_node(self, node_id: Optional[str]):
        self.selected_node_id = node_id
        self.selected_edge_id = None
        self._notify()

    def select_edge(self, edge_id: Optional[str]):
        self.selected_edge_id = edge_id
        self.selected_node_id = None
        self._notify()

    def delete_selected(self):
        if self.selected_node_id:
            self.delete_node(self.selected_node_id)
        elif self.selected_edge_id:
            self.delete_edge(self.selected_edge_id)

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def apply_layout(
        self,
        direction: LayoutDirection = LayoutDirection.TOP_BOTTOM,
        layout_fn: Optional[LayoutFunction] = None
    ):
        """Reflow node positions; only the returned positions are consumed"""
        layout_fn = layout_fn or layered_layout
        positioned = layout_fn(self.workflow.nodes, self.workflow.edges, LayoutDirection(direction))
        positions = {node.id: node.position for node in positioned}

        self.history.save(self.workflow)
        for node in self.workflow.nodes:
            if node.id in positions:
                node.position = Position.model_validate(positions[node.id])
        logger.info(f"Applied {LayoutDirection(direction).value} layout to {len(positions)} nodes")
        self._commit()

    def import_snapshot(self, payload: Any) -> WorkflowGraph:
        """Replace the workflow wholesale; a rejected payload leaves the store untouched"""
        workflow = import_snapshot(payload)
        self.reset_simulation()
        self.history.save(self.workflow)
        self.workflow = workflow
        self.selected_node_id = None
        self.selected_edge_id = None
        self._commit()
        return self.workflow

    def export_snapshot(self) -> Dict[str, Any]:
        return export_snapshot(self.workflow)

    def copy_nodes(self, node_ids: Iterable[str]):
        """Copy nodes and the edges running between them to the clipboard"""
        selected = set(node_ids)
        self.clipboard = WorkflowGraph(
            nodes=[n for n in self.workflow.nodes if n.id in selected],
            edges=[
                e for e in self.workflow.edges
                if e.source in selected and e.target in selected
            ]
        ).model_copy(deep=True)

    def paste_nodes(self, position: Position) -> List[WorkflowNode]:
        """Paste the clipboard with fresh ids, anchored at ``position``"""
        if self.clipboard is None or not self.clipboard.nodes:
            return []

        self.history.save(self.workflow)
        anchor = self.clipboard.nodes[0].position
        id_map: Dict[str, str] = {}
        new_nodes = []
        for node in self.clipboard.nodes:
            new_id = generate_id(node.kind)
            id_map[node.id] = new_id
            new_nodes.append(node.model_copy(deep=True, update={
                "id": new_id,
                "position": Position(
                    x=position.x + (node.position.x - anchor.x),
                    y=position.y + (node.position.y - anchor.y)
                )
            }))

        new_edges = [
            edge.model_copy(deep=True, update={
                "id": generate_id("edge"),
                "source": id_map.get(edge.source, edge.source),
                "target": id_map.get(edge.target, edge.target)
            })
            for edge in self.clipboard.edges
        ]

        self.workflow.nodes.extend(new_nodes)
        self.workflow.edges.extend(new_edges)
        self._commit()
        return new_nodes

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def save_to_history(self):
        self.history.save(self.workflow)

    def undo(self) -> bool:
        restored = self.history.undo(self.workflow)
        if restored is None:
            return False
        self.workflow = restored
        self._commit()
        return True

    def redo(self) -> bool:
        restored = self.history.redo()
        if restored is None:
            return False
        self.workflow = restored
        self._commit()
        return True

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def start_simulation(
        self,
        scheduler: Scheduler,
        durations: Optional[DurationSource] = None
    ) -> SimulationRunner:
        """Clear previous run state and play the current workflow"""
        if self._runner is not None:
            self._runner.reset()
        self._clear_simulation()

        self._runner = SimulationRunner(
            self.workflow.model_copy(deep=True),
            self,
            scheduler,
            durations=durations,
            speed=self.simulation.speed
        )
        self.simulation.is_running = True
        self.simulation.is_paused = False
        self.simulation.start_time = now_ms()
        self._notify()
        self._runner.start()
        return self._runner

    def pause_simulation(self):
        if self._runner is not None and self._runner.is_running:
            self._runner.pause()
            self.simulation.is_paused = True
            self._notify()

    def resume_simulation(self):
        if self._runner is not None and self._runner.is_paused:
            self.simulation.is_paused = False
            self._notify()
            self._runner.resume()

    def step_simulation(self, scheduler: Scheduler, durations: Optional[DurationSource] = None):
        """Emit a single step, starting a paused run if none is active"""
        if self._runner is None or not self._runner.is_running:
            if self._runner is not None:
                self._runner.reset()
            self._clear_simulation()
            self._runner = SimulationRunner(
                self.workflow.model_copy(deep=True),
                self,
                scheduler,
                durations=durations,
                speed=self.simulation.speed
            )
            self.simulation.start_time = now_ms()
        self.simulation.is_running = True
        self.simulation.is_paused = True
        self._runner.step_forward()
        self._notify()

    def reset_simulation(self):
        if self._runner is not None:
            self._runner.reset()
        self._clear_simulation()
        self._notify()

    def set_simulation_speed(self, speed: SimulationSpeed):
        speed = SimulationSpeed(speed)
        if self._runner is not None:
            self._runner.set_speed(speed)
        self.simulation.speed = speed
        self._notify()

    def _clear_simulation(self):
        """Empty run state (keeping the chosen speed) and clear transient node flags"""
        self.simulation = SimulationState(speed=self.simulation.speed)
        for node in self.workflow.nodes:
            node.data.is_executing = False
            node.data.is_completed = False

    # SimulationObserver hooks

    def on_step(self, step: SimulationStep) -> None:
        self.simulation.steps.append(step)
        if step.node_id is not None and step.status == StepStatus.EXECUTING:
            node = self.workflow.get_node(step.node_id)
            if node is not None:
                node.data.execution_time = step.duration
        self._notify()

    def on_node_activate(self, node_id: Optional[str]) -> None:
        previous = self.simulation.current_node_id
        for node in self.workflow.nodes:
            node.data.is_executing = node.id == node_id
            if previous == node.id and node_id != node.id:
                node.data.is_completed = True
        self.simulation.current_node_id = node_id
        self._notify()

    def on_edge_activate(self, edge_id: Optional[str]) -> None:
        self.simulation.active_edge_id = edge_id
        self._notify()

    def on_complete(self) -> None:
        self.simulation.is_running = False
        self.simulation.is_paused = False
        self.simulation.end_time = now_ms()
        self._notify()
