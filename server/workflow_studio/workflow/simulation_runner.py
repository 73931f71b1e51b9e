"""
Simulation runner - timed, pausable playback of generated simulation steps
"""

import logging
from typing import List, Optional

from ..config import SIMULATION_CONFIG
from ..models import (
    WorkflowGraph, SimulationStep, SimulationSpeed, StepStatus, RunnerState
)
from .scheduler import CancelToken, Scheduler
from .step_generator import DurationSource, generate_steps

logger = logging.getLogger(__name__)


class SimulationObserver:
    """
    Receives playback notifications. Return values are ignored.

    Subclass and override the hooks you need; the defaults do nothing.
    """

    def on_step(self, step: SimulationStep) -> None:
        pass

    def on_complete(self) -> None:
        pass

    def on_node_activate(self, node_id: Optional[str]) -> None:
        pass

    def on_edge_activate(self, edge_id: Optional[str]) -> None:
        pass


class SimulationRunner:
    """
    Plays a workflow's step list on a cooperative timer.

    States: idle -> running -> (paused <-> running) -> completed.
    Only one advance is ever pending. Pausing cancels it without losing the
    cursor, resetting cancels it and zeroes the cursor. Every run carries a
    generation number; an advance belonging to an older run is dropped, which
    makes ``reset`` and ``start`` safe to call from inside observer callbacks.
    """

    def __init__(
        self,
        workflow: WorkflowGraph,
        observer: SimulationObserver,
        scheduler: Scheduler,
        durations: Optional[DurationSource] = None,
        speed: SimulationSpeed = SimulationSpeed.NORMAL
    ):
        self.workflow = workflow
        self.observer = observer
        self.scheduler = scheduler
        self.durations = durations
        self.speed = SimulationSpeed(speed)

        self.steps: List[SimulationStep] = []
        self.cursor = 0
        self.state = RunnerState.IDLE
        self._pending: Optional[CancelToken] = None
        self._generation = 0

    @property
    def is_paused(self) -> bool:
        return self.state == RunnerState.PAUSED

    @property
    def is_running(self) -> bool:
        return self.state in (RunnerState.RUNNING, RunnerState.PAUSED)

    @property
    def delay_ms(self) -> float:
        return SIMULATION_CONFIG["speed_delays_ms"][self.speed.value]

    def start(self):
        """Regenerate steps with fresh durations and play from the first one"""
        self._begin_run()
        self.state = RunnerState.RUNNING
        logger.info(f"Simulation started with {len(self.steps)} steps at {self.speed.value} speed")
        self._advance()

    def pause(self):
        if self.state != RunnerState.RUNNING:
            return
        self._cancel_pending()
        self.state = RunnerState.PAUSED
        logger.info(f"Simulation paused at step {self.cursor}/{len(self.steps)}")

    def resume(self):
        """Continue from the retained cursor, emitting the next step right away"""
        if self.state != RunnerState.PAUSED:
            return
        self.state = RunnerState.RUNNING
        logger.info(f"Simulation resumed at step {self.cursor}/{len(self.steps)}")
        self._advance()

    def reset(self):
        """Cancel playback and clear highlights, whatever the current state"""
        self._cancel_pending()
        self._generation += 1
        self.cursor = 0
        self.state = RunnerState.IDLE
        self.observer.on_node_activate(None)
        self.observer.on_edge_activate(None)

    def set_speed(self, speed: SimulationSpeed):
        """Applies to advances scheduled from now on; a pending delay keeps its length"""
        self.speed = SimulationSpeed(speed)

    def step_forward(self):
        """
        Emit exactly one step and stay paused.

        From idle or completed a new paused run is prepared first.
        """
        if self.state in (RunnerState.IDLE, RunnerState.COMPLETED):
            self._begin_run()
            self.state = RunnerState.PAUSED
        elif self.state == RunnerState.RUNNING:
            self.pause()

        generation = self._generation
        if not self._emit_next():
            return
        if generation == self._generation and self.cursor >= len(self.steps):
            self._finish()

    def _begin_run(self):
        self._cancel_pending()
        self._generation += 1
        self.steps = generate_steps(self.workflow, self.durations)
        self.cursor = 0

    def _cancel_pending(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _advance(self):
        self._pending = None
        if self.state != RunnerState.RUNNING:
            # Paused, reset or already completed
            return
        if self.cursor >= len(self.steps):
            self._finish()
            return

        generation = self._generation
        self._emit_next()

        # A callback may have paused, reset or restarted the run
        if generation != self._generation or self.state != RunnerState.RUNNING:
            return

        if self.cursor >= len(self.steps):
            self._finish()
        else:
            self._pending = self.scheduler.schedule_after(self.delay_ms, self._advance)

    def _emit_next(self) -> bool:
        if self.cursor >= len(self.steps):
            return False

        step = self.steps[self.cursor]
        previous = self.steps[self.cursor - 1] if self.cursor > 0 else None
        self.cursor += 1

        self.observer.on_step(step)

        if step.status == StepStatus.EXECUTING:
            self.observer.on_node_activate(step.node_id)
            if (previous is not None
                    and previous.status == StepStatus.COMPLETED
                    and previous.node_id != step.node_id):
                edge = self.workflow.find_edge_between(previous.node_id, step.node_id)
                if edge is not None:
                    self.observer.on_edge_activate(edge.id)
        return True

    def _finish(self):
        if self.state == RunnerState.COMPLETED:
            return
        self._cancel_pending()
        self.state = RunnerState.COMPLETED
        logger.info(f"Simulation completed after {len(self.steps)} steps")
        self.observer.on_node_activate(None)
        self.observer.on_edge_activate(None)
        self.observer.on_complete()
