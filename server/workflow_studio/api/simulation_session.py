"""
Streaming simulation sessions - bridge runner callbacks to an SSE event queue
"""

import asyncio
import logging
from typing import Any, AsyncGenerator, Dict, Optional

from ..models import WorkflowGraph, SimulationSpeed, SimulationStep
from ..workflow import (
    AsyncioScheduler, RandomDurationSource, SimulationObserver, SimulationRunner
)

logger = logging.getLogger(__name__)

TERMINAL_EVENTS = ("complete", "stopped")


class SimulationSession(SimulationObserver):
    """One streamed playback; observer callbacks become queued events"""

    def __init__(
        self,
        simulation_id: str,
        workflow: WorkflowGraph,
        speed: SimulationSpeed = SimulationSpeed.NORMAL,
        seed: Optional[int] = None
    ):
        self.simulation_id = simulation_id
        self.queue: asyncio.Queue = asyncio.Queue()
        self.runner = SimulationRunner(
            workflow,
            self,
            AsyncioScheduler(),
            durations=RandomDurationSource(seed=seed),
            speed=speed
        )
        self._stopped = False

    def on_step(self, step: SimulationStep) -> None:
        self.queue.put_nowait({"type": "step", "step": step.model_dump(mode="json")})

    def on_node_activate(self, node_id: Optional[str]) -> None:
        self.queue.put_nowait({"type": "node_active", "node_id": node_id})

    def on_edge_activate(self, edge_id: Optional[str]) -> None:
        self.queue.put_nowait({"type": "edge_active", "edge_id": edge_id})

    def on_complete(self) -> None:
        self.queue.put_nowait({
            "type": "complete",
            "simulation_id": self.simulation_id,
            "total_steps": len(self.runner.steps)
        })

    def pause(self):
        self.runner.pause()
        self.queue.put_nowait({"type": "paused", "cursor": self.runner.cursor})

    def resume(self):
        self.queue.put_nowait({"type": "resumed", "cursor": self.runner.cursor})
        self.runner.resume()

    def set_speed(self, speed: SimulationSpeed):
        self.runner.set_speed(speed)
        self.queue.put_nowait({"type": "speed_changed", "speed": SimulationSpeed(speed).value})

    def stop(self):
        """Cancel playback; the stream closes after the queued events"""
        if self._stopped:
            return
        self._stopped = True
        logger.info(f"Stopping simulation {self.simulation_id} at step {self.runner.cursor}/{len(self.runner.steps)}")
        self.runner.reset()
        self.queue.put_nowait({"type": "stopped", "simulation_id": self.simulation_id})

    async def events(self) -> AsyncGenerator[Dict[str, Any], None]:
        """Start playback and yield events until completion or stop"""
        self.runner.start()
        while True:
            event = await self.queue.get()
            yield event
            if event["type"] in TERMINAL_EVENTS:
                break
