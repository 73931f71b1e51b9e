"""
Simulation runner playback tests
"""
import asyncio
import pytest

from conftest import RecordingObserver
from workflow_studio.config import SIMULATION_CONFIG
from workflow_studio.models import WorkflowGraph, RunnerState, SimulationSpeed, StepStatus
from workflow_studio.workflow import (
    SimulationRunner, SimulationObserver, AsyncioScheduler, FixedDurationSource
)


@pytest.fixture
def runner(linear_workflow, observer, scheduler, durations):
    return SimulationRunner(linear_workflow, observer, scheduler, durations=durations)


class TestPlayback:
    """Timed emission of generated steps"""

    def test_full_run_event_order(self, runner, observer, scheduler):
        runner.start()
        scheduler.run_until_idle()

        assert observer.events == [
            ("step", "start", "executing"), ("node", "start"),
            ("step", "start", "completed"),
            ("step", "task", "executing"), ("node", "task"), ("edge", "e1"),
            ("step", "task", "completed"),
            ("step", "end", "executing"), ("node", "end"), ("edge", "e2"),
            ("step", "end", "completed"),
            ("node", None), ("edge", None), ("complete",),
        ]
        assert runner.state == RunnerState.COMPLETED
        assert scheduler.now == 5000

    def test_first_step_is_emitted_synchronously(self, runner, observer, scheduler):
        runner.start()

        assert len(observer.steps) == 1
        assert runner.cursor == 1
        assert scheduler.next_due() == 1000

    def test_completion_fires_exactly_once(self, runner, observer, scheduler):
        runner.start()
        scheduler.run_until_idle()
        runner.pause()
        runner.resume()
        scheduler.run_until_idle()

        assert observer.completions == 1
        assert scheduler.pending_count == 0

    def test_workflow_without_start_completes_immediately(self, observer, scheduler):
        runner = SimulationRunner(WorkflowGraph(), observer, scheduler)
        runner.start()

        assert observer.events == [
            ("step", None, "failed"), ("node", None), ("edge", None), ("complete",)
        ]
        assert scheduler.pending_count == 0
        assert runner.state == RunnerState.COMPLETED

    def test_branch_switch_without_connecting_edge_activates_no_edge(self, branching_workflow, observer, scheduler, durations):
        """approve -> notify are siblings, so no edge lights up between them"""
        runner = SimulationRunner(branching_workflow, observer, scheduler, durations=durations)
        runner.start()
        scheduler.run_until_idle()

        assert observer.activated_edges() == ["e1", "e4"]

    def test_restart_regenerates_steps(self, runner, observer, scheduler):
        runner.start()
        scheduler.advance(2000)
        runner.start()
        scheduler.run_until_idle()

        assert runner.cursor == 6
        assert observer.completions == 1
        assert len(observer.steps) == 3 + 6


class TestPauseResume:
    """Pause retains the cursor, resume continues from it"""

    def test_pause_stops_emission(self, runner, observer, scheduler):
        runner.start()
        scheduler.advance(1000)
        runner.pause()
        scheduler.advance(60_000)

        assert len(observer.steps) == 2
        assert runner.is_paused
        assert runner.is_running
        assert scheduler.pending_count == 0

    def test_resume_emits_next_step_immediately(self, runner, observer, scheduler):
        runner.start()
        scheduler.advance(1000)
        runner.pause()
        runner.resume()

        assert len(observer.steps) == 3
        assert observer.steps[2].node_id == "task"
        scheduler.run_until_idle()
        assert [s.node_id for s in observer.steps] == ["start", "start", "task", "task", "end", "end"]

    def test_pause_when_idle_is_ignored(self, runner):
        runner.pause()
        assert runner.state == RunnerState.IDLE

    def test_resume_when_not_paused_is_ignored(self, runner, observer):
        runner.resume()
        assert observer.events == []


class TestReset:
    """Reset cancels playback from any state"""

    def test_reset_clears_cursor_and_highlights(self, runner, observer, scheduler):
        runner.start()
        scheduler.advance(2000)
        runner.reset()

        assert runner.cursor == 0
        assert runner.state == RunnerState.IDLE
        assert observer.events[-2:] == [("node", None), ("edge", None)]
        assert scheduler.pending_count == 0

    def test_reset_from_inside_callback(self, linear_workflow, scheduler, durations):
        """No further step is emitted once an observer resets mid-emission"""

        class ResettingObserver(SimulationObserver):
            def __init__(self):
                self.steps = []

            def on_step(self, step):
                self.steps.append(step)
                if step.status == StepStatus.COMPLETED:
                    runner.reset()

        resetting = ResettingObserver()
        runner = SimulationRunner(linear_workflow, resetting, scheduler, durations=durations)
        runner.start()
        scheduler.run_until_idle()

        assert len(resetting.steps) == 2
        assert runner.state == RunnerState.IDLE
        assert scheduler.pending_count == 0


class TestSpeed:
    """Speed changes apply to the next scheduled delay"""

    def test_delays_follow_speed(self, linear_workflow, observer, scheduler, durations):
        runner = SimulationRunner(linear_workflow, observer, scheduler, durations=durations, speed=SimulationSpeed.FAST)
        runner.start()
        assert scheduler.next_due() == 500

        runner.set_speed(SimulationSpeed.SLOW)
        assert scheduler.next_due() == 500

        scheduler.advance(500)
        assert scheduler.next_due() == 500 + 2000

    def test_speed_accepts_plain_values(self, runner):
        runner.set_speed("fast")
        assert runner.delay_ms == 500


class TestStepForward:
    """Manual single stepping"""

    def test_step_forward_from_idle(self, runner, observer, scheduler):
        runner.step_forward()

        assert len(observer.steps) == 1
        assert runner.is_paused
        assert scheduler.pending_count == 0

    def test_step_forward_through_completion(self, runner, observer):
        for _ in range(6):
            runner.step_forward()

        assert runner.state == RunnerState.COMPLETED
        assert observer.completions == 1

    def test_step_forward_pauses_running_playback(self, runner, observer, scheduler):
        runner.start()
        runner.step_forward()

        assert len(observer.steps) == 2
        assert runner.is_paused
        assert scheduler.pending_count == 0


class TestAsyncioPlayback:
    """Playback on the real event loop"""

    @pytest.mark.asyncio
    async def test_runs_to_completion(self, linear_workflow, monkeypatch):
        monkeypatch.setitem(SIMULATION_CONFIG["speed_delays_ms"], "fast", 5)

        done = asyncio.Event()

        class CompletionObserver(RecordingObserver):
            def on_complete(self):
                super().on_complete()
                done.set()

        observer = CompletionObserver()
        runner = SimulationRunner(
            linear_workflow, observer, AsyncioScheduler(),
            durations=FixedDurationSource(100), speed=SimulationSpeed.FAST
        )
        runner.start()
        await asyncio.wait_for(done.wait(), timeout=5)

        assert len(observer.steps) == 6
        assert observer.completions == 1

    @pytest.mark.asyncio
    async def test_reset_cancels_pending_timer(self, linear_workflow):
        observer = RecordingObserver()
        runner = SimulationRunner(linear_workflow, observer, AsyncioScheduler(), durations=FixedDurationSource(100))
        runner.start()
        runner.reset()
        await asyncio.sleep(0.05)

        assert len(observer.steps) == 1
        assert observer.completions == 0
