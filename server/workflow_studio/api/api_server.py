from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
import logging
import uuid
from typing import Dict

from ..workflow import (
    WorkflowValidator,
    RandomDurationSource,
    generate_steps,
    export_snapshot,
    import_snapshot,
    layered_layout,
    compute_metrics,
    calculate_version_diff
)
from ..utils import ErrorResponse, handle_api_errors, format_sse_data
from ..config import API_CONFIG, LOGGING_CONFIG
from ..models import (
    WorkflowGraph,
    ValidationReport,
    SimulationRequest,
    SimulationStepsResponse,
    SpeedRequest,
    LayoutRequest,
    DiffRequest,
    WorkflowMetrics,
    VersionDiff,
    StepStatus,
    ImportRequest
)
from .simulation_session import SimulationSession

logging.basicConfig(level=LOGGING_CONFIG["level"])
logger = logging.getLogger(__name__)

app = FastAPI(
    title=API_CONFIG["title"],
    description="Approval/task workflow validation and simulation engine",
    version=API_CONFIG["version"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=API_CONFIG["cors_origins"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances (stateless services only)
validator = WorkflowValidator()

# Active simulation playbacks (multi-user support)
active_simulations: Dict[str, SimulationSession] = {}


@app.get("/")
async def health():
    return {"status": "Workflow Studio API is running", "version": API_CONFIG["version"]}


@app.post("/validate-workflow", response_model=ValidationReport)
@handle_api_errors(default_status=500)
async def validate_workflow(workflow: WorkflowGraph):
    """Structural validation: rule checks, reachability, cycle detection"""
    return validator.validate_workflow(workflow)


@app.post("/simulation-steps", response_model=SimulationStepsResponse)
@handle_api_errors(default_status=500)
async def simulation_steps(request: SimulationRequest):
    """Generate the ordered step list without playback"""
    steps = generate_steps(request.workflow, RandomDurationSource(seed=request.seed))
    total_duration = sum(
        step.duration or 0.0 for step in steps if step.status == StepStatus.EXECUTING
    )
    return SimulationStepsResponse(steps=steps, total_duration=total_duration)


@app.post("/simulate-workflow-stream")
async def simulate_workflow_stream(request: SimulationRequest):
    """
    Timed simulation playback (streaming)

    Steps are emitted on the runner's timer at the requested speed. The
    playback can be paused, resumed, re-speeded or stopped through the
    control endpoints using the simulation_id from the first event.
    """
    simulation_id = str(uuid.uuid4())

    async def generate_stream():
        try:
            logger.info(f"Starting simulation {simulation_id} with {len(request.workflow.nodes)} nodes")

            yield format_sse_data({
                'type': 'simulation_started',
                'simulation_id': simulation_id,
                'message': 'Workflow simulation started'
            })

            # Validate before playback; warnings never block
            report = validator.validate_workflow(request.workflow)
            if not report.valid:
                yield format_sse_data({
                    'type': 'validation_error',
                    'message': 'Workflow validation failed',
                    'errors': [e.model_dump(mode="json") for e in report.errors]
                })
                return

            session = SimulationSession(simulation_id, request.workflow, request.speed, request.seed)
            active_simulations[simulation_id] = session
            logger.info(f"Registered simulation {simulation_id} for playback control")

            async for event in session.events():
                yield format_sse_data(event)

        except Exception as e:
            logger.error(f"Streaming simulation {simulation_id} failed: {e}")
            yield format_sse_data({'type': 'error', 'message': str(e)})
        finally:
            session = active_simulations.pop(simulation_id, None)
            if session is not None:
                # Client disconnects must not leave a timer armed
                session.runner.reset()
                logger.info(f"Cleaned up simulation {simulation_id}")

    return StreamingResponse(
        generate_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive"
        }
    )


def _get_session(simulation_id: str) -> SimulationSession:
    session = active_simulations.get(simulation_id)
    if session is None:
        raise ErrorResponse.not_found(f"Simulation {simulation_id}")
    return session


@app.post("/stop-simulation/{simulation_id}")
async def stop_simulation(simulation_id: str):
    """
    Stop a simulation playback

    Stopping an already finished or unknown simulation is reported as success.
    """
    if simulation_id not in active_simulations:
        logger.info(f"Simulation {simulation_id} not found or already completed")
        return {"success": True, "message": "Simulation already completed or stopped."}

    active_simulations[simulation_id].stop()
    logger.info(f"Stop signal sent to simulation {simulation_id}")
    return {"success": True, "message": "Simulation stopped."}


@app.post("/pause-simulation/{simulation_id}")
@handle_api_errors(default_status=500)
async def pause_simulation(simulation_id: str):
    session = _get_session(simulation_id)
    session.pause()
    return {"success": True, "state": session.runner.state.value, "cursor": session.runner.cursor}


@app.post("/resume-simulation/{simulation_id}")
@handle_api_errors(default_status=500)
async def resume_simulation(simulation_id: str):
    session = _get_session(simulation_id)
    session.resume()
    return {"success": True, "state": session.runner.state.value, "cursor": session.runner.cursor}


@app.post("/simulation-speed/{simulation_id}")
@handle_api_errors(default_status=500)
async def set_simulation_speed(simulation_id: str, request: SpeedRequest):
    session = _get_session(simulation_id)
    session.set_speed(request.speed)
    return {"success": True, "speed": request.speed.value}


@app.post("/import-workflow", response_model=WorkflowGraph)
@handle_api_errors(default_status=500)
async def import_workflow(request: ImportRequest):
    """Parse an exported snapshot; malformed payloads are rejected with 400"""
    return import_snapshot(request.snapshot)


@app.post("/export-workflow")
@handle_api_errors(default_status=500)
async def export_workflow(workflow: WorkflowGraph):
    return export_snapshot(workflow)


@app.post("/layout-workflow", response_model=WorkflowGraph)
@handle_api_errors(default_status=500)
async def layout_workflow(request: LayoutRequest):
    nodes = layered_layout(request.workflow.nodes, request.workflow.edges, request.direction)
    return WorkflowGraph(nodes=nodes, edges=request.workflow.edges)


@app.post("/workflow-metrics", response_model=WorkflowMetrics)
@handle_api_errors(default_status=500)
async def workflow_metrics(workflow: WorkflowGraph):
    return compute_metrics(workflow, validator.validate(workflow))


@app.post("/workflow-diff", response_model=VersionDiff)
@handle_api_errors(default_status=500)
async def workflow_diff(request: DiffRequest):
    return calculate_version_diff(request.current, request.version)
