"""Workflow validation, simulation and editing logic."""

from .validator import WorkflowValidator, validate
from .step_generator import (
    DurationSource,
    RandomDurationSource,
    FixedDurationSource,
    generate_steps
)
from .scheduler import (
    CancelToken,
    Scheduler,
    AsyncioScheduler,
    VirtualScheduler
)
from .simulation_runner import SimulationObserver, SimulationRunner
from .history import HistoryManager
from .snapshot import (
    export_snapshot,
    export_snapshot_json,
    import_snapshot,
    import_snapshot_json,
    calculate_version_diff
)
from .layout import LayoutFunction, layered_layout
from .metrics import compute_metrics
from .store import WorkflowStore

__all__ = [
    'WorkflowValidator',
    'validate',
    'DurationSource',
    'RandomDurationSource',
    'FixedDurationSource',
    'generate_steps',
    'CancelToken',
    'Scheduler',
    'AsyncioScheduler',
    'VirtualScheduler',
    'SimulationObserver',
    'SimulationRunner',
    'HistoryManager',
    'export_snapshot',
    'export_snapshot_json',
    'import_snapshot',
    'import_snapshot_json',
    'calculate_version_diff',
    'LayoutFunction',
    'layered_layout',
    'compute_metrics',
    'WorkflowStore'
]
