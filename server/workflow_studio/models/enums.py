"""Enum types for workflow models."""

from enum import Enum
from typing import List


class NodeKind(str, Enum):
    START = "start"
    TASK = "task"
    APPROVAL = "approval"
    AUTOMATED = "automated"
    END = "end"

    @classmethod
    def get_all_kinds(cls) -> List[str]:
        """All node kinds in palette order"""
        return [kind.value for kind in cls]


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class StepStatus(str, Enum):
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class SimulationSpeed(str, Enum):
    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"


class RunnerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class ApprovalType(str, Enum):
    ANY = "any"
    ALL = "all"
    MAJORITY = "majority"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StartTrigger(str, Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    EVENT = "event"


class EndOutcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class LayoutDirection(str, Enum):
    TOP_BOTTOM = "TB"
    LEFT_RIGHT = "LR"
