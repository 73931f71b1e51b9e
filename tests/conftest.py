"""
Pytest configuration and fixtures
"""
import pytest
import requests
import os
import sys
import time
from typing import Generator, List, Optional

# Add server path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'server'))

from workflow_studio.models import (
    WorkflowGraph, WorkflowEdge, StartNode, TaskNode, ApprovalNode, AutomatedNode, EndNode,
    SimulationStep
)
from workflow_studio.workflow import FixedDurationSource, VirtualScheduler, SimulationObserver


@pytest.fixture(scope="session")
def api_base_url() -> str:
    """API base URL fixture"""
    api_host = os.getenv("API_HOST", "localhost")
    api_port = os.getenv("API_PORT", "5001")
    return f"http://{api_host}:{api_port}"


@pytest.fixture(scope="session")
def api_client(api_base_url: str) -> Generator[requests.Session, None, None]:
    """HTTP client fixture for a running server; skips when none is reachable"""
    session = requests.Session()

    max_retries = 3
    for i in range(max_retries):
        try:
            response = session.get(f"{api_base_url}/", timeout=2)
            if response.status_code == 200:
                break
        except requests.exceptions.ConnectionError:
            if i == max_retries - 1:
                session.close()
                pytest.skip(f"Server not available at {api_base_url}")
            time.sleep(1)

    yield session
    session.close()


def edge(edge_id: str, source: str, target: str, **data) -> WorkflowEdge:
    return WorkflowEdge(id=edge_id, source=source, target=target, data=data)


@pytest.fixture
def linear_workflow() -> WorkflowGraph:
    """Start -> Task -> End, fully configured"""
    return WorkflowGraph(
        nodes=[
            StartNode(id="start", data={"label": "Begin"}),
            TaskNode(id="task", data={"label": "Review", "assignee": "alice"}),
            EndNode(id="end", data={"label": "Done"}),
        ],
        edges=[
            edge("e1", "start", "task"),
            edge("e2", "task", "end"),
        ]
    )


@pytest.fixture
def branching_workflow() -> WorkflowGraph:
    """Start fans out to an approval and an automation which both reach End"""
    return WorkflowGraph(
        nodes=[
            StartNode(id="start", data={"label": "Begin"}),
            ApprovalNode(id="approve", data={"label": "Manager sign-off", "approvers": ["bob", "carol"]}),
            AutomatedNode(id="notify", data={
                "label": "Notify HR",
                "action_id": "send_email",
                "params": {"to": "hr@example.com"}
            }),
            EndNode(id="end", data={"label": "Done"}),
        ],
        edges=[
            edge("e1", "start", "approve", probability=0.7),
            edge("e2", "start", "notify", probability=0.3),
            edge("e3", "approve", "end"),
            edge("e4", "notify", "end"),
        ]
    )


@pytest.fixture
def durations() -> FixedDurationSource:
    return FixedDurationSource(1000)


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


class RecordingObserver(SimulationObserver):
    """Collects every runner notification in order"""

    def __init__(self):
        self.events: List[tuple] = []
        self.steps: List[SimulationStep] = []
        self.completions = 0

    def on_step(self, step: SimulationStep) -> None:
        self.steps.append(step)
        self.events.append(("step", step.node_id, step.status.value))

    def on_complete(self) -> None:
        self.completions += 1
        self.events.append(("complete",))

    def on_node_activate(self, node_id: Optional[str]) -> None:
        self.events.append(("node", node_id))

    def on_edge_activate(self, edge_id: Optional[str]) -> None:
        self.events.append(("edge", edge_id))

    def activated_edges(self) -> List[str]:
        return [e[1] for e in self.events if e[0] == "edge" and e[1] is not None]


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()
