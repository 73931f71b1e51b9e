"""
Workflow snapshot export/import and version comparison
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from ..models import WorkflowGraph, VersionDiff
from ..utils import SnapshotImportError

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


def export_snapshot(workflow: WorkflowGraph) -> Dict[str, Any]:
    """Serializable representation of the workflow"""
    payload = workflow.model_dump(mode="json")
    return {
        "version": SNAPSHOT_VERSION,
        "exported_at": datetime.now(timezone.utc).isoformat(),
        "nodes": payload["nodes"],
        "edges": payload["edges"]
    }


def export_snapshot_json(workflow: WorkflowGraph) -> str:
    return json.dumps(export_snapshot(workflow), indent=2)


def _check_shape(payload: Any) -> List[str]:
    """Minimal shape checks; any problem rejects the whole payload"""
    if not isinstance(payload, dict):
        return ["Snapshot must be an object"]

    problems = []
    nodes = payload.get("nodes")
    edges = payload.get("edges")
    if not isinstance(nodes, list):
        problems.append("'nodes' must be a list")
    if not isinstance(edges, list):
        problems.append("'edges' must be a list")
    if problems:
        return problems

    for index, node in enumerate(nodes):
        if not isinstance(node, dict):
            problems.append(f"nodes[{index}] must be an object")
            continue
        if not isinstance(node.get("id"), str):
            problems.append(f"nodes[{index}].id must be a string")
        if not isinstance(node.get("kind"), str):
            problems.append(f"nodes[{index}].kind must be a string")
        if not isinstance(node.get("position"), dict):
            problems.append(f"nodes[{index}].position must be an object")

    for index, edge in enumerate(edges):
        if not isinstance(edge, dict):
            problems.append(f"edges[{index}] must be an object")
            continue
        for field in ("id", "source", "target"):
            if not isinstance(edge.get(field), str):
                problems.append(f"edges[{index}].{field} must be a string")

    return problems


def import_snapshot(payload: Any) -> WorkflowGraph:
    """
    Build a workflow from an exported payload.

    Raises:
        SnapshotImportError: the payload is rejected as a whole, no partial
            workflow is ever returned
    """
    problems = _check_shape(payload)
    if problems:
        logger.warning(f"Snapshot import rejected: {problems}")
        raise SnapshotImportError("Invalid workflow snapshot: " + "; ".join(problems), problems)

    try:
        workflow = WorkflowGraph.model_validate({"nodes": payload["nodes"], "edges": payload["edges"]})
    except PydanticValidationError as e:
        problems = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        logger.warning(f"Snapshot import rejected: {problems}")
        raise SnapshotImportError("Invalid workflow snapshot: " + "; ".join(problems), problems) from e

    logger.info(f"Imported workflow snapshot with {len(workflow.nodes)} nodes and {len(workflow.edges)} edges")
    return workflow


def import_snapshot_json(text: str) -> WorkflowGraph:
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise SnapshotImportError(f"Snapshot is not valid JSON: {str(e)}") from e
    return import_snapshot(payload)


def _diff_by_id(current: List[Dict[str, Any]], version: List[Dict[str, Any]]):
    current_by_id = {item["id"]: item for item in current}
    version_by_id = {item["id"]: item for item in version}

    added = sum(1 for item_id in current_by_id if item_id not in version_by_id)
    removed = sum(1 for item_id in version_by_id if item_id not in current_by_id)
    changed = sum(
        1 for item_id, item in current_by_id.items()
        if item_id in version_by_id and item != version_by_id[item_id]
    )
    return added, removed, changed


def calculate_version_diff(current: WorkflowGraph, version: WorkflowGraph) -> VersionDiff:
    """
    Summarize what changed between a saved version and the current workflow.

    Identity is by id; an element present in both whose content differs
    counts as changed.
    """
    current_dump = current.model_dump(mode="json")
    version_dump = version.model_dump(mode="json")

    nodes_added, nodes_removed, nodes_changed = _diff_by_id(current_dump["nodes"], version_dump["nodes"])
    edges_added, edges_removed, edges_changed = _diff_by_id(current_dump["edges"], version_dump["edges"])

    return VersionDiff(
        nodes_added=nodes_added,
        nodes_removed=nodes_removed,
        nodes_changed=nodes_changed,
        edges_added=edges_added,
        edges_removed=edges_removed,
        edges_changed=edges_changed
    )
