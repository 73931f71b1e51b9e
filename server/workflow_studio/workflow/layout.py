"""
Hierarchical node layout

The store treats layout as a black box ``(nodes, edges, direction) -> nodes``
and only reads the returned positions, so any routine with that signature
can replace ``layered_layout``.
"""

from collections import defaultdict, deque
from typing import Callable, Dict, List

from ..config import LAYOUT_CONFIG
from ..models import WorkflowNode, WorkflowEdge, LayoutDirection, Position

LayoutFunction = Callable[[List[WorkflowNode], List[WorkflowEdge], LayoutDirection], List[WorkflowNode]]


def _assign_ranks(nodes: List[WorkflowNode], edges: List[WorkflowEdge]) -> Dict[str, int]:
    """Longest-path ranks via Kahn's algorithm; nodes left on cycles join after their ranked predecessors"""
    node_ids = [node.id for node in nodes]
    known = set(node_ids)
    successors = defaultdict(list)
    in_degree = {node_id: 0 for node_id in node_ids}

    for edge in edges:
        if edge.source in known and edge.target in known and edge.source != edge.target:
            successors[edge.source].append(edge.target)
            in_degree[edge.target] += 1

    ranks = {node_id: 0 for node_id in node_ids}
    queue = deque(node_id for node_id in node_ids if in_degree[node_id] == 0)
    processed = set()

    while True:
        while queue:
            current = queue.popleft()
            processed.add(current)
            for target in successors[current]:
                if target in processed:
                    continue
                ranks[target] = max(ranks[target], ranks[current] + 1)
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        remaining = [node_id for node_id in node_ids if node_id not in processed]
        if not remaining:
            break
        # Break a cycle by releasing the first unprocessed node in insertion order
        in_degree[remaining[0]] = 0
        queue.append(remaining[0])

    return ranks


def layered_layout(
    nodes: List[WorkflowNode],
    edges: List[WorkflowEdge],
    direction: LayoutDirection = LayoutDirection.TOP_BOTTOM
) -> List[WorkflowNode]:
    """Return copies of ``nodes`` positioned rank by rank"""
    direction = LayoutDirection(direction)
    ranks = _assign_ranks(nodes, edges)

    width = LAYOUT_CONFIG["node_width"]
    height = LAYOUT_CONFIG["node_height"]
    node_sep = LAYOUT_CONFIG["node_sep"]
    rank_sep = LAYOUT_CONFIG["rank_sep"]
    margin_x = LAYOUT_CONFIG["margin_x"]
    margin_y = LAYOUT_CONFIG["margin_y"]

    order_in_rank: Dict[str, int] = {}
    counters: Dict[int, int] = defaultdict(int)
    for node in nodes:
        rank = ranks[node.id]
        order_in_rank[node.id] = counters[rank]
        counters[rank] += 1

    positioned = []
    for node in nodes:
        rank = ranks[node.id]
        slot = order_in_rank[node.id]
        if direction == LayoutDirection.TOP_BOTTOM:
            x = margin_x + slot * (width + node_sep)
            y = margin_y + rank * (height + rank_sep)
        else:
            x = margin_x + rank * (width + rank_sep)
            y = margin_y + slot * (height + node_sep)
        positioned.append(node.model_copy(update={"position": Position(x=x, y=y)}, deep=True))

    return positioned
